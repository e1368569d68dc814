from fastapi import Depends, Header, HTTPException, status
from typing import Optional
from src.auth.schemas import SessionContext

ADMIN_ROLES = ("admin", "super_admin")

def get_session_context(
    x_user_id: Optional[int] = Header(None, description="Authenticated user ID"),
    x_user_role: Optional[str] = Header(None, description="Role of the authenticated user"),
    x_user_email: Optional[str] = Header(None, description="E-mail of the authenticated user")
) -> SessionContext:
    """Build the caller context from headers set by the upstream authentication layer"""
    if x_user_id is None or x_user_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user context",
        )

    return SessionContext(
        user_id=x_user_id,
        is_admin=(x_user_role or "").lower() in ADMIN_ROLES,
        email=x_user_email
    )

def require_admin(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    """Require admin role for access"""
    if not context.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return context
