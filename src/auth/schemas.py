from pydantic import BaseModel
from typing import Optional

class SessionContext(BaseModel):
    """Caller identity passed explicitly to service calls"""
    user_id: int
    is_admin: bool = False
    email: Optional[str] = None

    def can_act_for(self, user_id: int) -> bool:
        return self.is_admin or self.user_id == user_id
