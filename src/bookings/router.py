from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from src.database import get_db
from src.auth.dependencies import get_session_context
from src.auth.schemas import SessionContext
from src.exceptions import NotFoundError
from src.bookings.schemas import (
    BookingOutcome, BookingRequest, BookingResponse, BookingResult, BookingStatistics,
    BookingStatus, BookingSummary, PaymentFailureRequest, PaymentSuccessRequest, PNRDetails
)
from src.bookings.booking_service import BookingService
from src.bookings.pnr_service import PNRService

router = APIRouter()

OUTCOME_STATUS_CODES = {
    BookingOutcome.INVALID: status.HTTP_400_BAD_REQUEST,
    BookingOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingOutcome.UNAVAILABLE: status.HTTP_409_CONFLICT,
    BookingOutcome.INVALID_STATE: status.HTTP_409_CONFLICT,
    BookingOutcome.PAYMENT_FAILED: status.HTTP_502_BAD_GATEWAY,
    BookingOutcome.ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}

def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)

def _raise_for_outcome(outcome: BookingOutcome, message: str):
    if outcome is not BookingOutcome.SUCCESS:
        raise HTTPException(
            status_code=OUTCOME_STATUS_CODES.get(outcome, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=message
        )

# Booking Endpoints
@router.post("/", response_model=BookingResult, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingRequest,
    context: SessionContext = Depends(get_session_context),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Create a waiting booking and a payment order for it"""
    result = booking_service.create_booking_with_payment(request, context)
    _raise_for_outcome(result.outcome, result.message)
    return result

@router.post("/payments/success", response_model=BookingResult)
def confirm_payment(
    request: PaymentSuccessRequest,
    context: SessionContext = Depends(get_session_context),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Verify a completed payment and confirm the booking"""
    result = booking_service.handle_successful_payment(request, context)
    _raise_for_outcome(result.outcome, result.message)
    return result

@router.post("/payments/failure", response_model=BookingResult)
def record_failed_payment(
    request: PaymentFailureRequest,
    context: SessionContext = Depends(get_session_context),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Cancel a waiting booking whose payment failed"""
    result = booking_service.handle_failed_payment(request.booking_id, request.reason, context)
    _raise_for_outcome(result.outcome, result.message)
    return result

# PNR & History Endpoints
@router.get("/pnr/{pnr}", response_model=PNRDetails)
def get_pnr_status(
    pnr: str,
    db: Session = Depends(get_db)
):
    """Get booking status, passengers and payment by PNR"""
    result = PNRService(db).get_pnr_status(pnr)
    _raise_for_outcome(result.outcome, result.message)
    return result.details

@router.get("/my-bookings", response_model=List[BookingSummary])
def get_my_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    user_id: Optional[int] = Query(None, description="Another user's ID (admin only)"),
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    """Get booking history, newest first"""
    target_user_id = _target_user(context, user_id)
    history = PNRService(db).get_user_bookings(target_user_id, booking_status)
    _raise_for_outcome(history.outcome, history.message)
    return history.bookings

@router.get("/my-bookings/statistics", response_model=BookingStatistics)
def get_my_booking_statistics(
    user_id: Optional[int] = Query(None, description="Another user's ID (admin only)"),
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    """Get booking counts and total spent on confirmed bookings"""
    return PNRService(db).get_booking_statistics(_target_user(context, user_id))

@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    context: SessionContext = Depends(get_session_context),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Get booking details by ID"""
    try:
        return booking_service.get_booking(booking_id, context)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Booking could not be loaded"
        )

def _target_user(context: SessionContext, user_id: Optional[int]) -> int:
    if user_id is None:
        return context.user_id
    if not context.can_act_for(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return user_id
