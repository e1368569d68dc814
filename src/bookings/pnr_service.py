from typing import Optional
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from src.models import Booking
from src.bookings.schemas import (
    BookingHistory, BookingOutcome, BookingStatistics, BookingStatus, BookingSummary,
    PassengerResponse, PaymentResponse, PNRDetails, PNRStatusResult
)
from src.bookings.repository import BookingRepository, PaymentRepository

logger = logging.getLogger(__name__)

def format_status(raw: Optional[str]) -> str:
    """Display form of a stored status: CONFIRMED, PENDING, CANCELLED or the raw value upper-cased"""
    try:
        return BookingStatus.normalize(raw).display_name
    except ValueError:
        return (raw or "").upper()


class PNRService:
    """PNR status lookup and per-user booking history"""

    def __init__(self, db: Session):
        self.db = db

    def get_pnr_status(self, pnr: str) -> PNRStatusResult:
        pnr = (pnr or "").strip().upper()
        if not pnr:
            return PNRStatusResult(outcome=BookingOutcome.INVALID, message="PNR is required")

        try:
            booking = BookingRepository.get_booking_by_pnr(self.db, pnr)
            if booking is None:
                return PNRStatusResult(outcome=BookingOutcome.NOT_FOUND, message=f"PNR {pnr} not found")

            payment = PaymentRepository.get_latest_payment(self.db, booking.id)
            details = self._build_details(booking, payment)
        except SQLAlchemyError as e:
            logger.error("Error retrieving PNR %s: %s", pnr, e)
            return PNRStatusResult(outcome=BookingOutcome.ERROR, message="Error retrieving PNR status")

        return PNRStatusResult(outcome=BookingOutcome.SUCCESS, message="PNR found", details=details)

    def get_user_bookings(self, user_id: int, status: Optional[BookingStatus] = None) -> BookingHistory:
        """Booking history for a user, newest first, optionally filtered by status"""
        try:
            bookings = BookingRepository.get_bookings_by_user(self.db, user_id)
            summaries = [self._summarize(booking) for booking in bookings]
        except SQLAlchemyError as e:
            logger.error("Error loading bookings for user %s: %s", user_id, e)
            return BookingHistory(outcome=BookingOutcome.ERROR, message="Error loading bookings")

        if status is not None:
            summaries = [s for s in summaries if s.status is status]

        return BookingHistory(
            outcome=BookingOutcome.SUCCESS,
            message=f"Found {len(summaries)} booking(s)",
            bookings=summaries
        )

    def get_booking_statistics(self, user_id: int) -> BookingStatistics:
        history = self.get_user_bookings(user_id)
        if history.outcome is not BookingOutcome.SUCCESS:
            return BookingStatistics()

        stats = BookingStatistics(total_bookings=len(history.bookings))
        total_spent = Decimal("0.00")
        for summary in history.bookings:
            if summary.status is BookingStatus.CONFIRMED:
                stats.confirmed_bookings += 1
                total_spent += summary.total_fare
            elif summary.status is BookingStatus.WAITING:
                stats.waiting_bookings += 1
            elif summary.status is BookingStatus.CANCELLED:
                stats.cancelled_bookings += 1
            else:
                stats.other_bookings += 1

        stats.total_spent = total_spent
        return stats

    def _build_details(self, booking: Booking, payment) -> PNRDetails:
        status = BookingStatus.parse(booking.status)
        return PNRDetails(
            pnr=booking.pnr,
            booking_id=booking.id,
            status=status,
            status_display=format_status(booking.status),
            train_number=booking.train.train_number if booking.train else None,
            train_name=booking.train.name if booking.train else None,
            from_station=booking.source_station.name if booking.source_station else None,
            to_station=booking.dest_station.name if booking.dest_station else None,
            journey_date=booking.journey.departure_date if booking.journey else None,
            booking_time=booking.booking_time,
            total_fare=booking.total_fare,
            passengers=[PassengerResponse.model_validate(p) for p in booking.passengers],
            payment=PaymentResponse.model_validate(payment) if payment is not None else None
        )

    def _summarize(self, booking: Booking) -> BookingSummary:
        status = BookingStatus.parse(booking.status)
        return BookingSummary(
            booking_id=booking.id,
            pnr=booking.pnr,
            train_number=booking.train.train_number if booking.train else None,
            train_name=booking.train.name if booking.train else None,
            from_station=booking.source_station.name if booking.source_station else None,
            to_station=booking.dest_station.name if booking.dest_station else None,
            journey_date=booking.journey.departure_date if booking.journey else None,
            booking_time=booking.booking_time,
            total_fare=booking.total_fare,
            status=status,
            status_display=format_status(booking.status),
            passenger_count=len(booking.passengers)
        )
