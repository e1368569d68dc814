"""
Booking & Ticketing Module

Booking lifecycle for Indian-railway journeys. It includes:

- Booking creation with seat checks, passenger records and seat numbering
- Razorpay payment orders, confirmation and failed-payment cancellation
- E-ticket and invoice PDFs with a PNR QR code
- Confirmation e-mail/SMS and notification records
- PNR status lookup, booking history and statistics

Key Components:
- booking_service.py: Orchestrates create -> pay -> confirm/cancel
- pnr_service.py: PNR status and "my bookings" history
- documents.py: Ticket and invoice PDF generation
- repository.py: Database access for bookings, passengers, payments and notifications
- router.py: FastAPI endpoints for bookings, payments and PNR lookup
- schemas.py: Pydantic models and the booking status/outcome enumerations

States: waiting -> confirmed | cancelled. Confirmed and cancelled are final.
"""

from .router import router
from .booking_service import BookingService
from .pnr_service import PNRService, format_status
from .documents import TicketDocumentService
from .schemas import (
    BookingRequest, BookingResult, BookingOutcome, BookingStatus,
    PassengerInfo, PaymentSuccessRequest, PaymentFailureRequest,
    PNRDetails, BookingSummary, BookingStatistics
)

__all__ = [
    "router",
    "BookingService",
    "PNRService",
    "format_status",
    "TicketDocumentService",
    "BookingRequest",
    "BookingResult",
    "BookingOutcome",
    "BookingStatus",
    "PassengerInfo",
    "PaymentSuccessRequest",
    "PaymentFailureRequest",
    "PNRDetails",
    "BookingSummary",
    "BookingStatistics"
]
