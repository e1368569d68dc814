from typing import List, Optional, Tuple
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging
import random
import time

from src.config import settings
from src.exceptions import (
    InfrastructureError, InvalidRequestError, InvalidStateError, NotFoundError,
    PaymentGatewayError, RailwayError, SeatsUnavailableError
)
from src.models import Booking, Passenger, Station, Train
from src.auth.schemas import SessionContext
from src.bookings.schemas import (
    BookingOutcome, BookingRequest, BookingResponse, BookingResult, BookingStatus,
    PassengerInfo, PaymentStatus, PaymentSuccessRequest
)
from src.bookings.repository import (
    BookingRepository, NotificationRepository, PassengerRepository,
    PaymentRepository, StationRepository, UserRepository
)
from src.bookings.documents import TicketDocumentService
from src.fares.distance import DistanceEstimator
from src.fares.schemas import FareClass
from src.fares.service import FareCalculationService
from src.fares.tables import to_money
from src.inventory.service import SeatInventoryService
from src.notifications.email_service import EmailService
from src.notifications.sms_service import SMSService
from src.payments.gateway import RazorpayGateway

logger = logging.getLogger(__name__)

SEAT_PREFIXES = {
    FareClass.SLEEPER: "S",
    FareClass.AC_THREE_TIER: "A",
    FareClass.AC_TWO_TIER: "B",
    FareClass.AC_FIRST_CLASS: "H",
}
DEFAULT_SEAT_PREFIX = "S"

GENDER_CODES = {"male": "M", "female": "F"}

PNR_ATTEMPTS = 5

def generate_seat_number(fare_class: FareClass, index: int) -> str:
    """Class prefix followed by the 1-based passenger index"""
    return f"{SEAT_PREFIXES.get(fare_class, DEFAULT_SEAT_PREFIX)}{index}"

def map_gender(gender: Optional[str]) -> str:
    return GENDER_CODES.get((gender or "").strip().lower(), "O")

def generate_pnr(millis: Optional[int] = None) -> str:
    """'PNR' plus the last 7 digits of the current time in milliseconds"""
    if millis is None:
        millis = int(time.time() * 1000)
    return f"PNR{millis % 10_000_000:07d}"


class BookingService:
    """Orchestrates booking creation, payment confirmation and cancellation"""

    def __init__(
        self,
        db: Session,
        inventory: Optional[SeatInventoryService] = None,
        fare_service: Optional[FareCalculationService] = None,
        distance_estimator: Optional[DistanceEstimator] = None,
        gateway: Optional[RazorpayGateway] = None,
        documents: Optional[TicketDocumentService] = None,
        email_service: Optional[EmailService] = None,
        sms_service: Optional[SMSService] = None,
        rng: Optional[random.Random] = None
    ):
        self.db = db
        self.inventory = inventory or SeatInventoryService(db)
        self.fare_service = fare_service
        self.distance_estimator = distance_estimator or DistanceEstimator(db)
        self.gateway = gateway or RazorpayGateway()
        self.documents = documents or TicketDocumentService()
        self.email_service = email_service or EmailService()
        self.sms_service = sms_service or SMSService()
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Booking creation
    # ------------------------------------------------------------------
    def create_booking_with_payment(self, request: BookingRequest, context: SessionContext) -> BookingResult:
        """Validate, check seats, persist a waiting booking with passengers and open a payment order"""
        logger.info("Starting booking for user %s on train %s", request.user_id, request.train_id)

        try:
            train, source, destination, fare_class = self._validate_request(request, context)

            passenger_count = len(request.passengers)
            availability = self.inventory.get_availability(train.id, request.journey_date)
            available = availability.get(fare_class.value, 0)
            if available < passenger_count:
                raise SeatsUnavailableError(
                    f"Seats not available for selected class: {available} {fare_class.value} left, "
                    f"{passenger_count} requested"
                )

            total_amount = to_money(request.total_amount)
            if settings.VERIFY_CLIENT_FARE:
                self._verify_client_fare(train, request, fare_class, total_amount)

            booking = self._create_initial_booking(request, train, source, destination, total_amount)
        except InvalidRequestError as e:
            return self._result(BookingOutcome.INVALID, e.message)
        except NotFoundError as e:
            return self._result(BookingOutcome.NOT_FOUND, e.message)
        except SeatsUnavailableError as e:
            return self._result(BookingOutcome.UNAVAILABLE, e.message)
        except InfrastructureError as e:
            return self._result(BookingOutcome.ERROR, e.message)

        try:
            self._create_passenger_records(booking, request.passengers, fare_class)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create passengers for booking %s: %s", booking.id, e)
            return self._result(BookingOutcome.ERROR, "Failed to create passenger records", booking)

        try:
            order_id = self.gateway.create_order(booking.total_fare, settings.CURRENCY, booking.pnr)
        except (PaymentGatewayError, InvalidRequestError) as e:
            logger.error("Payment order failed for booking %s: %s", booking.id, e.message)
            return self._result(BookingOutcome.PAYMENT_FAILED, "Failed to create payment order", booking)

        try:
            BookingRepository.set_order_id(self.db, booking, order_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Could not store order %s on booking %s: %s", order_id, booking.id, e)

        logger.info("Booking %s (%s) created, awaiting payment for order %s", booking.id, booking.pnr, order_id)
        return self._result(
            BookingOutcome.SUCCESS,
            "Booking created successfully. Please proceed with payment.",
            booking,
            order_id
        )

    def _validate_request(self, request: BookingRequest, context: SessionContext) -> Tuple[Train, Station, Station, FareClass]:
        if request.user_id <= 0 or request.train_id <= 0:
            raise InvalidRequestError("Invalid booking request: user and train are required")
        if not request.passengers:
            raise InvalidRequestError("Invalid booking request: at least one passenger is required")
        if request.journey_date is None:
            raise InvalidRequestError("Invalid booking request: journey date is required")
        if not request.from_station or not request.to_station:
            raise InvalidRequestError("Invalid booking request: stations are required")
        if request.from_station.strip().lower() == request.to_station.strip().lower():
            raise InvalidRequestError("Source and destination stations must differ")
        if request.journey_date < date.today():
            raise InvalidRequestError("Journey date is in the past")
        if to_money(request.total_amount) <= 0:
            raise InvalidRequestError("Total amount must be at least 0.01")
        if not context.can_act_for(request.user_id):
            raise InvalidRequestError("Cannot create a booking for another user")

        fare_class = FareClass.from_code(request.seat_class)

        try:
            if UserRepository.get_user_by_id(self.db, request.user_id) is None:
                raise NotFoundError(f"User {request.user_id} not found")

            train = self.db.query(Train).filter(Train.id == request.train_id).first()
            if train is None:
                raise NotFoundError(f"Train {request.train_id} not found")

            source = StationRepository.get_station_by_name(self.db, request.from_station)
            destination = StationRepository.get_station_by_name(self.db, request.to_station)
        except SQLAlchemyError as e:
            logger.error("Failed to load booking references: %s", e)
            raise InfrastructureError("Booking references could not be loaded")

        if source is None or destination is None:
            raise NotFoundError(f"Could not find stations: {request.from_station} -> {request.to_station}")

        return train, source, destination, fare_class

    def _verify_client_fare(self, train: Train, request: BookingRequest, fare_class: FareClass, total_amount: Decimal):
        fare_service = self.fare_service or FareCalculationService(self.db)
        distance = self.distance_estimator.distance_between(train, request.from_station, request.to_station)
        quote = fare_service.quote(
            fare_class,
            distance,
            passenger_count=len(request.passengers),
            from_station=request.from_station,
            to_station=request.to_station
        )

        tolerance = quote.total_fare * settings.FARE_TOLERANCE_PERCENT / Decimal("100")
        if abs(total_amount - quote.total_fare) > tolerance:
            logger.warning("Client total %s differs from calculated fare %s for train %s",
                           total_amount, quote.total_fare, train.id)
            raise InvalidRequestError(
                f"Total amount {total_amount} does not match the calculated fare {quote.total_fare}"
            )

    def _next_pnr(self) -> str:
        pnr = generate_pnr()
        for _ in range(PNR_ATTEMPTS):
            if not BookingRepository.pnr_exists(self.db, pnr):
                return pnr
            pnr = generate_pnr(self.rng.randrange(10_000_000))
        raise InfrastructureError("Could not allocate a unique PNR")

    def _create_initial_booking(
        self,
        request: BookingRequest,
        train: Train,
        source: Station,
        destination: Station,
        total_amount: Decimal
    ) -> Booking:
        journey = self.inventory.ensure_journey(train.id, request.journey_date)

        try:
            booking = Booking(
                pnr=self._next_pnr(),
                user_id=request.user_id,
                journey_id=journey.id,
                train_id=train.id,
                source_station_id=source.id,
                dest_station_id=destination.id,
                total_fare=total_amount,
                status=BookingStatus.WAITING.value
            )
            return BookingRepository.create_booking(self.db, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create booking record: %s", e)
            raise InfrastructureError("Failed to create booking record")

    def _create_passenger_records(self, booking: Booking, passengers: List[PassengerInfo], fare_class: FareClass):
        for index, passenger in enumerate(passengers, start=1):
            PassengerRepository.create_passenger(self.db, Passenger(
                booking_id=booking.id,
                name=passenger.name,
                age=passenger.age,
                gender=map_gender(passenger.gender),
                coach_type=fare_class.value,
                seat_number=generate_seat_number(fare_class, index)
            ))
        self.db.refresh(booking)

    # ------------------------------------------------------------------
    # Payment callbacks
    # ------------------------------------------------------------------
    def handle_successful_payment(self, request: PaymentSuccessRequest, context: SessionContext) -> BookingResult:
        """Confirm a waiting booking after a verified payment, then issue documents and notifications"""
        logger.info("Processing successful payment for booking %s", request.booking_id)

        if not self.gateway.verify_payment(request.razorpay_order_id, request.razorpay_payment_id,
                                           request.razorpay_signature):
            return self._result(BookingOutcome.PAYMENT_FAILED, "Payment verification failed")

        try:
            booking = self._load_waiting_booking(request.booking_id, context)
            if booking.razorpay_order_id and booking.razorpay_order_id != request.razorpay_order_id:
                return self._result(BookingOutcome.PAYMENT_FAILED, "Payment order does not match booking", booking)

            BookingRepository.update_booking_status(self.db, booking, BookingStatus.CONFIRMED.value)
        except NotFoundError as e:
            return self._result(BookingOutcome.NOT_FOUND, e.message)
        except InvalidStateError as e:
            return self._result(BookingOutcome.INVALID_STATE, e.message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to confirm booking %s: %s", request.booking_id, e)
            return self._result(BookingOutcome.ERROR, "Failed to confirm booking")

        try:
            PaymentRepository.create_payment(
                self.db,
                booking_id=booking.id,
                amount=booking.total_fare,
                status=PaymentStatus.SUCCESS.value,
                transaction_id=request.razorpay_payment_id
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Failed to record payment for booking %s: %s", booking.id, e)

        self._update_seat_availability(booking)
        ticket_pdf = self._generate_document(booking, "ticket")
        invoice_pdf = self._generate_document(booking, "invoice")
        email_sent = self._send_confirmation_email(booking, ticket_pdf, invoice_pdf)
        sms_sent = self._send_confirmation_sms(booking)
        self._record_notifications(booking, email_sent, sms_sent)

        logger.info("Booking %s confirmed", booking.pnr)
        return self._result(
            BookingOutcome.SUCCESS,
            "Booking confirmed successfully! Confirmation details sent to your email and phone.",
            booking
        )

    def handle_failed_payment(self, booking_id: int, reason: str, context: SessionContext) -> BookingResult:
        """Cancel a waiting booking and record the failed payment"""
        logger.info("Processing failed payment for booking %s: %s", booking_id, reason)

        try:
            booking = self._load_waiting_booking(booking_id, context)
            BookingRepository.update_booking_status(self.db, booking, BookingStatus.CANCELLED.value)
        except NotFoundError as e:
            return self._result(BookingOutcome.NOT_FOUND, e.message)
        except InvalidStateError as e:
            return self._result(BookingOutcome.INVALID_STATE, e.message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to cancel booking %s: %s", booking_id, e)
            return self._result(BookingOutcome.ERROR, "Failed to cancel booking")

        # The cancellation is already committed; the payment row is a record only
        try:
            PaymentRepository.create_payment(
                self.db,
                booking_id=booking.id,
                amount=Decimal("0.00"),
                status=PaymentStatus.FAILED.value
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Booking %s cancelled but failed payment was not recorded: %s", booking_id, e)

        user = booking.user
        if user is not None:
            self.email_service.send_cancellation(user.email, user.name, booking.pnr, reason)
            self.sms_service.send_cancellation(user.phone, booking.pnr)

        return self._result(BookingOutcome.SUCCESS, f"Booking cancelled: {reason}", booking)

    def get_booking(self, booking_id: int, context: SessionContext) -> Booking:
        booking = BookingRepository.get_booking_by_id(self.db, booking_id)
        if booking is None or not context.can_act_for(booking.user_id):
            raise NotFoundError("Booking not found")
        return booking

    def _load_waiting_booking(self, booking_id: int, context: SessionContext) -> Booking:
        booking = self.get_booking(booking_id, context)

        try:
            status = BookingStatus.normalize(booking.status)
        except ValueError:
            raise InvalidStateError(f"Booking has unknown status '{booking.status}'")

        if status is not BookingStatus.WAITING:
            raise InvalidStateError(f"Booking is already {status.value}")
        return booking

    # ------------------------------------------------------------------
    # Best-effort follow-up steps
    # ------------------------------------------------------------------
    def _update_seat_availability(self, booking: Booking):
        passengers = booking.passengers
        if not passengers or booking.journey is None:
            return

        try:
            reserved = self.inventory.reserve(
                booking.train_id,
                booking.journey.departure_date,
                passengers[0].coach_type,
                len(passengers)
            )
        except (RailwayError, SQLAlchemyError) as e:
            logger.error("Error updating seat availability for booking %s: %s", booking.id, e)
            return

        if not reserved:
            logger.warning("Seat count not updated for confirmed booking %s", booking.pnr)

    def _generate_document(self, booking: Booking, kind: str) -> Optional[bytes]:
        generate = self.documents.generate_ticket_pdf if kind == "ticket" else self.documents.generate_invoice_pdf
        try:
            return generate(booking)
        except Exception:
            logger.exception("Error generating %s PDF for booking %s", kind, booking.pnr)
            return None

    def _send_confirmation_email(self, booking: Booking, ticket_pdf: Optional[bytes], invoice_pdf: Optional[bytes]) -> bool:
        user = booking.user
        if user is None:
            return False

        train = booking.train
        train_details = f"{train.train_number} - {train.name}" if train else "Train Details"
        if booking.source_station and booking.dest_station and booking.journey:
            journey_details = (
                f"{booking.source_station.name} -> {booking.dest_station.name} | "
                f"{booking.journey.departure_date.strftime('%d %b %Y')} | Confirmed"
            )
        else:
            journey_details = "Journey Details"

        sent = self.email_service.send_booking_confirmation(
            user.email, user.name, booking.pnr, train_details, journey_details, ticket_pdf, invoice_pdf
        )
        if not sent:
            logger.warning("Failed to send booking confirmation e-mail for %s", booking.pnr)
        return sent

    def _send_confirmation_sms(self, booking: Booking) -> bool:
        user = booking.user
        if user is None:
            return False
        return self.sms_service.send_booking_confirmation(user.phone, booking.pnr, booking.total_fare)

    def _record_notifications(self, booking: Booking, email_sent: bool, sms_sent: bool):
        try:
            NotificationRepository.create_notification(self.db, booking.id, email_sent, sms_sent)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error recording notifications for booking %s: %s", booking.id, e)

    @staticmethod
    def _result(
        outcome: BookingOutcome,
        message: str,
        booking: Optional[Booking] = None,
        order_id: Optional[str] = None
    ) -> BookingResult:
        return BookingResult(
            success=outcome is BookingOutcome.SUCCESS,
            outcome=outcome,
            message=message,
            booking=BookingResponse.model_validate(booking) if booking is not None else None,
            razorpay_order_id=order_id or (booking.razorpay_order_id if booking is not None else None)
        )
