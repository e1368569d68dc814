from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    WAITING = "waiting"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @classmethod
    def normalize(cls, raw) -> "BookingStatus":
        """Map stored spellings, including legacy ones, onto the closed set"""
        if isinstance(raw, cls):
            return raw
        value = (raw or "").strip().lower()
        if value in _LEGACY_STATUSES:
            return _LEGACY_STATUSES[value]
        return cls(value)

    @classmethod
    def parse(cls, raw) -> Optional["BookingStatus"]:
        """Like normalize, but None for values outside the closed set"""
        try:
            return cls.normalize(raw)
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        return "PENDING" if self is BookingStatus.WAITING else self.value.upper()

_LEGACY_STATUSES = {
    "conformed": BookingStatus.CONFIRMED,
    "pending": BookingStatus.WAITING,
    "canceled": BookingStatus.CANCELLED,
}

class BookingOutcome(str, Enum):
    """Which failure class a booking operation ran into"""
    SUCCESS = "success"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    PAYMENT_FAILED = "payment_failed"
    ERROR = "error"

class PaymentStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"

# Request Models
class PassengerInfo(BaseModel):
    """Passenger details as entered at booking time"""
    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=0, le=125)
    gender: str = "other"

class BookingRequest(BaseModel):
    """Request to create a booking and a payment order"""
    user_id: int
    train_id: int
    journey_date: Optional[date] = None
    passengers: List[PassengerInfo] = []
    seat_class: Optional[str] = None
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    total_amount: Decimal = Field(..., gt=0)

class PaymentSuccessRequest(BaseModel):
    """Checkout callback payload for a completed payment"""
    booking_id: int
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str

class PaymentFailureRequest(BaseModel):
    """Checkout callback payload for a failed or abandoned payment"""
    booking_id: int
    reason: str = "Payment failed"

# Response Models
class PassengerResponse(BaseModel):
    id: int
    name: str
    age: int
    gender: str
    seat_number: Optional[str] = None
    coach_type: str

    class Config:
        from_attributes = True

class PaymentResponse(BaseModel):
    id: int
    transaction_id: Optional[str] = None
    amount: Decimal
    status: str
    method: Optional[str] = None
    provider: Optional[str] = None
    payment_time: Optional[datetime] = None

    class Config:
        from_attributes = True

class BookingResponse(BaseModel):
    id: int
    pnr: str
    user_id: int
    journey_id: int
    train_id: int
    source_station_id: int
    dest_station_id: int
    booking_time: Optional[datetime] = None
    total_fare: Decimal
    status: Optional[BookingStatus] = None
    razorpay_order_id: Optional[str] = None
    passengers: List[PassengerResponse] = []

    @validator("status", pre=True)
    def normalize_status(cls, v):
        # Unknown stored statuses are reported as None rather than failing the read
        return BookingStatus.parse(v)

    class Config:
        from_attributes = True

class BookingResult(BaseModel):
    """Result of a booking operation, tagged with its outcome"""
    success: bool
    outcome: BookingOutcome
    message: str
    booking: Optional[BookingResponse] = None
    razorpay_order_id: Optional[str] = None

# PNR & My Bookings
class PNRDetails(BaseModel):
    pnr: str
    booking_id: int
    status: Optional[BookingStatus] = None
    status_display: str
    train_number: Optional[str] = None
    train_name: Optional[str] = None
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    journey_date: Optional[date] = None
    booking_time: Optional[datetime] = None
    total_fare: Decimal
    passengers: List[PassengerResponse] = []
    payment: Optional[PaymentResponse] = None

class PNRStatusResult(BaseModel):
    outcome: BookingOutcome
    message: str
    details: Optional[PNRDetails] = None

class BookingSummary(BaseModel):
    """Row in a user's booking history"""
    booking_id: int
    pnr: str
    train_number: Optional[str] = None
    train_name: Optional[str] = None
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    journey_date: Optional[date] = None
    booking_time: Optional[datetime] = None
    total_fare: Decimal
    status: Optional[BookingStatus] = None
    status_display: str
    passenger_count: int

class BookingHistory(BaseModel):
    outcome: BookingOutcome
    message: str
    bookings: List[BookingSummary] = []

class BookingStatistics(BaseModel):
    total_bookings: int = 0
    confirmed_bookings: int = 0
    waiting_bookings: int = 0
    cancelled_bookings: int = 0
    other_bookings: int = 0
    total_spent: Decimal = Decimal("0.00")
