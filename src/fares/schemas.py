from pydantic import BaseModel, Field, validator
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from src.exceptions import InvalidRequestError

class FareClass(str, Enum):
    """Seat/comfort tier codes"""
    SLEEPER = "SL"
    AC_THREE_TIER = "3A"
    AC_TWO_TIER = "2A"
    AC_FIRST_CLASS = "1A"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_code(cls, code: Optional[str]) -> "FareClass":
        if code is None:
            raise InvalidRequestError("Fare class is required")
        try:
            return cls(code.strip().upper())
        except ValueError:
            raise InvalidRequestError(f"Invalid class: {code}")

_DISPLAY_NAMES = {
    FareClass.SLEEPER: "Sleeper",
    FareClass.AC_THREE_TIER: "AC 3 Tier",
    FareClass.AC_TWO_TIER: "AC 2 Tier",
    FareClass.AC_FIRST_CLASS: "AC First Class",
}

# Request Models
class FareEntryUpdate(BaseModel):
    """Admin request to add or replace a fare table entry"""
    distance_km: int = Field(..., gt=0, le=5000)
    price: Decimal = Field(..., gt=0)

class FareQuoteRequest(BaseModel):
    """Request a fare quote for a class and distance"""
    fare_class: FareClass
    distance_km: int = Field(..., gt=0, le=5000)
    passenger_count: int = Field(1, ge=1, le=6)
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    at: Optional[datetime] = None

# Response Models
class FareTableResponse(BaseModel):
    """Fare table for a single class, sorted by distance"""
    fare_class: FareClass
    entries: Dict[int, Decimal]
    currency: str = "INR"

class FareQuote(BaseModel):
    """Detailed fare breakdown for a class and distance"""
    fare_class: FareClass
    distance_km: int
    base_fare: Decimal
    distance_discount_percentage: Decimal
    time_bucket: str
    time_multiplier: Decimal
    class_premium_percentage: Decimal
    surge_multiplier: Decimal = Decimal("1")
    fare_per_passenger: Decimal
    passenger_count: int = 1
    total_fare: Decimal
    currency: str = "INR"

    @validator("fare_per_passenger", "total_fare")
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Fare cannot be negative")
        return v

class FareComparison(BaseModel):
    """Quotes for every class over the same distance"""
    distance_km: int
    quotes: List[FareQuote]
