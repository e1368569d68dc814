from pydantic import BaseModel, Field
from typing import Dict
from datetime import date

from src.fares.schemas import FareClass

class SeatAvailability(BaseModel):
    """Available seats per class for a train on a date"""
    train_id: int
    journey_date: date
    seats: Dict[str, int]
    total_available: int

class SeatChangeRequest(BaseModel):
    """Request to reserve or release seats in a class"""
    fare_class: FareClass
    seats: int = Field(..., ge=1, le=100)

class SeatChangeResult(BaseModel):
    """Outcome of a reserve or release request"""
    success: bool
    message: str
    availability: SeatAvailability
