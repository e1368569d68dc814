"""
Seat Inventory Module

Per-journey (train, date) seat counts for each fare class.

Key Components:
- service.py: Availability lookup, journey creation with default capacity,
  and reserve/release using a version-checked conditional update
- router.py: FastAPI endpoints for availability and manual adjustments
- schemas.py: Pydantic models for availability and seat changes
"""

from .router import router
from .service import SeatInventoryService
from .schemas import SeatAvailability, SeatChangeRequest, SeatChangeResult

__all__ = [
    "router",
    "SeatInventoryService",
    "SeatAvailability",
    "SeatChangeRequest",
    "SeatChangeResult"
]
