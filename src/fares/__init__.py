"""
Fare Calculation Module

Ticket pricing for Indian-railway fare classes (SL, 3A, 2A, 1A). It includes:

- Per-class fare tables (distance km -> price) with linear interpolation
- Proportional extrapolation beyond the table and a flat per-km fallback
- Dynamic pricing: distance discount tiers, time-of-day/weekend multipliers,
  class premiums and surge pricing on popular routes
- Distance estimation from train schedule timings

Key Components:
- tables.py: Sorted distance tables with floor/ceiling lookup and interpolation
- service.py: Fare calculation and admin fare table maintenance
- distance.py: Schedule-based distance and duration estimation
- router.py: FastAPI endpoints for fare tables and quotes
- schemas.py: Pydantic models for fare classes and quotes
"""

from .router import router
from .service import FareCalculationService
from .distance import DistanceEstimator
from .tables import DistanceTable
from .schemas import FareClass, FareQuote, FareQuoteRequest, FareTableResponse, FareEntryUpdate

__all__ = [
    "router",
    "FareCalculationService",
    "DistanceEstimator",
    "DistanceTable",
    "FareClass",
    "FareQuote",
    "FareQuoteRequest",
    "FareTableResponse",
    "FareEntryUpdate"
]
