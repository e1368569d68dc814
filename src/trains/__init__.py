"""
Train Search Module

Station lookup and search for trains running between two stations, with
timings, halts, estimated distance, amenities and seat availability.
"""

from .router import router
from .service import TrainService

__all__ = ["router", "TrainService"]
