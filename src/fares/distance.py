from typing import List, Optional
from datetime import time
from sqlalchemy.orm import Session, joinedload
import logging

from src.models import Train, TrainSchedule

logger = logging.getLogger(__name__)

MAX_DISTANCE_KM = 2500
MIN_DISTANCE_KM = 50
MAX_JOURNEY_MINUTES = 24 * 60
MIN_JOURNEY_MINUTES = 30

AVERAGE_TRAIN_SPEED_KMPH = 55.0
EXPRESS_TRAIN_SPEED_KMPH = 65.0
LOCAL_TRAIN_SPEED_KMPH = 45.0

PREMIUM_TRAIN_KEYWORDS = ("rajdhani", "shatabdi", "vande bharat", "duronto")
LOCAL_TRAIN_KEYWORDS = ("passenger", "local")

KNOWN_ROUTE_DISTANCES = {
    ("delhi", "mumbai"): 1384,
    ("delhi", "chennai"): 2180,
    ("mumbai", "chennai"): 1279,
    ("bangalore", "chennai"): 350,
}

def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))

def journey_minutes(
    departure: time,
    arrival: time,
    departure_day: int = 1,
    arrival_day: int = 1
) -> int:
    """Minutes between departure and arrival, honouring the schedule day numbers"""
    departure_minutes = departure.hour * 60 + departure.minute
    arrival_minutes = arrival.hour * 60 + arrival.minute

    day_gap = max((arrival_day or 1) - (departure_day or 1), 0)
    if day_gap == 0 and arrival_minutes < departure_minutes:
        # Arrives after midnight on the following day
        day_gap = 1

    minutes = day_gap * 24 * 60 + arrival_minutes - departure_minutes
    return _clamp(minutes, MIN_JOURNEY_MINUTES, MAX_JOURNEY_MINUTES)

def format_duration(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60:02d}m"


class DistanceEstimator:
    """Estimate travel distance between two stations on a train's route"""

    def __init__(self, db: Session):
        self.db = db

    def get_schedule(self, train_id: int) -> List[TrainSchedule]:
        return self.db.query(TrainSchedule).options(
            joinedload(TrainSchedule.station)
        ).filter(
            TrainSchedule.train_id == train_id
        ).order_by(TrainSchedule.sequence_order).all()

    def find_stop(self, schedule: List[TrainSchedule], station_name: str) -> Optional[TrainSchedule]:
        wanted = station_name.strip().lower()
        for stop in schedule:
            if stop.station and wanted in (stop.station.name.lower(), stop.station.code.lower()):
                return stop
        return None

    def train_speed(self, train: Train) -> float:
        name = train.name.lower()
        if any(keyword in name for keyword in PREMIUM_TRAIN_KEYWORDS):
            return EXPRESS_TRAIN_SPEED_KMPH
        if any(keyword in name for keyword in LOCAL_TRAIN_KEYWORDS):
            return LOCAL_TRAIN_SPEED_KMPH
        return AVERAGE_TRAIN_SPEED_KMPH

    def distance_between(self, train: Train, from_station: str, to_station: str) -> int:
        """Distance in km, from schedule timing with progressively cruder fallbacks"""
        schedule = self.get_schedule(train.id)
        if not schedule:
            logger.warning("No schedule found for train %s", train.train_number)
            return self.estimate_by_route(from_station, to_station)

        origin = self.find_stop(schedule, from_station)
        destination = self.find_stop(schedule, to_station)
        if origin is None or destination is None:
            logger.warning("Station not found in schedule of %s: %s -> %s",
                           train.train_number, from_station, to_station)
            return self.estimate_by_route(from_station, to_station)

        if origin.sequence_order >= destination.sequence_order:
            logger.warning("Invalid station order in schedule of %s", train.train_number)
            return self.estimate_by_route(from_station, to_station)

        if origin.departure_time is not None and destination.arrival_time is not None:
            minutes = journey_minutes(
                origin.departure_time, destination.arrival_time,
                origin.day_number, destination.day_number
            )
            distance = int(round(self.train_speed(train) * minutes / 60.0))
            logger.debug("Time-based distance for %s: %s min -> %s km",
                         train.train_number, minutes, distance)
            return _clamp(distance, MIN_DISTANCE_KM, MAX_DISTANCE_KM)

        return self._segment_based_distance(origin, destination, train)

    def _segment_based_distance(self, origin: TrainSchedule, destination: TrainSchedule, train: Train) -> int:
        segments = destination.sequence_order - origin.sequence_order
        if segments <= 0:
            return MIN_DISTANCE_KM

        name = train.name.lower()
        if "rajdhani" in name or "duronto" in name:
            segment_km = 120
        elif "express" in name or "mail" in name:
            segment_km = 80
        else:
            segment_km = 60

        return _clamp(segments * segment_km, MIN_DISTANCE_KM, MAX_DISTANCE_KM)

    def estimate_by_route(self, from_station: str, to_station: str) -> int:
        """Known city pairs first, then a rough guess from the name lengths"""
        a, b = from_station.strip().lower(), to_station.strip().lower()
        known = KNOWN_ROUTE_DISTANCES.get((a, b)) or KNOWN_ROUTE_DISTANCES.get((b, a))
        if known:
            return known

        average_length = (len(a) + len(b)) // 2
        if average_length <= 3:
            return 200
        if average_length <= 6:
            return 400
        return 600

    def duration(self, train: Train, from_station: str, to_station: str) -> Optional[str]:
        """Formatted journey duration, or None when timing is missing"""
        schedule = self.get_schedule(train.id)
        origin = self.find_stop(schedule, from_station)
        destination = self.find_stop(schedule, to_station)
        if (origin is None or destination is None
                or origin.departure_time is None or destination.arrival_time is None):
            return None

        minutes = journey_minutes(
            origin.departure_time, destination.arrival_time,
            origin.day_number, destination.day_number
        )
        return format_duration(minutes)
