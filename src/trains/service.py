from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Tuple
from datetime import date
import logging

from src.exceptions import InfrastructureError, InvalidRequestError, NotFoundError
from src.models import Station, Train, TrainSchedule
from src.fares.distance import DistanceEstimator
from src.inventory.service import SeatInventoryService
from src.trains.schemas import ScheduleStop, TrainDetail, TrainSearchResult

logger = logging.getLogger(__name__)

PANTRY_KEYWORDS = ("express", "rajdhani", "shatabdi")

class TrainService:
    """Train search between stations and per-train details"""

    def __init__(self, db: Session, inventory: Optional[SeatInventoryService] = None):
        self.db = db
        self.inventory = inventory or SeatInventoryService(db)
        self.distance_estimator = DistanceEstimator(db)

    def list_stations(self, query: Optional[str] = None, limit: int = 50) -> List[Station]:
        """Stations matching a name, code or city fragment"""
        stations = self.db.query(Station)
        if query:
            stations = stations.filter(or_(
                Station.name.ilike(f"%{query}%"),
                Station.code.ilike(f"%{query}%"),
                Station.city.ilike(f"%{query}%")
            ))
        return stations.order_by(Station.name).limit(limit).all()

    def get_train(self, train_id: int) -> Train:
        train = self.db.query(Train).options(
            joinedload(Train.schedules).joinedload(TrainSchedule.station)
        ).filter(Train.id == train_id).first()
        if train is None:
            raise NotFoundError(f"Train {train_id} not found")
        return train

    def find_trains_between(self, from_station: str, to_station: str) -> List[Train]:
        """Trains whose schedule stops at both stations, in that order"""
        if not from_station or not to_station:
            raise InvalidRequestError("Both stations are required")

        trains = self.db.query(Train).options(
            joinedload(Train.schedules).joinedload(TrainSchedule.station)
        ).order_by(Train.train_number).all()

        matching = []
        for train in trains:
            origin, destination = self._stop_indexes(train, from_station, to_station)
            if origin is not None and destination is not None and origin < destination:
                matching.append(train)

        logger.info("Found %s trains between %s and %s", len(matching), from_station, to_station)
        return matching

    def halts_between(self, train: Train, from_station: str, to_station: str) -> Optional[int]:
        origin, destination = self._stop_indexes(train, from_station, to_station)
        if origin is None or destination is None:
            return None
        return abs(destination - origin) - 1

    def get_amenities(self, train: Train) -> List[str]:
        amenities = []
        if train.train_number.startswith(("1", "2")):
            amenities.append("Superfast")
        if any(keyword in train.name.lower() for keyword in PANTRY_KEYWORDS):
            amenities.append("Pantry Car")
            amenities.append("WiFi")
        amenities.append("Reserved Seating")
        return amenities

    def get_train_detail(self, train_id: int) -> TrainDetail:
        train = self.get_train(train_id)
        return TrainDetail(
            id=train.id,
            train_number=train.train_number,
            name=train.name,
            total_coaches=train.total_coaches,
            stops=[
                ScheduleStop(
                    sequence_order=stop.sequence_order,
                    station_code=stop.station.code,
                    station_name=stop.station.name,
                    arrival_time=stop.arrival_time,
                    departure_time=stop.departure_time,
                    day_number=stop.day_number or 1
                )
                for stop in train.schedules
            ],
            amenities=self.get_amenities(train)
        )

    def get_train_details(
        self,
        train: Train,
        from_station: str,
        to_station: str,
        journey_date: Optional[date] = None
    ) -> TrainSearchResult:
        """Timings, halts, distance, amenities and seat availability for one leg"""
        journey_date = journey_date or date.today()
        origin = self._find_stop(train, from_station)
        destination = self._find_stop(train, to_station)

        return TrainSearchResult(
            train_id=train.id,
            train_number=train.train_number,
            train_name=train.name,
            from_station=origin.station.name if origin else from_station,
            to_station=destination.station.name if destination else to_station,
            journey_date=journey_date,
            departure_time=origin.departure_time if origin else None,
            arrival_time=destination.arrival_time if destination else None,
            duration=self.distance_estimator.duration(train, from_station, to_station),
            halts=self.halts_between(train, from_station, to_station),
            distance_km=self.distance_estimator.distance_between(train, from_station, to_station),
            amenities=self.get_amenities(train),
            availability=self.inventory.get_availability(train.id, journey_date)
        )

    def search(self, from_station: str, to_station: str, journey_date: Optional[date] = None) -> List[TrainSearchResult]:
        try:
            trains = self.find_trains_between(from_station, to_station)
            return [self.get_train_details(train, from_station, to_station, journey_date) for train in trains]
        except SQLAlchemyError as e:
            logger.error("Train search failed for %s -> %s: %s", from_station, to_station, e)
            raise InfrastructureError("Train search is unavailable")

    def _find_stop(self, train: Train, station_name: str) -> Optional[TrainSchedule]:
        return self.distance_estimator.find_stop(train.schedules, station_name)

    def _stop_indexes(self, train: Train, from_station: str, to_station: str) -> Tuple[Optional[int], Optional[int]]:
        origin = destination = None
        for index, stop in enumerate(train.schedules):
            if self._matches(stop, from_station):
                origin = index
            if self._matches(stop, to_station):
                destination = index
        return origin, destination

    @staticmethod
    def _matches(stop: TrainSchedule, station_name: str) -> bool:
        wanted = station_name.strip().lower()
        return stop.station is not None and wanted in (stop.station.name.lower(), stop.station.code.lower())
