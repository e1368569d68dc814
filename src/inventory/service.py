from typing import Dict, Optional, Union
from datetime import date
from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging
import random

from src.config import settings
from src.exceptions import InfrastructureError, InvalidRequestError, NotFoundError
from src.models import Journey, Train
from src.fares.schemas import FareClass

logger = logging.getLogger(__name__)

# (base, jitter) per class, keyed by train category
DEFAULT_CAPACITY = {
    "premium": {"SL": (80, 20), "3A": (60, 20), "2A": (40, 15), "1A": (20, 10)},
    "express": {"SL": (70, 20), "3A": (50, 20), "2A": (35, 15), "1A": (18, 10)},
    "regular": {"SL": (60, 20), "3A": (40, 20), "2A": (30, 15), "1A": (15, 10)},
}

def _class_code(fare_class: Union[FareClass, str]) -> str:
    if isinstance(fare_class, FareClass):
        return fare_class.value
    return FareClass.from_code(fare_class).value


class SeatInventoryService:
    """Per-journey seat counts with conditional (compare-and-swap) updates"""

    def __init__(self, db: Session, rng: Optional[random.Random] = None, max_retries: Optional[int] = None):
        self.db = db
        self.rng = rng or random.Random()
        self.max_retries = settings.INVENTORY_MAX_RETRIES if max_retries is None else max_retries

    def default_capacity(self, train: Optional[Train]) -> Dict[str, int]:
        """Heuristic starting capacity from the train name plus random jitter"""
        category = "regular"
        if train is not None:
            name = train.name.lower()
            if "rajdhani" in name or "shatabdi" in name:
                category = "premium"
            elif "express" in name:
                category = "express"

        return {
            fare_class: base + self.rng.randrange(jitter)
            for fare_class, (base, jitter) in DEFAULT_CAPACITY[category].items()
        }

    def get_journey(self, train_id: int, journey_date: date) -> Optional[Journey]:
        try:
            return self.db.query(Journey).populate_existing().filter(
                Journey.train_id == train_id,
                Journey.departure_date == journey_date
            ).first()
        except SQLAlchemyError as e:
            logger.error("Failed to load journey %s/%s: %s", train_id, journey_date, e)
            raise InfrastructureError("Journey could not be loaded")

    def ensure_journey(self, train_id: int, journey_date: date) -> Journey:
        """Return the journey for a train and date, creating it with default capacity"""
        journey = self.get_journey(train_id, journey_date)
        if journey is not None:
            return journey

        train = self.db.query(Train).filter(Train.id == train_id).first()
        if train is None:
            raise NotFoundError(f"Train {train_id} not found")

        journey = Journey(
            train_id=train_id,
            departure_date=journey_date,
            available_seats=self.default_capacity(train),
            version=0
        )
        try:
            self.db.add(journey)
            self.db.commit()
            self.db.refresh(journey)
        except IntegrityError:
            # Created concurrently by another request
            self.db.rollback()
            journey = self.get_journey(train_id, journey_date)
            if journey is None:
                raise InfrastructureError("Journey could not be created")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create journey %s/%s: %s", train_id, journey_date, e)
            raise InfrastructureError("Journey could not be created")

        logger.info("Created journey %s for train %s on %s with seats %s",
                    journey.id, train_id, journey_date, journey.available_seats)
        return journey

    def get_availability(self, train_id: int, journey_date: Optional[date] = None) -> Dict[str, int]:
        """Current seat counts per class (a copy)"""
        journey = self.ensure_journey(train_id, journey_date or date.today())
        return {key: int(value) for key, value in (journey.available_seats or {}).items()}

    def reserve(self, train_id: int, journey_date: date, fare_class: Union[FareClass, str], seats: int) -> bool:
        """Take seats out of the inventory; False when not enough are left"""
        if seats <= 0:
            raise InvalidRequestError("Seat count must be positive")
        return self._apply_delta(train_id, journey_date, _class_code(fare_class), -seats)

    def release(self, train_id: int, journey_date: date, fare_class: Union[FareClass, str], seats: int) -> bool:
        """Return seats to the inventory"""
        if seats <= 0:
            raise InvalidRequestError("Seat count must be positive")
        return self._apply_delta(train_id, journey_date, _class_code(fare_class), seats)

    def _apply_delta(self, train_id: int, journey_date: date, class_code: str, delta: int) -> bool:
        for attempt in range(1, self.max_retries + 1):
            journey = self.get_journey(train_id, journey_date)
            if journey is None:
                logger.warning("No journey for train %s on %s", train_id, journey_date)
                return False

            seats = {key: int(value) for key, value in (journey.available_seats or {}).items()}
            remaining = seats.get(class_code, 0) + delta
            if remaining < 0:
                logger.info("Only %s %s seats left on train %s for %s, requested %s",
                            seats.get(class_code, 0), class_code, train_id, journey_date, -delta)
                return False
            seats[class_code] = remaining

            try:
                result = self.db.execute(
                    update(Journey)
                    .where(Journey.id == journey.id, Journey.version == journey.version)
                    .values(available_seats=seats, version=Journey.version + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    self.db.commit()
                    return True
                self.db.rollback()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Failed to update seats for journey %s: %s", journey.id, e)
                raise InfrastructureError("Seat inventory could not be updated")

            logger.info("Concurrent update on journey %s, retrying (%s/%s)",
                        journey.id, attempt, self.max_retries)

        logger.warning("Giving up seat update on train %s for %s after %s attempts",
                       train_id, journey_date, self.max_retries)
        return False
