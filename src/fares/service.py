from typing import Callable, Dict, List, Optional, Tuple
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from src.config import settings
from src.exceptions import InfrastructureError, InvalidRequestError
from src.models import FareEntry
from src.fares.schemas import FareClass, FareQuote, FareComparison
from src.fares.tables import DistanceTable, to_money, round_to_nearest

logger = logging.getLogger(__name__)

# Sample fare structure (distance km -> price) for Sleeper; other classes scale it
SAMPLE_FARE_TABLE = {
    100: Decimal("150.00"),
    250: Decimal("300.00"),
    500: Decimal("550.00"),
    750: Decimal("750.00"),
    1000: Decimal("950.00"),
}

CLASS_MULTIPLIERS = {
    FareClass.SLEEPER: Decimal("1.0"),
    FareClass.AC_THREE_TIER: Decimal("2.5"),
    FareClass.AC_TWO_TIER: Decimal("3.5"),
    FareClass.AC_FIRST_CLASS: Decimal("6.0"),
}

FLAT_RATE_PER_KM = Decimal("1.50")

# Distance (km) from which the discount percentage applies
DISTANCE_DISCOUNT_TIERS = {
    0: Decimal("0"),
    300: Decimal("5"),
    800: Decimal("10"),
    1500: Decimal("15"),
}

CLASS_PREMIUM_PERCENTAGES = {
    FareClass.SLEEPER: Decimal("0"),
    FareClass.AC_THREE_TIER: Decimal("5"),
    FareClass.AC_TWO_TIER: Decimal("10"),
    FareClass.AC_FIRST_CLASS: Decimal("15"),
}

WEEKEND_MULTIPLIER = Decimal("1.10")

# (start hour inclusive, end hour exclusive, label, multiplier) for weekdays
WEEKDAY_TIME_BUCKETS = [
    (0, 6, "early_morning", Decimal("0.90")),
    (6, 10, "morning_peak", Decimal("1.15")),
    (10, 17, "daytime", Decimal("1.00")),
    (17, 21, "evening_peak", Decimal("1.20")),
    (21, 24, "night", Decimal("0.95")),
]

SURGE_MULTIPLIERS = {
    FareClass.SLEEPER: Decimal("1.20"),
    FareClass.AC_THREE_TIER: Decimal("1.15"),
    FareClass.AC_TWO_TIER: Decimal("1.10"),
    FareClass.AC_FIRST_CLASS: Decimal("1.05"),
}

POPULAR_ROUTE_PAIRS = [
    ("delhi", "mumbai"),
    ("bangalore", "chennai"),
    ("kolkata", "delhi"),
]

FALLBACK_RATE_PER_KM = {
    FareClass.SLEEPER: Decimal("0.75"),
    FareClass.AC_THREE_TIER: Decimal("2.25"),
    FareClass.AC_TWO_TIER: Decimal("3.50"),
    FareClass.AC_FIRST_CLASS: Decimal("5.50"),
}

RESERVATION_CHARGES = {
    FareClass.SLEEPER: Decimal("30"),
    FareClass.AC_THREE_TIER: Decimal("50"),
    FareClass.AC_TWO_TIER: Decimal("75"),
    FareClass.AC_FIRST_CLASS: Decimal("125"),
}

MINIMUM_FARE_PER_PASSENGER = Decimal("200")

def default_fare_entries() -> List[FareEntry]:
    """Seed rows: the sample table scaled by each class multiplier"""
    entries = []
    for fare_class, multiplier in CLASS_MULTIPLIERS.items():
        for distance_km, price in SAMPLE_FARE_TABLE.items():
            entries.append(FareEntry(
                fare_class=fare_class.value,
                distance_km=distance_km,
                price=to_money(price * multiplier)
            ))
    return entries


class FareCalculationService:
    """Service for calculating ticket fares per class and distance"""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or datetime.now
        self._fare_tables: Dict[FareClass, DistanceTable] = {}
        self._discount_tiers = DistanceTable(DISTANCE_DISCOUNT_TIERS)
        self._load_fare_tables()

    def _load_fare_tables(self):
        """Load and cache fare tables for all classes"""
        for fare_class in FareClass:
            self._fare_tables[fare_class] = DistanceTable()
        try:
            entries = self.db.query(FareEntry).all()
        except SQLAlchemyError as e:
            logger.error("Failed to load fare tables: %s", e)
            raise InfrastructureError("Fare tables could not be loaded")
        for entry in entries:
            try:
                fare_class = FareClass(entry.fare_class)
            except ValueError:
                logger.warning("Skipping fare entry %s with unknown class %s", entry.id, entry.fare_class)
                continue
            self._fare_tables[fare_class].set(entry.distance_km, entry.price)

    def price_for(self, fare_class: FareClass, distance_km: int) -> Decimal:
        """Base price from the class table, interpolated when no exact entry exists"""
        if distance_km <= 0:
            raise InvalidRequestError("Distance must be positive")

        price = self._fare_tables[fare_class].interpolate(distance_km)
        if price is None:
            # Empty table: flat per-km rate with class multiplier
            price = FLAT_RATE_PER_KM * Decimal(distance_km) * CLASS_MULTIPLIERS[fare_class]
        return to_money(price)

    def distance_discount(self, distance_km: int) -> Decimal:
        """Discount percentage for the tier the distance falls into"""
        tier = self._discount_tiers.floor_entry(distance_km)
        return tier[1] if tier else Decimal("0")

    def time_multiplier(self, at: Optional[datetime] = None) -> Tuple[str, Decimal]:
        """Bucket label and multiplier for the given moment (default: now)"""
        moment = at or self.clock()
        if moment.weekday() >= 5:
            return "weekend", WEEKEND_MULTIPLIER
        for start, end, label, multiplier in WEEKDAY_TIME_BUCKETS:
            if start <= moment.hour < end:
                return label, multiplier
        return "daytime", Decimal("1.00")

    def is_popular_route(self, from_station: Optional[str], to_station: Optional[str]) -> bool:
        if not from_station or not to_station:
            return False
        route = f"{from_station.lower()}-{to_station.lower()}"
        return any(a in route and b in route for a, b in POPULAR_ROUTE_PAIRS)

    def dynamic_fare(
        self,
        fare_class: FareClass,
        distance_km: int,
        at: Optional[datetime] = None
    ) -> FareQuote:
        """Per-passenger fare with distance, time-of-day and class adjustments"""
        return self.quote(fare_class, distance_km, passenger_count=1, at=at)

    def quote(
        self,
        fare_class: FareClass,
        distance_km: int,
        passenger_count: int = 1,
        from_station: Optional[str] = None,
        to_station: Optional[str] = None,
        at: Optional[datetime] = None
    ) -> FareQuote:
        """Calculate a complete fare quote for a group travelling together"""
        if passenger_count <= 0:
            raise InvalidRequestError("At least one passenger is required")

        base_fare = self.price_for(fare_class, distance_km)
        discount_percentage = self.distance_discount(distance_km)
        time_bucket, time_multiplier = self.time_multiplier(at)
        premium_percentage = CLASS_PREMIUM_PERCENTAGES[fare_class]

        fare = base_fare * (Decimal("100") - discount_percentage) / Decimal("100")
        fare = fare * time_multiplier
        fare = fare * (Decimal("100") + premium_percentage) / Decimal("100")

        surge_multiplier = Decimal("1")
        if self.is_popular_route(from_station, to_station):
            surge_multiplier = SURGE_MULTIPLIERS[fare_class]
            fare = fare * surge_multiplier

        fare_per_passenger = to_money(round_to_nearest(fare, 5))

        logger.debug(
            "Fare %s %skm: base=%s discount=%s%% time=%s(%s) premium=%s%% surge=%s -> %s",
            fare_class.value, distance_km, base_fare, discount_percentage,
            time_bucket, time_multiplier, premium_percentage, surge_multiplier, fare_per_passenger
        )

        return FareQuote(
            fare_class=fare_class,
            distance_km=distance_km,
            base_fare=base_fare,
            distance_discount_percentage=discount_percentage,
            time_bucket=time_bucket,
            time_multiplier=time_multiplier,
            class_premium_percentage=premium_percentage,
            surge_multiplier=surge_multiplier,
            fare_per_passenger=fare_per_passenger,
            passenger_count=passenger_count,
            total_fare=fare_per_passenger * passenger_count,
            currency=settings.CURRENCY
        )

    def compare_classes(self, distance_km: int, at: Optional[datetime] = None) -> FareComparison:
        """Quote every class over the same distance"""
        quotes = [self.dynamic_fare(fare_class, distance_km, at) for fare_class in FareClass]
        return FareComparison(distance_km=distance_km, quotes=quotes)

    def fallback_fare(self, fare_class: FareClass, distance_km: int, passenger_count: int) -> Decimal:
        """Per-km fare plus reservation charge when dynamic pricing is unavailable"""
        per_passenger = Decimal(distance_km) * FALLBACK_RATE_PER_KM[fare_class] + RESERVATION_CHARGES[fare_class]
        return to_money(max(
            per_passenger * passenger_count,
            MINIMUM_FARE_PER_PASSENGER * passenger_count
        ))

    def get_fare_table(self, fare_class: FareClass) -> Dict[int, Decimal]:
        return self._fare_tables[fare_class].as_dict()

    def get_fare_range(self, fare_class: FareClass, min_distance: int, max_distance: int) -> Dict[int, Decimal]:
        if min_distance > max_distance:
            raise InvalidRequestError("min_distance must not exceed max_distance")
        return self._fare_tables[fare_class].sub_range(min_distance, max_distance)

    def set_fare(self, fare_class: FareClass, distance_km: int, price: Decimal) -> Dict[int, Decimal]:
        """Insert or replace a fare table entry"""
        if distance_km <= 0:
            raise InvalidRequestError("Distance must be positive")
        if price <= 0:
            raise InvalidRequestError("Price must be positive")

        price = to_money(price)
        try:
            entry = self.db.query(FareEntry).filter(
                FareEntry.fare_class == fare_class.value,
                FareEntry.distance_km == distance_km
            ).first()
            if entry:
                entry.price = price
            else:
                self.db.add(FareEntry(fare_class=fare_class.value, distance_km=distance_km, price=price))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to store fare %s/%skm: %s", fare_class.value, distance_km, e)
            raise InfrastructureError("Fare could not be saved")

        self._fare_tables[fare_class].set(distance_km, price)
        logger.info("Fare for %s at %s km set to %s", fare_class.value, distance_km, price)
        return self.get_fare_table(fare_class)
