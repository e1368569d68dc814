"""Tests for SeatInventoryService"""
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from src.config import settings
from src.exceptions import InfrastructureError, InvalidRequestError, NotFoundError
from src.fares.schemas import FareClass
from src.inventory.service import DEFAULT_CAPACITY, SeatInventoryService
from src.models import Journey, Train


@pytest.fixture
def inventory(db_session, rng):
    return SeatInventoryService(db_session, rng=rng)


class TestDefaultCapacity:

    @pytest.mark.parametrize("name,category", [
        ("Mumbai Rajdhani", "premium"),
        ("Chennai Shatabdi", "premium"),
        ("Jhelum Express", "express"),
        ("Coastal Passenger", "regular"),
    ])
    def test_capacity_within_category_bounds(self, inventory, name, category):
        seats = inventory.default_capacity(Train(train_number="10001", name=name))

        assert set(seats) == {"SL", "3A", "2A", "1A"}
        for fare_class, (base, jitter) in DEFAULT_CAPACITY[category].items():
            assert base <= seats[fare_class] < base + jitter

    def test_jitter_comes_from_injected_random_source(self, db_session):
        class FixedRandom:
            def randrange(self, upper):
                return 0

        inventory = SeatInventoryService(db_session, rng=FixedRandom())

        assert inventory.default_capacity(Train(train_number="12951", name="Mumbai Rajdhani")) == {
            "SL": 80, "3A": 60, "2A": 40, "1A": 20
        }


class TestAvailability:

    def test_creates_journey_with_default_capacity(self, inventory, seeded, journey_date, db_session):
        seats = inventory.get_availability(seeded.rajdhani.id, journey_date)

        journey = db_session.query(Journey).filter_by(train_id=seeded.rajdhani.id).one()
        assert journey.departure_date == journey_date
        assert seats == journey.available_seats
        assert 80 <= seats["SL"] < 100

    def test_existing_journey_is_reused(self, inventory, seeded, journey_date, make_journey, db_session):
        make_journey(seeded.rajdhani, journey_date, {"SL": 10})

        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 10}
        assert db_session.query(Journey).count() == 1

    def test_returns_a_copy(self, inventory, seeded, journey_date, make_journey):
        make_journey(seeded.rajdhani, journey_date, {"SL": 10})

        seats = inventory.get_availability(seeded.rajdhani.id, journey_date)
        seats["SL"] = 0

        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 10}

    def test_defaults_to_today(self, inventory, seeded, db_session):
        inventory.get_availability(seeded.rajdhani.id)

        journey = db_session.query(Journey).one()
        assert journey.departure_date == date.today()

    def test_unknown_train_raises_not_found(self, inventory, seeded, journey_date):
        with pytest.raises(NotFoundError):
            inventory.ensure_journey(9999, journey_date)


class TestReserve:
    """reserve/release keep counts consistent and never negative"""

    def test_reserve_all_then_one_more(self, inventory, seeded, journey_date, make_journey):
        # Arrange
        make_journey(seeded.rajdhani, journey_date, {"SL": 10})

        # Act / Assert
        assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 10) is True
        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 0}
        assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 1) is False
        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 0}

    def test_reserve_decrements_by_exactly_n(self, inventory, seeded, journey_date, make_journey):
        make_journey(seeded.rajdhani, journey_date, {"SL": 10, "3A": 5})

        assert inventory.reserve(seeded.rajdhani.id, journey_date, FareClass.AC_THREE_TIER, 2) is True

        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 10, "3A": 3}

    def test_reserve_more_than_available_changes_nothing(self, inventory, seeded, journey_date, make_journey, db_session):
        journey = make_journey(seeded.rajdhani, journey_date, {"SL": 3})

        assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 4) is False

        db_session.refresh(journey)
        assert journey.available_seats == {"SL": 3}
        assert journey.version == 0

    def test_reserve_without_journey_returns_false(self, inventory, seeded, journey_date, db_session):
        assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 1) is False
        assert db_session.query(Journey).count() == 0

    def test_each_update_bumps_version(self, inventory, seeded, journey_date, make_journey, db_session):
        journey = make_journey(seeded.rajdhani, journey_date, {"SL": 10})

        inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 1)
        inventory.release(seeded.rajdhani.id, journey_date, "SL", 1)

        db_session.refresh(journey)
        assert journey.version == 2
        assert journey.available_seats == {"SL": 10}

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_count_is_rejected(self, inventory, seeded, journey_date, count):
        with pytest.raises(InvalidRequestError):
            inventory.reserve(seeded.rajdhani.id, journey_date, "SL", count)

    def test_unknown_class_is_rejected(self, inventory, seeded, journey_date, make_journey):
        make_journey(seeded.rajdhani, journey_date, {"SL": 10})

        with pytest.raises(InvalidRequestError):
            inventory.reserve(seeded.rajdhani.id, journey_date, "CC", 1)

    def test_release_adds_seats(self, inventory, seeded, journey_date, make_journey):
        make_journey(seeded.rajdhani, journey_date, {"SL": 0})

        assert inventory.release(seeded.rajdhani.id, journey_date, "SL", 2) is True
        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 2}

    def test_release_without_journey_returns_false(self, inventory, seeded):
        assert inventory.release(seeded.rajdhani.id, date.today() + timedelta(days=30), "SL", 1) is False


class TestConcurrentUpdates:
    """Conditional update on the version column"""

    def _stale_copy(self, journey):
        return Journey(
            id=journey.id,
            train_id=journey.train_id,
            departure_date=journey.departure_date,
            available_seats=dict(journey.available_seats),
            version=journey.version - 1
        )

    def test_lost_race_is_retried(self, db_session, seeded, journey_date, make_journey):
        journey = make_journey(seeded.rajdhani, journey_date, {"SL": 10})
        journey.version = 1
        db_session.commit()

        inventory = SeatInventoryService(db_session, max_retries=3)
        real_get_journey = inventory.get_journey
        reads = [self._stale_copy(journey)]

        def get_journey(train_id, when):
            return reads.pop() if reads else real_get_journey(train_id, when)

        with patch.object(inventory, "get_journey", side_effect=get_journey):
            assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 4) is True

        assert inventory.get_availability(seeded.rajdhani.id, journey_date) == {"SL": 6}

    def test_gives_up_after_max_retries(self, db_session, seeded, journey_date, make_journey):
        journey = make_journey(seeded.rajdhani, journey_date, {"SL": 10})
        journey.version = 1
        db_session.commit()
        stale = self._stale_copy(journey)

        inventory = SeatInventoryService(db_session, max_retries=2)

        with patch.object(inventory, "get_journey", return_value=stale) as mock_get:
            assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 4) is False
            assert mock_get.call_count == 2

        db_session.refresh(journey)
        assert journey.available_seats == {"SL": 10}

    def test_retry_budget_defaults_to_setting(self, db_session):
        assert SeatInventoryService(db_session).max_retries == settings.INVENTORY_MAX_RETRIES

    def test_zero_retries_is_honoured(self, db_session, seeded, journey_date, make_journey):
        """An explicit zero must not fall back to the configured default"""
        journey = make_journey(seeded.rajdhani, journey_date, {"SL": 10})
        inventory = SeatInventoryService(db_session, max_retries=0)

        with patch.object(inventory, "get_journey") as mock_get:
            assert inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 4) is False
            mock_get.assert_not_called()

        assert inventory.max_retries == 0
        db_session.refresh(journey)
        assert journey.available_seats == {"SL": 10}

    def test_database_failure_raises_infrastructure_error(self, inventory, seeded, journey_date, make_journey):
        make_journey(seeded.rajdhani, journey_date, {"SL": 10})

        with patch.object(inventory.db, "execute", side_effect=OperationalError("UPDATE", {}, Exception("locked"))):
            with pytest.raises(InfrastructureError):
                inventory.reserve(seeded.rajdhani.id, journey_date, "SL", 1)
