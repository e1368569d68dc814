"""Shared fixtures: in-memory SQLite database with a small seeded network"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RAZORPAY_KEY_ID", "")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "")

import random
from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database import Base
from src.models import Journey, Station, Train, TrainSchedule, User
from src.fares.service import default_fare_entries


@pytest.fixture
def engine():
    """Fresh in-memory database shared by every session of a test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def journey_date():
    """A date safely in the future"""
    return date.today() + timedelta(days=7)


@pytest.fixture
def seeded(db_session):
    """Stations, two trains with schedules, a user and the default fare tables"""
    mumbai = Station(code="BCT", name="Mumbai", city="Mumbai", state="Maharashtra")
    surat = Station(code="ST", name="Surat", city="Surat", state="Gujarat")
    vadodara = Station(code="BRC", name="Vadodara", city="Vadodara", state="Gujarat")
    delhi = Station(code="NDLS", name="Delhi", city="Delhi", state="Delhi")
    db_session.add_all([mumbai, surat, vadodara, delhi])
    db_session.flush()

    rajdhani = Train(train_number="12951", name="Mumbai Rajdhani", total_coaches=22)
    passenger = Train(train_number="59001", name="Coastal Passenger", total_coaches=12)
    db_session.add_all([rajdhani, passenger])
    db_session.flush()

    db_session.add_all([
        TrainSchedule(train_id=rajdhani.id, station_id=mumbai.id, sequence_order=1,
                      departure_time=time(17, 0), day_number=1),
        TrainSchedule(train_id=rajdhani.id, station_id=surat.id, sequence_order=2,
                      arrival_time=time(19, 43), departure_time=time(19, 48), day_number=1),
        TrainSchedule(train_id=rajdhani.id, station_id=vadodara.id, sequence_order=3,
                      arrival_time=time(21, 6), departure_time=time(21, 16), day_number=1),
        TrainSchedule(train_id=rajdhani.id, station_id=delhi.id, sequence_order=4,
                      arrival_time=time(8, 32), day_number=2),
        # Passenger train runs the other way and has no timings
        TrainSchedule(train_id=passenger.id, station_id=vadodara.id, sequence_order=1, day_number=1),
        TrainSchedule(train_id=passenger.id, station_id=surat.id, sequence_order=2, day_number=1),
        TrainSchedule(train_id=passenger.id, station_id=mumbai.id, sequence_order=3, day_number=1),
    ])

    user = User(name="Aarav Sharma", email="aarav@example.com", phone="9876543210")
    other_user = User(name="Priya Nair", email="priya@example.com", phone="9123456780")
    db_session.add_all([user, other_user])
    db_session.add_all(default_fare_entries())
    db_session.commit()

    return SimpleNamespace(
        mumbai=mumbai, surat=surat, vadodara=vadodara, delhi=delhi,
        rajdhani=rajdhani, passenger=passenger,
        user=user, other_user=other_user
    )


@pytest.fixture
def make_journey(db_session):
    """Create a journey with explicit seat counts"""
    def _make(train, journey_date, seats):
        journey = Journey(train_id=train.id, departure_date=journey_date, available_seats=dict(seats), version=0)
        db_session.add(journey)
        db_session.commit()
        db_session.refresh(journey)
        return journey
    return _make


@pytest.fixture
def rng():
    return random.Random(42)
