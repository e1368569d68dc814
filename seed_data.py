#!/usr/bin/env python3

import logging
from datetime import time

from src.database import Base, SessionLocal, engine
from src.models import (
    Booking, FareEntry, Journey, Notification, Passenger, Payment,
    Station, Train, TrainSchedule, User
)
from src.fares.service import default_fare_entries

logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
logger = logging.getLogger("seed_data")

STATIONS = [
    ("NDLS", "New Delhi", "Delhi", "Delhi"),
    ("MMCT", "Mumbai Central", "Mumbai", "Maharashtra"),
    ("BCT", "Mumbai", "Mumbai", "Maharashtra"),
    ("DLI", "Delhi", "Delhi", "Delhi"),
    ("KOTA", "Kota", "Kota", "Rajasthan"),
    ("RTM", "Ratlam", "Ratlam", "Madhya Pradesh"),
    ("BRC", "Vadodara", "Vadodara", "Gujarat"),
    ("ST", "Surat", "Surat", "Gujarat"),
    ("MAS", "Chennai", "Chennai", "Tamil Nadu"),
    ("SBC", "Bangalore", "Bengaluru", "Karnataka"),
    ("JTJ", "Jolarpettai", "Jolarpettai", "Tamil Nadu"),
    ("KPD", "Katpadi", "Vellore", "Tamil Nadu"),
    ("HWH", "Kolkata", "Howrah", "West Bengal"),
    ("DHN", "Dhanbad", "Dhanbad", "Jharkhand"),
    ("PNBE", "Patna", "Patna", "Bihar"),
    ("CNB", "Kanpur", "Kanpur", "Uttar Pradesh"),
]

# train number, name, coaches, [(station code, arrival, departure, day)]
TRAINS = [
    ("12951", "Mumbai Rajdhani", 22, [
        ("MMCT", None, time(17, 0), 1),
        ("ST", time(19, 43), time(19, 48), 1),
        ("BRC", time(21, 6), time(21, 16), 1),
        ("RTM", time(0, 30), time(0, 33), 2),
        ("KOTA", time(3, 15), time(3, 25), 2),
        ("NDLS", time(8, 32), None, 2),
    ]),
    ("12007", "Chennai Shatabdi", 18, [
        ("MAS", None, time(6, 0), 1),
        ("KPD", time(7, 23), time(7, 25), 1),
        ("JTJ", time(8, 43), time(8, 45), 1),
        ("SBC", time(11, 0), None, 1),
    ]),
    ("12301", "Howrah Rajdhani", 21, [
        ("HWH", None, time(16, 50), 1),
        ("DHN", time(20, 7), time(20, 12), 1),
        ("PNBE", time(23, 0), time(23, 10), 1),
        ("CNB", time(5, 0), time(5, 5), 2),
        ("NDLS", time(10, 0), None, 2),
    ]),
    ("11077", "Jhelum Express", 24, [
        ("DLI", None, time(5, 0), 1),
        ("KOTA", time(12, 10), time(12, 20), 1),
        ("RTM", time(16, 35), time(16, 45), 1),
        ("BRC", time(21, 0), None, 1),
    ]),
    ("56501", "Bangalore Passenger", 12, [
        ("SBC", None, time(7, 0), 1),
        ("JTJ", time(10, 40), time(10, 50), 1),
        ("KPD", None, None, 1),
        ("MAS", time(15, 30), None, 1),
    ]),
]

USERS = [
    ("Aarav Sharma", "aarav.sharma@example.com", "9876543210"),
    ("Priya Nair", "priya.nair@example.com", "9123456780"),
]

def create_seed_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        logger.info("Creating seed data for Indian Railway Booking System...")

        # Clear existing data (in reverse dependency order)
        logger.info("Clearing existing data...")
        for model in (Notification, Payment, Passenger, Booking, Journey,
                      TrainSchedule, Train, Station, FareEntry, User):
            db.query(model).delete()

        logger.info("Creating stations...")
        stations = {
            code: Station(code=code, name=name, city=city, state=state)
            for code, name, city, state in STATIONS
        }
        db.add_all(stations.values())
        db.flush()

        logger.info("Creating trains and schedules...")
        schedule_count = 0
        for number, name, coaches, stops in TRAINS:
            train = Train(train_number=number, name=name, total_coaches=coaches)
            db.add(train)
            db.flush()

            for order, (code, arrival, departure, day) in enumerate(stops, start=1):
                db.add(TrainSchedule(
                    train_id=train.id,
                    station_id=stations[code].id,
                    sequence_order=order,
                    arrival_time=arrival,
                    departure_time=departure,
                    day_number=day
                ))
                schedule_count += 1

        logger.info("Creating users...")
        db.add_all([User(name=name, email=email, phone=phone) for name, email, phone in USERS])

        logger.info("Creating fare tables...")
        fare_entries = default_fare_entries()
        db.add_all(fare_entries)

        db.commit()
        logger.info(
            "Created %s stations, %s trains, %s schedule stops, %s users and %s fare entries",
            len(stations), len(TRAINS), schedule_count, len(USERS), len(fare_entries)
        )

    except Exception as e:
        logger.error("Error creating seed data: %s", e)
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
