from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, Date, Time, ForeignKey, Numeric, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base

# SQLite only autoincrements INTEGER primary keys
ID = BigInteger().with_variant(Integer, "sqlite")

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(ID, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="user")

# ================================
# Stations / Trains / Schedules
# ================================
class Station(Base):
    __tablename__ = "stations"

    id = Column(ID, primary_key=True, index=True)
    code = Column(String(10), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    city = Column(String(100))
    state = Column(String(100))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    schedules = relationship("TrainSchedule", back_populates="station")

class Train(Base):
    __tablename__ = "trains"

    id = Column(ID, primary_key=True, index=True)
    train_number = Column(String(10), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    total_coaches = Column(Integer, default=20)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    schedules = relationship("TrainSchedule", back_populates="train", order_by="TrainSchedule.sequence_order")
    journeys = relationship("Journey", back_populates="train")

class TrainSchedule(Base):
    __tablename__ = "train_schedules"

    id = Column(ID, primary_key=True, index=True)
    train_id = Column(ID, ForeignKey("trains.id"), nullable=False, index=True)
    station_id = Column(ID, ForeignKey("stations.id"), nullable=False, index=True)
    sequence_order = Column(Integer, nullable=False)
    arrival_time = Column(Time)
    departure_time = Column(Time)
    day_number = Column(Integer, default=1)

    # Relationships
    train = relationship("Train", back_populates="schedules")
    station = relationship("Station", back_populates="schedules")

# ================================
# Journeys (train running on a date) & Seat Inventory
# ================================
class Journey(Base):
    __tablename__ = "journeys"
    __table_args__ = (UniqueConstraint("train_id", "departure_date", name="uq_journey_train_date"),)

    id = Column(ID, primary_key=True, index=True)
    train_id = Column(ID, ForeignKey("trains.id"), nullable=False, index=True)
    departure_date = Column(Date, nullable=False, index=True)
    available_seats = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    train = relationship("Train", back_populates="journeys")
    bookings = relationship("Booking", back_populates="journey")

# ================================
# Fare Tables
# ================================
class FareEntry(Base):
    __tablename__ = "fare_entries"
    __table_args__ = (UniqueConstraint("fare_class", "distance_km", name="uq_fare_class_distance"),)

    id = Column(ID, primary_key=True, index=True)
    fare_class = Column(String(5), nullable=False, index=True)
    distance_km = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# ================================
# Bookings, Passengers, Payments, Notifications
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(ID, primary_key=True, index=True)
    pnr = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(ID, ForeignKey("users.id"), nullable=False, index=True)
    journey_id = Column(ID, ForeignKey("journeys.id"), nullable=False, index=True)
    train_id = Column(ID, ForeignKey("trains.id"), nullable=False)
    source_station_id = Column(ID, ForeignKey("stations.id"), nullable=False)
    dest_station_id = Column(ID, ForeignKey("stations.id"), nullable=False)
    booking_time = Column(DateTime(timezone=True), server_default=func.now())
    total_fare = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), default="waiting", index=True)
    razorpay_order_id = Column(String(64))

    # Relationships
    user = relationship("User", back_populates="bookings")
    journey = relationship("Journey", back_populates="bookings")
    train = relationship("Train")
    source_station = relationship("Station", foreign_keys=[source_station_id])
    dest_station = relationship("Station", foreign_keys=[dest_station_id])
    passengers = relationship("Passenger", back_populates="booking", order_by="Passenger.id")
    payments = relationship("Payment", back_populates="booking")

class Passenger(Base):
    __tablename__ = "passengers"

    id = Column(ID, primary_key=True, index=True)
    booking_id = Column(ID, ForeignKey("bookings.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(1), nullable=False)
    seat_number = Column(String(10))
    coach_type = Column(String(5), nullable=False)

    # Relationships
    booking = relationship("Booking", back_populates="passengers")

class Payment(Base):
    __tablename__ = "payments"

    id = Column(ID, primary_key=True, index=True)
    booking_id = Column(ID, ForeignKey("bookings.id"), nullable=False, index=True)
    method = Column(String(50))
    transaction_id = Column(String(100))
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False)
    provider = Column(String(50))
    payment_time = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="payments")

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(ID, primary_key=True, index=True)
    booking_id = Column(ID, ForeignKey("bookings.id"), nullable=False, index=True)
    email_sent = Column(Boolean, default=False)
    sms_sent = Column(Boolean, default=False)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
