from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from src.models import Booking, Notification, Passenger, Payment, Station, User

class StationRepository:
    @staticmethod
    def get_station_by_name(db: Session, name: str) -> Optional[Station]:
        """Find a station by name or code, ignoring case"""
        if not name:
            return None
        needle = name.strip().lower()
        return db.query(Station).filter(
            or_(func.lower(Station.name) == needle, func.lower(Station.code) == needle)
        ).first()

class UserRepository:
    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

class BookingRepository:
    @staticmethod
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_booking_by_pnr(db: Session, pnr: str) -> Optional[Booking]:
        """Get booking by PNR with train, stations, journey and passengers"""
        return db.query(Booking).options(
            joinedload(Booking.train),
            joinedload(Booking.source_station),
            joinedload(Booking.dest_station),
            joinedload(Booking.journey),
            joinedload(Booking.passengers),
            joinedload(Booking.payments)
        ).filter(Booking.pnr == pnr).first()

    @staticmethod
    def get_bookings_by_user(db: Session, user_id: int) -> List[Booking]:
        """All bookings of a user, newest first"""
        return db.query(Booking).options(
            joinedload(Booking.train),
            joinedload(Booking.source_station),
            joinedload(Booking.dest_station),
            joinedload(Booking.journey),
            joinedload(Booking.passengers)
        ).filter(Booking.user_id == user_id).order_by(
            Booking.booking_time.desc(), Booking.id.desc()
        ).all()

    @staticmethod
    def pnr_exists(db: Session, pnr: str) -> bool:
        return db.query(Booking.id).filter(Booking.pnr == pnr).first() is not None

    @staticmethod
    def create_booking(db: Session, booking: Booking) -> Booking:
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking_status(db: Session, booking: Booking, status: str) -> Booking:
        booking.status = status
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def set_order_id(db: Session, booking: Booking, order_id: str) -> Booking:
        booking.razorpay_order_id = order_id
        db.commit()
        db.refresh(booking)
        return booking

class PassengerRepository:
    @staticmethod
    def create_passenger(db: Session, passenger: Passenger) -> Passenger:
        db.add(passenger)
        db.commit()
        db.refresh(passenger)
        return passenger

class PaymentRepository:
    @staticmethod
    def create_payment(
        db: Session,
        booking_id: int,
        amount: Decimal,
        status: str,
        transaction_id: Optional[str] = None,
        method: str = "razorpay",
        provider: str = "razorpay"
    ) -> Payment:
        payment = Payment(
            booking_id=booking_id,
            transaction_id=transaction_id,
            amount=amount,
            status=status,
            method=method,
            provider=provider,
            payment_time=datetime.now()
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_latest_payment(db: Session, booking_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.booking_id == booking_id).order_by(Payment.id.desc()).first()

class NotificationRepository:
    @staticmethod
    def create_notification(db: Session, booking_id: int, email_sent: bool, sms_sent: bool) -> Notification:
        notification = Notification(
            booking_id=booking_id,
            email_sent=email_sent,
            sms_sent=sms_sent,
            sent_at=datetime.now()
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification
