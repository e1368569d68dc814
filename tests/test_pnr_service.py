"""Tests for PNR lookup and booking history"""
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from src.models import Booking, Journey, Passenger, Payment
from src.bookings.pnr_service import PNRService, format_status
from src.bookings.repository import BookingRepository
from src.bookings.schemas import BookingOutcome, BookingStatus


@pytest.fixture
def add_booking(db_session, seeded, journey_date):
    journey = Journey(train_id=seeded.rajdhani.id, departure_date=journey_date, available_seats={"SL": 10})
    db_session.add(journey)
    db_session.commit()

    def _add(pnr, status, fare, booked_at, user=None, passengers=1):
        booking = Booking(
            pnr=pnr, user_id=(user or seeded.user).id, journey_id=journey.id, train_id=seeded.rajdhani.id,
            source_station_id=seeded.mumbai.id, dest_station_id=seeded.delhi.id,
            total_fare=Decimal(fare), status=status, booking_time=booked_at
        )
        db_session.add(booking)
        db_session.flush()
        for index in range(1, passengers + 1):
            db_session.add(Passenger(booking_id=booking.id, name=f"Passenger {index}", age=30,
                                     gender="O", coach_type="SL", seat_number=f"S{index}"))
        db_session.commit()
        return booking
    return _add


@pytest.fixture
def pnr_service(db_session):
    return PNRService(db_session)


class TestFormatStatus:

    @pytest.mark.parametrize("raw,display", [
        ("confirmed", "CONFIRMED"),
        ("conformed", "CONFIRMED"),
        ("waiting", "PENDING"),
        ("Pending", "PENDING"),
        ("canceled", "CANCELLED"),
        ("refunded", "REFUNDED"),
        (None, ""),
    ])
    def test_display_names(self, raw, display):
        assert format_status(raw) == display


class TestPNRStatus:

    def test_found(self, pnr_service, add_booking, db_session, journey_date):
        booking = add_booking("PNR0000042", "confirmed", "1050.00", datetime(2024, 6, 1, 9, 0), passengers=2)
        db_session.add(Payment(booking_id=booking.id, amount=Decimal("1050.00"), status="success",
                               transaction_id="pay_1", method="razorpay", provider="razorpay"))
        db_session.commit()

        result = pnr_service.get_pnr_status("  pnr0000042 ")

        assert result.outcome is BookingOutcome.SUCCESS
        details = result.details
        assert details.pnr == "PNR0000042"
        assert details.status is BookingStatus.CONFIRMED
        assert details.status_display == "CONFIRMED"
        assert details.train_number == "12951"
        assert details.from_station == "Mumbai"
        assert details.to_station == "Delhi"
        assert details.journey_date == journey_date
        assert [p.seat_number for p in details.passengers] == ["S1", "S2"]
        assert details.payment.transaction_id == "pay_1"

    def test_waiting_shown_as_pending(self, pnr_service, add_booking):
        add_booking("PNR0000043", "waiting", "525.00", datetime(2024, 6, 1, 9, 0))

        details = pnr_service.get_pnr_status("PNR0000043").details

        assert details.status_display == "PENDING"
        assert details.payment is None

    def test_unknown_status_is_reported_not_rejected(self, pnr_service, add_booking):
        add_booking("PNR0000044", "refunded", "525.00", datetime(2024, 6, 1, 9, 0))

        result = pnr_service.get_pnr_status("PNR0000044")

        assert result.outcome is BookingOutcome.SUCCESS
        assert result.details.status is None
        assert result.details.status_display == "REFUNDED"
        assert result.details.total_fare == Decimal("525.00")

    def test_not_found(self, pnr_service, seeded):
        assert pnr_service.get_pnr_status("PNR9999999").outcome is BookingOutcome.NOT_FOUND

    @pytest.mark.parametrize("pnr", ["", "   ", None])
    def test_blank_pnr(self, pnr_service, pnr):
        assert pnr_service.get_pnr_status(pnr).outcome is BookingOutcome.INVALID

    def test_database_error(self, pnr_service):
        with patch.object(BookingRepository, "get_booking_by_pnr",
                          side_effect=OperationalError("SELECT", {}, Exception("gone away"))):
            assert pnr_service.get_pnr_status("PNR0000042").outcome is BookingOutcome.ERROR


class TestBookingHistory:

    @pytest.fixture
    def history(self, add_booking, seeded):
        add_booking("PNR0000001", "confirmed", "1000.00", datetime(2024, 6, 1, 9, 0), passengers=2)
        add_booking("PNR0000002", "waiting", "500.00", datetime(2024, 6, 3, 9, 0))
        add_booking("PNR0000003", "cancelled", "700.00", datetime(2024, 6, 2, 9, 0))
        add_booking("PNR0000004", "conformed", "250.00", datetime(2024, 6, 4, 9, 0))
        add_booking("PNR0000005", "confirmed", "900.00", datetime(2024, 6, 5, 9, 0), user=seeded.other_user)

    def test_newest_first(self, pnr_service, history, seeded):
        result = pnr_service.get_user_bookings(seeded.user.id)

        assert result.outcome is BookingOutcome.SUCCESS
        assert [b.pnr for b in result.bookings] == ["PNR0000004", "PNR0000002", "PNR0000003", "PNR0000001"]
        assert result.bookings[-1].passenger_count == 2
        assert result.bookings[0].status is BookingStatus.CONFIRMED

    def test_status_filter(self, pnr_service, history, seeded):
        result = pnr_service.get_user_bookings(seeded.user.id, BookingStatus.CONFIRMED)

        assert [b.pnr for b in result.bookings] == ["PNR0000004", "PNR0000001"]

    def test_unknown_status_rows_are_listed(self, pnr_service, history, add_booking, seeded):
        add_booking("PNR0000006", "refunded", "300.00", datetime(2024, 6, 6, 9, 0))

        result = pnr_service.get_user_bookings(seeded.user.id)

        assert result.outcome is BookingOutcome.SUCCESS
        assert len(result.bookings) == 5
        refunded = result.bookings[0]
        assert refunded.pnr == "PNR0000006"
        assert refunded.status is None
        assert refunded.status_display == "REFUNDED"

    def test_unknown_status_rows_match_no_filter(self, pnr_service, history, add_booking, seeded):
        add_booking("PNR0000006", "refunded", "300.00", datetime(2024, 6, 6, 9, 0))

        for status in BookingStatus:
            pnrs = [b.pnr for b in pnr_service.get_user_bookings(seeded.user.id, status).bookings]
            assert "PNR0000006" not in pnrs

    def test_user_without_bookings(self, pnr_service, seeded):
        result = pnr_service.get_user_bookings(seeded.other_user.id)

        assert result.outcome is BookingOutcome.SUCCESS
        assert result.bookings == []

    def test_statistics(self, pnr_service, history, seeded):
        stats = pnr_service.get_booking_statistics(seeded.user.id)

        assert stats.total_bookings == 4
        assert stats.confirmed_bookings == 2
        assert stats.waiting_bookings == 1
        assert stats.cancelled_bookings == 1
        assert stats.other_bookings == 0
        assert stats.total_spent == Decimal("1250.00")

    def test_statistics_count_unknown_statuses_separately(self, pnr_service, history, add_booking, seeded):
        add_booking("PNR0000006", "refunded", "300.00", datetime(2024, 6, 6, 9, 0))

        stats = pnr_service.get_booking_statistics(seeded.user.id)

        assert stats.total_bookings == 5
        assert stats.confirmed_bookings == 2
        assert stats.cancelled_bookings == 1
        assert stats.other_bookings == 1
        assert stats.total_spent == Decimal("1250.00")

    def test_statistics_on_database_error(self, pnr_service, seeded):
        with patch.object(BookingRepository, "get_bookings_by_user",
                          side_effect=OperationalError("SELECT", {}, Exception("gone away"))):
            stats = pnr_service.get_booking_statistics(seeded.user.id)

        assert stats.total_bookings == 0
        assert stats.total_spent == Decimal("0.00")
