from datetime import datetime
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from spa_booking.database import Base
from spa_booking.errors import (
    OutsideBusinessHoursError,
    PastDateError,
    ServiceInactiveError,
    ServiceNotFoundError,
    SlotUnavailableError,
)
from spa_booking.models import BlockedInterval, Reservation, ReservationStatus, BookingChannel
from spa_booking.seed import seed_schedule, seed_services
from spa_booking.services import availability_service, booking_service, notification_service
from spa_booking.services.booking_service import submit_booking

from .conftest import BEFORE_MONDAY, MONDAY, SUNDAY


def at(hour, minute=0, on=MONDAY):
    return datetime.combine(on, datetime.min.time()).replace(hour=hour, minute=minute)


class TestSubmitBooking:
    """Every gate runs again at submission time"""

    def test_creates_pending_reservation_with_history(self, db, massage, booking_request, outbox):
        reservation = submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)

        assert reservation.id is not None
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.channel == BookingChannel.PUBLIC
        assert reservation.end_at == at(11)
        assert [h.action for h in reservation.history] == ["CREATED"]
        assert reservation.history[0].actor == "ana@example.com"

        subjects = [m["subject"] for m in outbox]
        assert subjects == [
            f"Reservation received - {massage.name}",
            f"New reservation - {massage.name}",
        ]

    def test_admin_channel_defaults_to_confirmed(self, db, massage, booking_request, outbox):
        reservation = submit_booking(
            db, booking_request(massage.id, at(10)),
            channel=BookingChannel.ADMIN, actor="staff@spa.test", now=BEFORE_MONDAY
        )

        assert reservation.status == ReservationStatus.CONFIRMED
        assert reservation.history[0].actor == "staff@spa.test"
        assert len(outbox) == 1

    def test_unknown_service(self, db, schedule, booking_request):
        with pytest.raises(ServiceNotFoundError):
            submit_booking(db, booking_request(999, at(10)), now=BEFORE_MONDAY)

    def test_inactive_service(self, db, massage, booking_request):
        massage.is_active = False
        db.commit()

        with pytest.raises(ServiceInactiveError):
            submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)

    def test_past_date(self, db, massage, booking_request):
        with pytest.raises(PastDateError):
            submit_booking(db, booking_request(massage.id, at(10)), now=at(10))

    def test_outside_business_hours_names_the_window(self, db, massage, booking_request):
        with pytest.raises(OutsideBusinessHoursError) as exc_info:
            submit_booking(db, booking_request(massage.id, at(17, 30)), now=BEFORE_MONDAY)

        assert "Monday-Friday 9:00-18:00" in exc_info.value.message
        assert exc_info.value.code == "OutsideBusinessHours"

    def test_closed_weekday(self, db, massage, booking_request):
        with pytest.raises(OutsideBusinessHoursError):
            submit_booking(db, booking_request(massage.id, at(10, on=SUNDAY)), now=BEFORE_MONDAY)

    def test_overlapping_reservation(self, db, massage, booking_request):
        submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)

        with pytest.raises(SlotUnavailableError) as exc_info:
            submit_booking(
                db, booking_request(massage.id, at(10, 30), client_email="bo@example.com"),
                now=BEFORE_MONDAY
            )
        assert exc_info.value.details == {"conflict": "reservation"}
        assert db.query(Reservation).count() == 1

    def test_touching_reservations_are_allowed(self, db, massage, booking_request):
        submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)
        second = submit_booking(db, booking_request(massage.id, at(11)), now=BEFORE_MONDAY)

        assert second.start_at == at(11)

    def test_cancelled_reservation_frees_the_slot(self, db, massage, booking_request):
        first = submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)
        first.status = ReservationStatus.CANCELLED
        db.commit()

        again = submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)
        assert again.status == ReservationStatus.PENDING

    def test_blocked_interval(self, db, massage, booking_request):
        db.add(BlockedInterval(start_at=at(12), end_at=at(14), reason="Staff training"))
        db.commit()

        with pytest.raises(SlotUnavailableError) as exc_info:
            submit_booking(db, booking_request(massage.id, at(11, 30)), now=BEFORE_MONDAY)
        assert "Staff training" in exc_info.value.message

    def test_inactive_block_is_ignored(self, db, massage, booking_request):
        db.add(BlockedInterval(start_at=at(12), end_at=at(14), reason="Old", is_active=False))
        db.commit()

        reservation = submit_booking(db, booking_request(massage.id, at(12)), now=BEFORE_MONDAY)
        assert reservation.id is not None

    def test_notification_failure_keeps_reservation(self, db, massage, booking_request, monkeypatch):
        def broken_send_email(**kwargs):
            raise RuntimeError("SMTP down")

        monkeypatch.setattr(notification_service, "send_email", broken_send_email)

        reservation = submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)

        assert db.query(Reservation).filter(Reservation.id == reservation.id).count() == 1

    def test_every_generated_slot_can_be_booked(self, db, massage, booking_request):
        submit_booking(db, booking_request(massage.id, at(14)), now=BEFORE_MONDAY)
        slots = availability_service.get_available_slots(db, MONDAY, massage.id, now=BEFORE_MONDAY)

        # Book alternate slots so none of them overlap each other
        for slot in slots[::2]:
            hour, minute = map(int, slot.split(":"))
            submit_booking(db, booking_request(massage.id, at(hour, minute)), now=BEFORE_MONDAY)


class TestConcurrentBooking:
    """Two clients racing for the same slot"""

    @pytest.fixture
    def file_session_factory(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(engine)
        factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        session = factory()
        seed_schedule(session)
        seed_services(session)
        session.commit()
        session.close()
        yield factory
        engine.dispose()

    def test_exactly_one_booking_wins(self, file_session_factory, booking_request):
        from spa_booking.models import Service

        session = file_session_factory()
        service_id = session.query(Service).filter(Service.duration_minutes == 60).first().id
        session.close()

        barrier = threading.Barrier(2)
        outcomes = []

        def book(start_at, email):
            local = file_session_factory()
            try:
                barrier.wait()
                submit_booking(
                    local,
                    booking_request(service_id, start_at, client_email=email),
                    now=BEFORE_MONDAY,
                )
                outcomes.append("ok")
            except SlotUnavailableError:
                outcomes.append("SlotUnavailable")
            finally:
                local.close()

        threads = [
            threading.Thread(target=book, args=(at(10), "first@example.com")),
            threading.Thread(target=book, args=(at(10, 30), "second@example.com")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(outcomes) == ["SlotUnavailable", "ok"]

        check = file_session_factory()
        assert check.query(Reservation).count() == 1
        check.close()

    def test_lock_releases_after_failure(self, db, massage, booking_request):
        with pytest.raises(PastDateError):
            submit_booking(db, booking_request(massage.id, at(10)), now=at(12))

        assert not booking_service._write_lock.locked()
        reservation = submit_booking(db, booking_request(massage.id, at(10)), now=BEFORE_MONDAY)
        assert reservation.id is not None

    def test_lock_rolls_back_when_row_lock_fails(self):
        class UnreachableSession:
            rolled_back = False

            def query(self, *args):
                raise RuntimeError("connection lost")

            def rollback(self):
                self.rolled_back = True

        session = UnreachableSession()

        with pytest.raises(RuntimeError):
            with booking_service.booking_lock(session, at(10)):
                pass

        assert session.rolled_back is True
        assert not booking_service._write_lock.locked()

    def test_overlapping_blocks_cannot_both_be_created(self, file_session_factory):
        from spa_booking.errors import OverlappingBlockError
        from spa_booking.schemas.availability import BlockedIntervalInput
        from spa_booking.services import blocked_interval_service

        barrier = threading.Barrier(2)
        outcomes = []

        def create(start_at, end_at):
            local = file_session_factory()
            try:
                barrier.wait()
                blocked_interval_service.create_blocked_interval(
                    local, BlockedIntervalInput(start_at=start_at, end_at=end_at, reason="Maintenance")
                )
                outcomes.append("ok")
            except OverlappingBlockError:
                outcomes.append("OverlappingBlock")
            finally:
                local.close()

        threads = [
            threading.Thread(target=create, args=(at(12), at(14))),
            threading.Thread(target=create, args=(at(13), at(15))),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(outcomes) == ["OverlappingBlock", "ok"]

        check = file_session_factory()
        assert check.query(BlockedInterval).count() == 1
        check.close()
