"""
Booking submission.

``submit_booking`` runs every gate again at submission time, whatever the
client saw when it listed slots. The conflict check and the insert share one
critical section (see ``booking_lock``) so two overlapping submissions can
never both succeed.
"""
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Optional
import threading
import logging

from sqlalchemy.orm import Session

from spa_booking.models.availability import WeeklyAvailability
from spa_booking.models.reservation import (
    Reservation, ReservationHistory, ReservationStatus, BookingChannel
)
from spa_booking.schemas.reservation import BookingRequest
from spa_booking.services import availability_service, scheduling
from spa_booking.services.notification_service import dispatch, NotificationKind

logger = logging.getLogger(__name__)

_write_lock = threading.Lock()


@contextmanager
def booking_lock(db: Session, start_at: datetime):
    """
    Serialize check-then-write sections that touch the schedule.

    Within a process a module lock is enough. Across processes, databases
    with row locks (PostgreSQL) serialize on the weekday's schedule row;
    SQLite ignores FOR UPDATE and relies on its single-writer lock.
    """
    with _write_lock:
        try:
            db.query(WeeklyAvailability).filter(
                WeeklyAvailability.day_of_week == scheduling.day_of_week(start_at.date())
            ).with_for_update().first()
            yield
        except Exception:
            db.rollback()
            raise


@contextmanager
def schedule_lock(db: Session):
    """
    Like ``booking_lock`` but covering every weekday.

    Blocked periods can span several days, so their check-then-write takes
    all schedule rows.
    """
    with _write_lock:
        try:
            db.query(WeeklyAvailability).order_by(
                WeeklyAvailability.day_of_week
            ).with_for_update().all()
            yield
        except Exception:
            db.rollback()
            raise


def validate_slot(db: Session, start_at: datetime, duration_minutes: int, now: datetime,
                  exclude_id: Optional[int] = None):
    """Past-date, business-hours and conflict gates, in that order"""
    end_at = start_at + timedelta(minutes=duration_minutes)
    availability_service.ensure_future(start_at, now)
    availability_service.ensure_within_business_hours(db, start_at, end_at)
    availability_service.ensure_no_conflict(db, start_at, end_at, exclude_id=exclude_id)


def submit_booking(
    db: Session,
    request: BookingRequest,
    channel: BookingChannel = BookingChannel.PUBLIC,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
    status: Optional[ReservationStatus] = None
) -> Reservation:
    """Validate and create a reservation, then notify client and staff"""
    now = now or datetime.now()
    service = availability_service.get_bookable_service(db, request.service_id)

    if status is None:
        status = ReservationStatus.CONFIRMED if channel == BookingChannel.ADMIN else ReservationStatus.PENDING
    if actor is None:
        actor = "admin" if channel == BookingChannel.ADMIN else request.client_email

    with booking_lock(db, request.start_at):
        validate_slot(db, request.start_at, service.duration_minutes, now)

        reservation = Reservation(
            client_name=request.client_name,
            client_email=request.client_email,
            client_phone=request.client_phone,
            service_id=service.id,
            start_at=request.start_at,
            status=status,
            channel=channel,
            notes=request.notes
        )
        db.add(reservation)
        db.flush()

        detail = (
            "Reservation created manually by administrator"
            if channel == BookingChannel.ADMIN
            else "Reservation requested online"
        )
        db.add(ReservationHistory(
            reservation_id=reservation.id,
            action="CREATED",
            detail=detail,
            actor=actor
        ))
        db.commit()

    db.refresh(reservation)
    logger.info(
        "Reservation %s created for %s at %s (%s)",
        reservation.id, service.name, reservation.start_at.isoformat(), channel.value
    )

    dispatch(reservation, NotificationKind.CONFIRMATION)
    if channel == BookingChannel.PUBLIC:
        dispatch(reservation, NotificationKind.ADMIN_NOTICE)

    return reservation
