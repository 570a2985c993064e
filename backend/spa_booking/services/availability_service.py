from typing import Dict, List, Optional
from datetime import date, datetime, timedelta
from sqlalchemy.orm import Session
from spa_booking.config import settings
from spa_booking.errors import (
    BookingError, InvalidInputError, ServiceNotFoundError, ServiceInactiveError,
    PastDateError, OutsideBusinessHoursError, SlotUnavailableError,
)
from spa_booking.models.availability import WeeklyAvailability, BlockedInterval
from spa_booking.models.reservation import Reservation, ACTIVE_STATUSES
from spa_booking.models.service import Service
from spa_booking.services import scheduling
import logging

logger = logging.getLogger(__name__)


# ============== WEEKLY SCHEDULE ==============

def get_weekly_schedule(db: Session) -> List[WeeklyAvailability]:
    return db.query(WeeklyAvailability).order_by(WeeklyAvailability.day_of_week).all()


def replace_weekly_schedule(db: Session, entries: List[Dict]) -> List[WeeklyAvailability]:
    """Upsert the given weekday rows. Days not mentioned keep their current row."""
    seen = set()
    for entry in entries:
        weekday = entry["day_of_week"]
        if not 0 <= weekday <= 6:
            raise InvalidInputError(f"Invalid day of week: {weekday}")
        if weekday in seen:
            raise InvalidInputError(f"Day {weekday} is listed more than once")
        seen.add(weekday)

        try:
            open_minutes = scheduling.parse_hhmm(entry["open_time"])
            close_minutes = scheduling.parse_hhmm(entry["close_time"])
        except ValueError as e:
            raise InvalidInputError(str(e))
        if entry["is_active"] and open_minutes >= close_minutes:
            raise InvalidInputError(
                f"{scheduling.DAY_NAMES[weekday]}: opening time must be before closing time"
            )

    for entry in entries:
        row = db.query(WeeklyAvailability).filter(
            WeeklyAvailability.day_of_week == entry["day_of_week"]
        ).first()
        if not row:
            row = WeeklyAvailability(day_of_week=entry["day_of_week"])
            db.add(row)
        row.is_active = entry["is_active"]
        row.open_time = scheduling.format_hhmm(scheduling.parse_hhmm(entry["open_time"]))
        row.close_time = scheduling.format_hhmm(scheduling.parse_hhmm(entry["close_time"]))

    db.commit()
    logger.info("Weekly schedule updated for days %s", sorted(seen))
    return get_weekly_schedule(db)


# ============== READ-THROUGH QUERIES ==============

def get_bookable_service(db: Session, service_id: int) -> Service:
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise ServiceNotFoundError()
    if not service.is_active:
        raise ServiceInactiveError()
    return service


def active_reservations_on(db: Session, day: date, exclude_id: Optional[int] = None) -> List[Reservation]:
    """PENDING/CONFIRMED reservations starting on ``day``"""
    day_start, day_end = scheduling.day_bounds(day)
    query = db.query(Reservation).filter(
        Reservation.start_at >= day_start,
        Reservation.start_at < day_end,
        Reservation.status.in_(ACTIVE_STATUSES)
    )
    if exclude_id is not None:
        query = query.filter(Reservation.id != exclude_id)
    return query.order_by(Reservation.start_at).all()


def active_blocks_overlapping(db: Session, start: datetime, end: datetime,
                              exclude_id: Optional[int] = None) -> List[BlockedInterval]:
    query = db.query(BlockedInterval).filter(
        BlockedInterval.is_active == True,
        BlockedInterval.start_at < end,
        BlockedInterval.end_at > start
    )
    if exclude_id is not None:
        query = query.filter(BlockedInterval.id != exclude_id)
    return query.order_by(BlockedInterval.start_at).all()


def slots_for_day(db: Session, day: date, duration_minutes: int, now: datetime) -> List[str]:
    day_start, day_end = scheduling.day_bounds(day)
    return scheduling.generate_slots(
        day,
        duration_minutes,
        get_weekly_schedule(db),
        active_reservations_on(db, day),
        active_blocks_overlapping(db, day_start, day_end),
        now,
        step_minutes=settings.SLOT_INTERVAL_MINUTES,
    )


def get_available_slots(db: Session, day: date, service_id: int, now: Optional[datetime] = None) -> List[str]:
    """Bookable start times for a service on a given day"""
    service = get_bookable_service(db, service_id)
    return slots_for_day(db, day, service.duration_minutes, now or datetime.now())


def find_next_available(
    db: Session,
    service_id: int,
    from_date: Optional[date] = None,
    now: Optional[datetime] = None,
    max_days: Optional[int] = None
) -> Optional[Dict]:
    """First free slot for a service, scanning forward day by day"""
    now = now or datetime.now()
    service = get_bookable_service(db, service_id)
    start_day = from_date or now.date()
    max_days = max_days or settings.NEXT_AVAILABLE_MAX_DAYS

    for offset in range(max_days):
        day = start_day + timedelta(days=offset)
        slots = slots_for_day(db, day, service.duration_minutes, now)
        if slots:
            day_start, _ = scheduling.day_bounds(day)
            start_at = day_start + timedelta(minutes=scheduling.parse_hhmm(slots[0]))
            return {
                "start_at": start_at.isoformat(),
                "date": day.isoformat(),
                "time": slots[0],
                "weekday": scheduling.DAY_NAMES[scheduling.day_of_week(day)],
                "days_from_start": offset,
            }

    logger.info("No availability for service %s in the next %s days", service_id, max_days)
    return None


# ============== CALENDAR ==============

def availability_calendar(db: Session, start: date, end: date) -> List[Dict]:
    """
    Per-day summary for the admin calendar over ``start``..``end`` inclusive.

    A day is ``blocked`` when an active blocked period touches it, ``no_schedule``
    when its weekday is closed, and ``available`` otherwise. ``reservations``
    counts the PENDING/CONFIRMED appointments starting that day.
    """
    if end < start:
        raise InvalidInputError("The end date must not be before the start date")
    span = (end - start).days + 1
    if span > settings.CALENDAR_MAX_DAYS:
        raise InvalidInputError(
            f"The calendar covers at most {settings.CALENDAR_MAX_DAYS} days",
            details={"max_days": settings.CALENDAR_MAX_DAYS}
        )

    range_start, _ = scheduling.day_bounds(start)
    _, range_end = scheduling.day_bounds(end)
    schedule = get_weekly_schedule(db)
    blocks = active_blocks_overlapping(db, range_start, range_end)
    reservations = db.query(Reservation).filter(
        Reservation.start_at >= range_start,
        Reservation.start_at < range_end,
        Reservation.status.in_(ACTIVE_STATUSES)
    ).all()

    counts: Dict[date, int] = {}
    for reservation in reservations:
        counts[reservation.start_at.date()] = counts.get(reservation.start_at.date(), 0) + 1

    days = []
    for offset in range(span):
        day = start + timedelta(days=offset)
        day_start, day_end = scheduling.day_bounds(day)
        block = next((b for b in blocks if b.start_at < day_end and b.end_at > day_start), None)
        if block is not None:
            state, reason = "blocked", block.reason
        elif scheduling.config_for_day(schedule, day) is None:
            state, reason = "no_schedule", "No opening hours configured"
        else:
            state, reason = "available", "Open"

        days.append({
            "date": day.isoformat(),
            "weekday": scheduling.DAY_NAMES[scheduling.day_of_week(day)],
            "status": state,
            "available": state == "available",
            "reason": reason,
            "reservations": counts.get(day, 0),
        })
    return days


# ============== GATES ==============

def ensure_future(start_at: datetime, now: datetime):
    if start_at <= now:
        raise PastDateError()


def ensure_within_business_hours(db: Session, start_at: datetime, end_at: datetime):
    schedule = get_weekly_schedule(db)
    window = scheduling.business_window(schedule, start_at.date())
    if window is None or start_at < window[0] or end_at > window[1]:
        hours = scheduling.describe_business_hours(schedule)
        raise OutsideBusinessHoursError(
            f"The selected time is outside business hours ({hours})",
            details={"business_hours": hours}
        )


def ensure_no_conflict(db: Session, start_at: datetime, end_at: datetime, exclude_id: Optional[int] = None):
    """Fresh conflict check against active reservations and blocked intervals"""
    for reservation in active_reservations_on(db, start_at.date(), exclude_id=exclude_id):
        if scheduling.overlaps(start_at, end_at, reservation.start_at, reservation.end_at):
            raise SlotUnavailableError(details={"conflict": "reservation"})

    blocks = active_blocks_overlapping(db, start_at, end_at)
    if blocks:
        raise SlotUnavailableError(
            f"This time is blocked: {blocks[0].reason}",
            details={"conflict": "blocked_interval"}
        )


def check_slot(db: Session, start_at: datetime, duration_minutes: int, now: Optional[datetime] = None) -> Dict:
    """Advisory check of a prospective appointment; booking re-validates"""
    if duration_minutes <= 0:
        raise InvalidInputError("Duration must be a positive number of minutes")

    end_at = start_at + timedelta(minutes=duration_minutes)
    try:
        ensure_future(start_at, now or datetime.now())
        ensure_within_business_hours(db, start_at, end_at)
        ensure_no_conflict(db, start_at, end_at)
    except BookingError as e:
        return {"available": False, "code": e.code, "reason": e.message}

    return {"available": True, "code": None, "reason": "Time slot available"}
