"""
Slot generation and interval arithmetic.

Everything here is pure: callers load the weekly schedule, the day's active
reservations and the overlapping blocked intervals, and pass them in together
with the current time. Nothing is cached between calls.

Times are naive datetimes in the business' local zone.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

DEFAULT_STEP_MINUTES = 30


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """Half-open interval overlap; touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


def day_of_week(day: date) -> int:
    """Weekday number with Sunday as 0."""
    return (day.weekday() + 1) % 7


def parse_hhmm(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    try:
        hours, minutes = value.split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time of day: {value!r}")
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """[midnight, next midnight) for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def config_for_day(weekly_config: Iterable, day: date):
    """Return the active schedule row for ``day``'s weekday, or None."""
    weekday = day_of_week(day)
    for row in weekly_config:
        if row.day_of_week == weekday:
            return row if row.is_active else None
    return None


def business_window(weekly_config: Iterable, day: date) -> Optional[Tuple[datetime, datetime]]:
    """Opening and closing datetimes for ``day``, or None when closed."""
    row = config_for_day(weekly_config, day)
    if row is None:
        return None
    midnight = datetime.combine(day, time.min)
    return (
        midnight + timedelta(minutes=parse_hhmm(row.open_time)),
        midnight + timedelta(minutes=parse_hhmm(row.close_time)),
    )


def generate_slots(
    day: date,
    duration_minutes: int,
    weekly_config: Iterable,
    reservations: Iterable,
    blocked_intervals: Iterable,
    now: datetime,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> List[str]:
    """
    Bookable start times for ``day`` as ascending "HH:MM" strings.

    A candidate is kept when the whole appointment fits before closing, it
    does not overlap any reservation or blocked interval, and it starts after
    ``now``. ``reservations`` and ``blocked_intervals`` are any objects with
    ``start_at``/``end_at``.
    """
    if duration_minutes <= 0:
        raise ValueError("Service duration must be positive")

    row = config_for_day(weekly_config, day)
    if row is None:
        return []

    open_minutes = parse_hhmm(row.open_time)
    close_minutes = parse_hhmm(row.close_time)
    midnight = datetime.combine(day, time.min)
    busy = [(item.start_at, item.end_at) for item in reservations]
    busy.extend((item.start_at, item.end_at) for item in blocked_intervals)

    slots = []
    offset = open_minutes
    while offset + duration_minutes <= close_minutes:
        slot_start = midnight + timedelta(minutes=offset)
        slot_end = slot_start + timedelta(minutes=duration_minutes)
        offset += step_minutes

        if slot_start <= now:
            continue
        if any(overlaps(slot_start, slot_end, start, end) for start, end in busy):
            continue
        slots.append(slot_start.strftime("%H:%M"))

    return slots


def _format_window(row) -> str:
    open_minutes = parse_hhmm(row.open_time)
    close_minutes = parse_hhmm(row.close_time)
    return (
        f"{open_minutes // 60}:{open_minutes % 60:02d}-"
        f"{close_minutes // 60}:{close_minutes % 60:02d}"
    )


def describe_business_hours(weekly_config: Iterable) -> str:
    """
    Human readable opening hours, grouping consecutive weekdays that share a
    window, e.g. "Monday-Friday 9:00-18:00, Saturday 10:00-16:00".

    Days run Monday first so a Monday-Saturday week reads naturally.
    """
    by_day = {row.day_of_week: row for row in weekly_config if row.is_active}
    if not by_day:
        return "closed every day"

    groups = []
    for weekday in [1, 2, 3, 4, 5, 6, 0]:
        row = by_day.get(weekday)
        if row is None:
            continue
        window = _format_window(row)
        previous = groups[-1] if groups else None
        if previous and previous[2] == window and previous[1] == (weekday - 1) % 7:
            previous[1] = weekday
        else:
            groups.append([weekday, weekday, window])

    parts = []
    for first, last, window in groups:
        if first == last:
            parts.append(f"{DAY_NAMES[first]} {window}")
        else:
            parts.append(f"{DAY_NAMES[first]}-{DAY_NAMES[last]} {window}")
    return ", ".join(parts)
