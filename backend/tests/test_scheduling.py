from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from spa_booking.services.scheduling import (
    business_window,
    day_of_week,
    describe_business_hours,
    format_hhmm,
    generate_slots,
    overlaps,
    parse_hhmm,
)

MONDAY = date(2024, 12, 16)
SUNDAY = date(2024, 12, 15)
EARLIER = datetime(2024, 12, 1, 8, 0)


def day(weekday, open_time="09:00", close_time="18:00", is_active=True):
    return SimpleNamespace(
        day_of_week=weekday, is_active=is_active, open_time=open_time, close_time=close_time
    )


def interval(start, minutes):
    return SimpleNamespace(start_at=start, end_at=start + timedelta(minutes=minutes))


WEEK = [day(0, is_active=False)] + [day(d) for d in range(1, 6)] + [day(6, "10:00", "16:00")]


def at(hour, minute=0, on=MONDAY):
    return datetime.combine(on, datetime.min.time()).replace(hour=hour, minute=minute)


class TestOverlaps:
    def test_touching_endpoints_do_not_overlap(self):
        assert not overlaps(at(9), at(10), at(10), at(11))
        assert not overlaps(at(10), at(11), at(9), at(10))

    def test_partial_and_contained_overlap(self):
        assert overlaps(at(9), at(10), at(9, 30), at(10, 30))
        assert overlaps(at(9), at(12), at(10), at(11))

    @pytest.mark.parametrize("a,b", [
        (((9, 0), (10, 0)), ((9, 30), (10, 30))),
        (((9, 0), (10, 0)), ((10, 0), (11, 0))),
        (((8, 0), (9, 0)), ((12, 0), (13, 0))),
        (((9, 0), (17, 0)), ((11, 0), (12, 0))),
    ])
    def test_symmetry(self, a, b):
        a_start, a_end = at(*a[0]), at(*a[1])
        b_start, b_end = at(*b[0]), at(*b[1])
        assert overlaps(a_start, a_end, b_start, b_end) == overlaps(b_start, b_end, a_start, a_end)


class TestTimeHelpers:
    def test_day_of_week_counts_from_sunday(self):
        assert day_of_week(SUNDAY) == 0
        assert day_of_week(MONDAY) == 1
        assert day_of_week(date(2024, 12, 21)) == 6

    def test_parse_and_format(self):
        assert parse_hhmm("09:30") == 570
        assert format_hhmm(570) == "09:30"

    @pytest.mark.parametrize("value", ["9", "24:00", "12:60", "ab:cd", None])
    def test_parse_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)

    def test_business_window(self):
        assert business_window(WEEK, MONDAY) == (at(9), at(18))
        assert business_window(WEEK, SUNDAY) is None


class TestGenerateSlots:
    """Slot generation over a Monday 09:00-18:00 window"""

    def test_empty_day_yields_full_grid(self):
        slots = generate_slots(MONDAY, 60, WEEK, [], [], EARLIER)

        assert slots[0] == "09:00"
        assert slots[-1] == "17:00"
        assert "17:30" not in slots
        assert len(slots) == 17
        assert slots == sorted(slots)

    def test_reservation_excludes_overlapping_starts(self):
        booked = [interval(at(14), 60)]

        slots = generate_slots(MONDAY, 60, WEEK, booked, [], EARLIER)

        assert "14:00" not in slots
        assert "14:30" not in slots
        # 13:30-14:30 runs into the 14:00 booking
        assert "13:30" not in slots
        assert "13:00" in slots
        assert "15:00" in slots

    def test_blocked_interval_excludes_slots(self):
        blocked = [interval(at(12), 60)]

        slots = generate_slots(MONDAY, 30, WEEK, [], blocked, EARLIER)

        assert "11:30" in slots
        assert "12:00" not in slots
        assert "12:30" not in slots
        assert "13:00" in slots

    def test_closing_time_boundary(self):
        week = [day(1, "09:00", "10:30")]

        assert generate_slots(MONDAY, 90, week, [], [], EARLIER) == ["09:00"]
        assert generate_slots(MONDAY, 91, week, [], [], EARLIER) == []

    def test_duration_longer_than_window(self):
        assert generate_slots(MONDAY, 600, WEEK, [], [], EARLIER) == []

    def test_closed_or_missing_day(self):
        assert generate_slots(SUNDAY, 60, WEEK, [], [], EARLIER) == []
        assert generate_slots(MONDAY, 60, [], [], [], EARLIER) == []

    def test_today_drops_slots_at_or_before_now(self):
        slots = generate_slots(MONDAY, 60, WEEK, [], [], at(11))

        assert "11:00" not in slots
        assert slots[0] == "11:30"

    def test_past_day_has_no_slots(self):
        assert generate_slots(MONDAY, 60, WEEK, [], [], at(9, on=MONDAY + timedelta(days=1))) == []

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            generate_slots(MONDAY, 0, WEEK, [], [], EARLIER)

    def test_completeness_against_brute_force(self):
        booked = [interval(at(10), 90), interval(at(15, 30), 60)]
        blocked = [interval(at(13), 30)]

        slots = generate_slots(MONDAY, 45, WEEK, booked, blocked, EARLIER)

        expected = []
        for offset in range(9 * 60, 18 * 60, 30):
            start = at(0) + timedelta(minutes=offset)
            end = start + timedelta(minutes=45)
            if end > at(18):
                continue
            if any(overlaps(start, end, b.start_at, b.end_at) for b in booked + blocked):
                continue
            expected.append(start.strftime("%H:%M"))
        assert slots == expected


class TestDescribeBusinessHours:
    def test_groups_consecutive_days(self):
        assert describe_business_hours(WEEK) == "Monday-Friday 9:00-18:00, Saturday 10:00-16:00"

    def test_single_day(self):
        assert describe_business_hours([day(3, "08:30", "12:00")]) == "Wednesday 8:30-12:00"

    def test_closed_every_day(self):
        assert describe_business_hours([day(1, is_active=False)]) == "closed every day"
