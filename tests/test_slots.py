from datetime import date, time
from types import SimpleNamespace

import pytest

from app.services.slots import (
    compute_slots,
    day_of_week_for,
    format_hhmm,
    sort_weekly_schedule,
    truncate_to_minute,
    windows_overlap,
)


def test_compute_slots_morning_window():
    slots = compute_slots(time(9, 0), time(13, 0), 30)

    assert len(slots) == 8
    assert slots[0] == time(9, 0)
    assert slots[-1] == time(12, 30)


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (time(9, 0), time(10, 0), 2),
        (time(9, 0), time(10, 15), 3),
        (time(9, 0), time(9, 29), 1),
        (time(8, 15), time(17, 45), 19),
        (time(23, 0), time(23, 59, 59), 2),
    ],
)
def test_compute_slots_count_is_floor_of_window_over_interval(start, end, expected):
    slots = compute_slots(start, end, 30)

    assert len(slots) == expected
    for index, slot in enumerate(slots):
        minutes = (slot.hour * 60 + slot.minute) - (start.hour * 60 + start.minute)
        assert minutes == 30 * index
        assert slot < end


def test_compute_slots_excludes_booked_times():
    booked = {time(10, 0), time(12, 30)}

    slots = compute_slots(time(9, 0), time(13, 0), 30, booked)

    assert len(slots) == 6
    assert not booked & set(slots)
    assert slots == sorted(slots)


def test_compute_slots_ignores_bookings_off_the_grid():
    slots = compute_slots(time(9, 0), time(10, 0), 30, {time(9, 15), time(14, 0)})

    assert slots == [time(9, 0), time(9, 30)]


@pytest.mark.parametrize(
    ("start", "end"),
    [
        (time(13, 0), time(9, 0)),
        (time(9, 0), time(9, 0)),
    ],
)
def test_compute_slots_empty_window_returns_nothing(start, end):
    assert compute_slots(start, end, 30) == []


def test_compute_slots_fully_booked():
    booked = [time(9, 0), time(9, 30)]

    assert compute_slots(time(9, 0), time(10, 0), 30, booked) == []


def test_compute_slots_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        compute_slots(time(9, 0), time(10, 0), 0)


@pytest.mark.parametrize(
    ("day", "name"),
    [
        (date(2026, 1, 4), "Sunday"),
        (date(2026, 1, 5), "Monday"),
        (date(2026, 1, 7), "Wednesday"),
        (date(2026, 1, 10), "Saturday"),
    ],
)
def test_day_of_week_for(day, name):
    assert day_of_week_for(day) == name


def test_windows_overlap_half_open():
    assert windows_overlap(time(9, 0), time(11, 0), time(10, 0), time(12, 0))
    assert windows_overlap(time(9, 0), time(12, 0), time(10, 0), time(11, 0))
    # back-to-back windows share only a boundary
    assert not windows_overlap(time(9, 0), time(10, 0), time(10, 0), time(11, 0))
    assert not windows_overlap(time(10, 0), time(11, 0), time(9, 0), time(10, 0))


def test_sort_weekly_schedule_monday_first():
    windows = [
        SimpleNamespace(day_of_week="Sunday", start_time=time(9, 0)),
        SimpleNamespace(day_of_week="Wednesday", start_time=time(14, 0)),
        SimpleNamespace(day_of_week="Monday", start_time=time(13, 0)),
        SimpleNamespace(day_of_week="Wednesday", start_time=time(8, 0)),
        SimpleNamespace(day_of_week="Monday", start_time=time(9, 0)),
    ]

    ordered = sort_weekly_schedule(windows)

    assert [(w.day_of_week, w.start_time) for w in ordered] == [
        ("Monday", time(9, 0)),
        ("Monday", time(13, 0)),
        ("Wednesday", time(8, 0)),
        ("Wednesday", time(14, 0)),
        ("Sunday", time(9, 0)),
    ]


def test_time_helpers():
    assert truncate_to_minute(time(9, 45, 30)) == time(9, 45)
    assert format_hhmm(time(9, 5, 59)) == "09:05"
