"""
Slot arithmetic shared by the availability and booking paths.

Everything here is pure: no database access, no settings lookups.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

# Sunday-first, matching a calendar weekday index where Sunday is 0
DAYS_OF_WEEK = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

# Display order for weekly schedules: Monday first
WEEKDAY_RANK = {
    "Monday": 0,
    "Tuesday": 1,
    "Wednesday": 2,
    "Thursday": 3,
    "Friday": 4,
    "Saturday": 5,
    "Sunday": 6,
}

DEFAULT_SLOT_INTERVAL_MINUTES = 30


def day_of_week_for(day: date) -> str:
    """Weekday name for a calendar date."""
    return DAYS_OF_WEEK[day.isoweekday() % 7]


def truncate_to_minute(value: time) -> time:
    return value.replace(second=0, microsecond=0)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def compute_slots(
    start: time,
    end: time,
    interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
    booked_times: Optional[Iterable[time]] = None,
) -> List[time]:
    """
    Bookable slot start times in ``[start, end)``.

    Slots start at ``start`` and step by ``interval_minutes``; any slot whose
    time exactly matches a booked time is left out. Returns an empty list
    for a zero-length or inverted window.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    booked = {value.replace(microsecond=0) for value in booked_times or ()}
    anchor = date.min
    current = datetime.combine(anchor, start.replace(microsecond=0))
    window_end = datetime.combine(anchor, end)
    step = timedelta(minutes=interval_minutes)

    slots: List[time] = []
    # Stop if the step would roll past midnight
    while current < window_end and current.date() == anchor:
        slot = current.time()
        if slot not in booked:
            slots.append(slot)
        current += step
    return slots


def windows_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open overlap test; back-to-back windows do not overlap."""
    return a_start < b_end and a_end > b_start


def sort_weekly_schedule(windows):
    """Order schedule windows Monday first, then by start time."""
    return sorted(windows, key=lambda window: (WEEKDAY_RANK[window.day_of_week], window.start_time))
