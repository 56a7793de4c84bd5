"""
Date sequencing for recurring bookings.

Pure functions only - no database access, no clock reads except utcnow().
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta

from ...enums import RecurrenceFrequency
from .exceptions import SchedulingValidationError

# Nominal step per frequency; MONTHLY is a calendar month (see add_interval)
FREQUENCY_INTERVALS = {
    RecurrenceFrequency.WEEKLY: relativedelta(weeks=1),
    RecurrenceFrequency.BIWEEKLY: relativedelta(weeks=2),
    RecurrenceFrequency.MONTHLY: relativedelta(months=1),
}


def utcnow() -> datetime:
    """Naive UTC now; bookings store naive instants"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_frequency(frequency) -> RecurrenceFrequency:
    """Coerce a string or enum into a repeating frequency"""
    try:
        value = RecurrenceFrequency(frequency)
    except ValueError as e:
        raise SchedulingValidationError(f"Unknown recurrence frequency: {frequency!r}") from e

    if value == RecurrenceFrequency.NONE:
        raise SchedulingValidationError("Recurrence frequency NONE cannot be sequenced")
    return value


def add_interval(start: datetime, frequency, steps: int = 1) -> datetime:
    """
    Move `start` forward by `steps` intervals.

    Monthly steps are counted from `start` itself so the day of month is kept:
    Jan 31 -> Feb 28 -> Mar 31, with short months clamped to their last day.
    """
    step = FREQUENCY_INTERVALS[parse_frequency(frequency)]
    return start + step * steps


def generate_recurring_dates(
    start: datetime,
    frequency,
    end: Optional[datetime] = None,
    max_occurrences: int = 52,
) -> list[datetime]:
    """
    Produce the dates that follow `start` in a recurring series.

    The start date itself is the parent's own occurrence and is never included.
    Generation stops once a date would pass `end` or `max_occurrences` dates exist.
    A start already past the end yields an empty list.
    """
    frequency = parse_frequency(frequency)
    if max_occurrences is None or max_occurrences < 0:
        raise SchedulingValidationError("max_occurrences must be zero or positive")

    dates = []
    if end is not None and start > end:
        return dates

    step = 1
    while len(dates) < max_occurrences:
        next_date = add_interval(start, frequency, step)
        if end is not None and next_date > end:
            break
        dates.append(next_date)
        step += 1

    return dates


def default_end_date(start: datetime, months: int) -> datetime:
    """End boundary used when a series is open ended"""
    return start + relativedelta(months=months)


def start_of_tomorrow(now: datetime, time_of_day: Optional[datetime] = None) -> datetime:
    """
    Tomorrow relative to `now`, at the time of day of `time_of_day` when given.
    """
    tomorrow = now + timedelta(days=1)
    if time_of_day is None:
        return tomorrow
    return tomorrow.replace(
        hour=time_of_day.hour,
        minute=time_of_day.minute,
        second=time_of_day.second,
        microsecond=time_of_day.microsecond,
    )
