"""Time-of-day parsing and interval helpers shared by the availability engine.

Clock times travel as zero-padded 24-hour ``HH:MM`` strings; date-times are
naive and read in the single local zone the business operates in.
"""

import re
from datetime import date, datetime, time, timedelta


TIME_OF_DAY_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):([0-5][0-9])$')


class InvalidTimeFormat(ValueError):
    """Raised when a clock time is not a valid 24-hour HH:MM string."""


def parse_time_of_day(value: str) -> tuple[int, int]:
    match = TIME_OF_DAY_PATTERN.match((value or '').strip())
    if not match:
        raise InvalidTimeFormat(f'Invalid time format (HH:MM): {value!r}')
    return int(match.group(1)), int(match.group(2))


def format_time_of_day(hour: int, minute: int) -> str:
    return f'{hour:02d}:{minute:02d}'


def normalize_time_of_day(value: str) -> str:
    """Return the canonical zero-padded form, e.g. ``'9:05'`` -> ``'09:05'``."""
    return format_time_of_day(*parse_time_of_day(value))


def to_time(value: str) -> time:
    hour, minute = parse_time_of_day(value)
    return time(hour, minute)


def clock_time(moment: datetime) -> str:
    return format_time_of_day(moment.hour, moment.minute)


def compare_time_of_day(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is before, equal to or after ``b``."""
    left = parse_time_of_day(a)
    right = parse_time_of_day(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def is_within_time_window(value: str, start: str, end: str) -> bool:
    return compare_time_of_day(value, start) >= 0 and compare_time_of_day(value, end) <= 0


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Inclusive overlap: touching endpoints count as overlapping."""
    return a_start <= b_end and b_start <= a_end


def time_off_overlaps(
    new_start: datetime,
    new_end: datetime,
    existing_start: datetime,
    existing_end: datetime,
) -> bool:
    starts_during = existing_start <= new_start <= existing_end
    ends_during = existing_start <= new_end <= existing_end
    contains = new_start <= existing_start and existing_end <= new_end
    return starts_during or ends_during or contains


def day_of_week(moment: date) -> int:
    """0 = Sunday through 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start_of_day = datetime.combine(day, time.min)
    end_of_day = start_of_day + timedelta(days=1) - timedelta(microseconds=1)
    return start_of_day, end_of_day


def truncate_to_minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def to_local_naive(moment: datetime) -> datetime:
    """Drop timezone info after converting to local time; stored values are naive local."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
