from collections.abc import Iterator
from datetime import date, datetime, timedelta

from opticare.scheduling.operating_hours import OperatingHours
from opticare.scheduling.timeutils import to_time


class SlotSequence:
    """Candidate slot starts for one day, spaced by the service duration.

    Iterating again starts over from the first slot. The final slot is kept
    even when it runs past the end of the window.
    """

    def __init__(self, day: date, window: OperatingHours, duration_minutes: int):
        if duration_minutes <= 0:
            raise ValueError('Service duration must be a positive number of minutes.')

        self.day = day
        self.window = window
        self.duration_minutes = duration_minutes
        self.first_start = datetime.combine(day, to_time(window.start))
        self.window_end = datetime.combine(day, to_time(window.end))

    def __iter__(self) -> Iterator[datetime]:
        step = timedelta(minutes=self.duration_minutes)
        current = self.first_start
        while current < self.window_end:
            yield current
            current += step

    def __len__(self) -> int:
        if self.first_start >= self.window_end:
            return 0
        span_minutes = (self.window_end - self.first_start).total_seconds() / 60
        return int(-(-span_minutes // self.duration_minutes))

    def __repr__(self) -> str:
        return (
            f'SlotSequence(day={self.day.isoformat()}, window={self.window.start}-{self.window.end}, '
            f'duration_minutes={self.duration_minutes})'
        )


def generate_slots(day: date, window: OperatingHours, duration_minutes: int) -> SlotSequence:
    return SlotSequence(day, window, duration_minutes)
