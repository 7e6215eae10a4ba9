import logging
import re
from dataclasses import dataclass

from opticare.core import config
from opticare.scheduling.timeutils import InvalidTimeFormat, normalize_time_of_day

logger = logging.getLogger(__name__)

WINDOW_PATTERN = re.compile(r'(\d{1,2}:\d{2})-(\d{1,2}:\d{2})')


@dataclass(frozen=True)
class OperatingHours:
    start: str
    end: str


def default_operating_hours() -> OperatingHours:
    return OperatingHours(
        start=normalize_time_of_day(config.DEFAULT_OPERATING_HOURS_START),
        end=normalize_time_of_day(config.DEFAULT_OPERATING_HOURS_END),
    )


def resolve_operating_hours(description: str | None) -> OperatingHours:
    """Take the first HH:MM-HH:MM window in a branch's hours text.

    Branch hours are not split by weekday; per-day variation comes from the
    opticians' own working hours.
    """
    match = WINDOW_PATTERN.search(description or '')
    if match:
        try:
            return OperatingHours(
                start=normalize_time_of_day(match.group(1)),
                end=normalize_time_of_day(match.group(2)),
            )
        except InvalidTimeFormat:
            logger.warning('Ignoring malformed operating hours window %r', match.group(0))

    return default_operating_hours()
