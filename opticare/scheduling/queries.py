from dataclasses import dataclass
from datetime import datetime

# Appointments in these statuses hold their slot; completed, cancelled and
# no_show ones do not block bookings or time-off.
OCCUPYING_STATUSES = frozenset({'pending', 'confirmed'})


@dataclass(frozen=True)
class AppointmentQuery:
    """Filter for appointment lookups; unset fields do not constrain."""

    scheduled_from: datetime | None = None
    scheduled_to: datetime | None = None
    scheduled_at: datetime | None = None
    branch_id: int | None = None
    optician_id: int | None = None
    # When set, branch_id and optician_id are OR-ed instead of AND-ed.
    branch_or_optician: bool = False
    statuses: frozenset[str] | None = None
    exclude_id: int | None = None


@dataclass(frozen=True)
class TimeOffQuery:
    optician_id: int
    # Entries whose [start_date, end_date] contains this instant.
    covering: datetime | None = None
    # Entries overlapping [window_start, window_end], inclusive.
    window_start: datetime | None = None
    window_end: datetime | None = None
    exclude_id: int | None = None
