import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from opticare.models.optician import OpticianTimeOff, OpticianWorkingHours
from opticare.scheduling.operating_hours import resolve_operating_hours
from opticare.scheduling.queries import OCCUPYING_STATUSES, AppointmentQuery, TimeOffQuery
from opticare.scheduling.results import FailureCode, ServiceResult
from opticare.scheduling.slots import generate_slots
from opticare.scheduling.store import SchedulingStore
from opticare.scheduling.timeutils import (
    clock_time,
    day_bounds,
    day_of_week,
    is_within_time_window,
    truncate_to_minute,
)

logger = logging.getLogger(__name__)

NOT_SCHEDULED_REASON = 'Not scheduled to work on this day'
OUTSIDE_HOURS_REASON = 'Outside working hours'
TIME_OFF_REASON = 'Time off'
CHECK_FAILED_REASON = 'Error checking availability'
MAX_RANGE_DAYS = 31


@dataclass(frozen=True)
class OpticianAvailability:
    available: bool
    reason: str | None = None


@dataclass(frozen=True)
class DayAvailability:
    date: date
    available_slots: list[str]

    @property
    def is_available(self) -> bool:
        return bool(self.available_slots)


def find_covering_time_off(at: datetime, entries: Iterable[OpticianTimeOff]) -> OpticianTimeOff | None:
    for entry in entries:
        if entry.start_date <= at <= entry.end_date:
            return entry
    return None


def evaluate_optician_availability(
    at: datetime,
    working_hours: OpticianWorkingHours | None,
    time_off_entries: Iterable[OpticianTimeOff],
) -> OpticianAvailability:
    """Decide availability from the weekday's template entry and time-off rows.

    ``working_hours`` must be the entry for ``at``'s weekday; only the clock
    time is compared against it.
    """
    if working_hours is None or not working_hours.is_available:
        return OpticianAvailability(available=False, reason=NOT_SCHEDULED_REASON)

    if not is_within_time_window(clock_time(at), working_hours.start_time, working_hours.end_time):
        return OpticianAvailability(available=False, reason=OUTSIDE_HOURS_REASON)

    time_off = find_covering_time_off(at, time_off_entries)
    if time_off is not None:
        return OpticianAvailability(available=False, reason=time_off.reason or TIME_OFF_REASON)

    return OpticianAvailability(available=True)


class OpticianAvailabilityEvaluator:
    def __init__(self, store: SchedulingStore):
        self.store = store

    def check(self, optician_id: int, at: datetime) -> OpticianAvailability:
        try:
            working_hours = self.store.get_working_hours(optician_id, day_of_week(at))
            time_off = self.store.list_time_off(TimeOffQuery(optician_id=optician_id, covering=at))
        except SQLAlchemyError:
            logger.exception('Optician availability check failed for optician %s at %s', optician_id, at)
            return OpticianAvailability(available=False, reason=CHECK_FAILED_REASON)

        return evaluate_optician_availability(at, working_hours, time_off)

    def filter_slots(self, optician_id: int, day: date, slots: Iterable[datetime]) -> list[datetime]:
        """Keep the slots on ``day`` at which the optician is available.

        Reads the template entry and the day's time-off once for the batch.
        """
        start_of_day, end_of_day = day_bounds(day)
        working_hours = self.store.get_working_hours(optician_id, day_of_week(day))
        time_off = self.store.list_time_off(
            TimeOffQuery(optician_id=optician_id, window_start=start_of_day, window_end=end_of_day)
        )
        return [
            slot for slot in slots
            if evaluate_optician_availability(slot, working_hours, time_off).available
        ]


class AvailabilityAggregator:
    def __init__(self, store: SchedulingStore, evaluator: OpticianAvailabilityEvaluator | None = None):
        self.store = store
        self.evaluator = evaluator or OpticianAvailabilityEvaluator(store)

    def available_slots(
        self,
        branch_id: int,
        service_id: int,
        day: date,
        optician_id: int | None = None,
    ) -> ServiceResult[list[str]]:
        try:
            service = self.store.get_service(service_id)
            if service is None:
                return ServiceResult.fail(FailureCode.SERVICE_NOT_FOUND, 'Service not found')

            branch = self.store.get_branch(branch_id)
            if branch is None:
                return ServiceResult.fail(FailureCode.BRANCH_NOT_FOUND, 'Branch not found')

            window = resolve_operating_hours(branch.operating_hours)
            candidates = generate_slots(day, window, service.duration)

            start_of_day, end_of_day = day_bounds(day)
            booked = self.store.list_appointments(
                AppointmentQuery(
                    scheduled_from=start_of_day,
                    scheduled_to=end_of_day,
                    statuses=OCCUPYING_STATUSES,
                    optician_id=optician_id,
                    branch_id=None if optician_id is not None else branch_id,
                )
            )
            booked_starts = {truncate_to_minute(appointment.scheduled_at) for appointment in booked}
            open_slots = [slot for slot in candidates if slot not in booked_starts]

            if optician_id is not None:
                open_slots = self.evaluator.filter_slots(optician_id, day, open_slots)
        except SQLAlchemyError:
            logger.exception('Availability check failed for branch %s service %s on %s', branch_id, service_id, day)
            return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to check availability')

        return ServiceResult.ok([slot.isoformat() for slot in open_slots])

    def available_days(
        self,
        branch_id: int,
        service_id: int,
        start_date: date,
        end_date: date,
        optician_id: int | None = None,
    ) -> ServiceResult[list[DayAvailability]]:
        if end_date < start_date:
            return ServiceResult.fail(FailureCode.INVALID_RANGE, 'End date cannot be before start date')
        if (end_date - start_date).days >= MAX_RANGE_DAYS:
            return ServiceResult.fail(
                FailureCode.INVALID_RANGE,
                f'Date range cannot exceed {MAX_RANGE_DAYS} days',
            )

        days: list[DayAvailability] = []
        current = start_date
        while current <= end_date:
            result = self.available_slots(branch_id, service_id, current, optician_id)
            if not result.success:
                return ServiceResult.fail(result.code, result.error, **result.details)
            days.append(DayAvailability(date=current, available_slots=result.data or []))
            current += timedelta(days=1)

        return ServiceResult.ok(days)
