import logging
from datetime import datetime

from opticare.scheduling.availability import OpticianAvailabilityEvaluator
from opticare.scheduling.queries import OCCUPYING_STATUSES, AppointmentQuery, TimeOffQuery
from opticare.scheduling.results import FailureCode, ServiceResult
from opticare.scheduling.store import SchedulingStore
from opticare.scheduling.timeutils import time_off_overlaps

logger = logging.getLogger(__name__)


class BookingConflictChecker:
    """Write-path validation for appointments and optician time-off.

    Booking checks appointments against existing appointments and the
    optician's availability; time-off checks run the other way, against
    existing time-off and the optician's occupying appointments.
    """

    def __init__(self, store: SchedulingStore, evaluator: OpticianAvailabilityEvaluator | None = None):
        self.store = store
        self.evaluator = evaluator or OpticianAvailabilityEvaluator(store)

    def check_booking(
        self,
        scheduled_at: datetime,
        branch_id: int,
        optician_id: int | None = None,
        exclude_appointment_id: int | None = None,
    ) -> ServiceResult[None]:
        clashing = self.store.list_appointments(
            AppointmentQuery(
                scheduled_at=scheduled_at,
                branch_id=branch_id,
                optician_id=optician_id,
                branch_or_optician=True,
                statuses=OCCUPYING_STATUSES,
                exclude_id=exclude_appointment_id,
            )
        )
        if clashing:
            logger.warning(
                'Slot %s already taken at branch %s (optician %s) by appointment %s',
                scheduled_at, branch_id, optician_id, clashing[0].id,
            )
            return ServiceResult.fail(FailureCode.SLOT_TAKEN, 'Time slot is already booked')

        if optician_id is not None:
            availability = self.evaluator.check(optician_id, scheduled_at)
            if not availability.available:
                return ServiceResult.fail(
                    FailureCode.OPTICIAN_UNAVAILABLE,
                    f'Optician is not available at the selected time: {availability.reason}',
                    reason=availability.reason,
                )

        return ServiceResult.ok()

    def check_time_off(
        self,
        optician_id: int,
        start_date: datetime,
        end_date: datetime,
        exclude_time_off_id: int | None = None,
    ) -> ServiceResult[None]:
        if end_date < start_date:
            return ServiceResult.fail(FailureCode.INVALID_RANGE, 'End date cannot be before start date')

        existing = self.store.list_time_off(TimeOffQuery(optician_id=optician_id, exclude_id=exclude_time_off_id))
        for entry in existing:
            if time_off_overlaps(start_date, end_date, entry.start_date, entry.end_date):
                return ServiceResult.fail(
                    FailureCode.OVERLAPPING_TIME_OFF,
                    'Time off overlaps with existing time off period',
                    overlapping_period={
                        'id': entry.id,
                        'start_date': entry.start_date.isoformat(),
                        'end_date': entry.end_date.isoformat(),
                        'reason': entry.reason,
                    },
                )

        conflicting = self.store.list_appointments(
            AppointmentQuery(
                optician_id=optician_id,
                scheduled_from=start_date,
                scheduled_to=end_date,
                statuses=OCCUPYING_STATUSES,
            )
        )
        if conflicting:
            return ServiceResult.fail(
                FailureCode.CONFLICTING_APPOINTMENTS,
                'Cannot schedule time off due to conflicting appointments',
                conflicting_appointments=[
                    {
                        'id': appointment.id,
                        'scheduled_at': appointment.scheduled_at.isoformat(),
                        'patient_name': appointment.patient_name,
                        'phone': appointment.phone,
                    }
                    for appointment in conflicting
                ],
            )

        return ServiceResult.ok()
