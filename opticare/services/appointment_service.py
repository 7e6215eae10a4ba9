"""Appointment booking, rescheduling and removal.

Every write goes through ``BookingConflictChecker`` first. The partial unique
indexes on appointments back the check up when two requests race for the
same slot: the loser's insert fails and is reported as a taken slot.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from opticare.models.appointment import Appointment
from opticare.scheduling.conflicts import BookingConflictChecker
from opticare.scheduling.queries import OCCUPYING_STATUSES, AppointmentQuery
from opticare.scheduling.results import FailureCode, ServiceResult
from opticare.scheduling.store import SqlAlchemyStore
from opticare.scheduling.timeutils import truncate_to_minute

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'status',
    'patient_name',
    'phone',
    'email',
    'service_id',
    'branch_id',
    'optician_id',
    'scheduled_at',
    'notes',
)


@dataclass(frozen=True)
class AppointmentCreateData:
    patient_name: str
    phone: str
    service_id: int
    branch_id: int
    scheduled_at: datetime
    optician_id: int | None = None
    email: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class CancellationNotice:
    appointment_id: int
    patient_name: str
    phone: str
    optician_name: str | None
    branch_phone: str


def _check_references(
    store: SqlAlchemyStore,
    service_id: int,
    branch_id: int,
    optician_id: int | None,
) -> ServiceResult[None]:
    if store.get_service(service_id) is None:
        return ServiceResult.fail(FailureCode.SERVICE_NOT_FOUND, 'Service not found')
    if store.get_branch(branch_id) is None:
        return ServiceResult.fail(FailureCode.BRANCH_NOT_FOUND, 'Branch not found')
    if optician_id is not None and store.get_optician(optician_id) is None:
        return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')
    return ServiceResult.ok()


def create_appointment(db: Session, data: AppointmentCreateData) -> ServiceResult[Appointment]:
    store = SqlAlchemyStore(db)
    checker = BookingConflictChecker(store)
    scheduled_at = truncate_to_minute(data.scheduled_at)

    try:
        references = _check_references(store, data.service_id, data.branch_id, data.optician_id)
        if not references.success:
            return ServiceResult.fail(references.code, references.error)

        conflict = checker.check_booking(scheduled_at, data.branch_id, data.optician_id)
        if not conflict.success:
            return ServiceResult.fail(conflict.code, conflict.error, **conflict.details)

        appointment = Appointment(
            patient_name=data.patient_name,
            phone=data.phone,
            email=data.email,
            service_id=data.service_id,
            branch_id=data.branch_id,
            optician_id=data.optician_id,
            scheduled_at=scheduled_at,
            notes=data.notes,
            status='pending',
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except IntegrityError:
        db.rollback()
        logger.warning('Concurrent booking rejected for branch %s at %s', data.branch_id, scheduled_at)
        return ServiceResult.fail(FailureCode.SLOT_TAKEN, 'Time slot is already booked')
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Appointment creation failed')
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to create appointment')

    logger.info('Appointment %s booked for %s at branch %s', appointment.id, scheduled_at, data.branch_id)
    return ServiceResult.ok(appointment)


def update_appointment(db: Session, appointment_id: int, changes: Mapping[str, Any]) -> ServiceResult[Appointment]:
    """Apply a partial update; only keys present in ``changes`` are touched.

    An ``optician_id`` of None unassigns the optician.
    """
    store = SqlAlchemyStore(db)
    checker = BookingConflictChecker(store)

    try:
        appointment = db.get(Appointment, appointment_id)
        if appointment is None:
            return ServiceResult.fail(FailureCode.APPOINTMENT_NOT_FOUND, 'Appointment not found')

        previous = {
            'scheduled_at': appointment.scheduled_at,
            'branch_id': appointment.branch_id,
            'optician_id': appointment.optician_id,
            'status': appointment.status,
        }
        updates = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if updates.get('scheduled_at') is not None:
            updates['scheduled_at'] = truncate_to_minute(updates['scheduled_at'])

        service_id = updates.get('service_id', appointment.service_id)
        branch_id = updates.get('branch_id', appointment.branch_id)
        optician_id = updates.get('optician_id', appointment.optician_id)
        scheduled_at = updates.get('scheduled_at') or appointment.scheduled_at
        status = updates.get('status') or appointment.status

        references = _check_references(store, service_id, branch_id, optician_id)
        if not references.success:
            return ServiceResult.fail(references.code, references.error)

        moved = (
            scheduled_at != previous['scheduled_at']
            or branch_id != previous['branch_id']
            or optician_id != previous['optician_id']
        )
        reactivated = previous['status'] not in OCCUPYING_STATUSES
        if status in OCCUPYING_STATUSES and (moved or reactivated):
            conflict = checker.check_booking(
                scheduled_at,
                branch_id,
                optician_id,
                exclude_appointment_id=appointment.id,
            )
            if not conflict.success:
                return ServiceResult.fail(conflict.code, conflict.error, **conflict.details)

        for key, value in updates.items():
            if key in ('patient_name', 'phone', 'scheduled_at', 'status', 'service_id', 'branch_id') and value is None:
                continue
            setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
    except IntegrityError:
        db.rollback()
        return ServiceResult.fail(FailureCode.SLOT_TAKEN, 'Time slot is already booked')
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Appointment %s update failed', appointment_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to update appointment')

    logger.info('Appointment %s updated: %s', appointment_id, sorted(updates))
    return ServiceResult.ok(appointment)


def delete_appointment(db: Session, appointment_id: int) -> ServiceResult[CancellationNotice]:
    try:
        appointment = db.get(Appointment, appointment_id)
        if appointment is None:
            return ServiceResult.fail(FailureCode.APPOINTMENT_NOT_FOUND, 'Appointment not found')

        notice = CancellationNotice(
            appointment_id=appointment.id,
            patient_name=appointment.patient_name,
            phone=appointment.phone,
            optician_name=appointment.optician.name if appointment.optician else None,
            branch_phone=appointment.branch.phone if appointment.branch else '',
        )
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Appointment %s deletion failed', appointment_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to delete appointment')

    logger.info('Appointment %s deleted', appointment_id)
    return ServiceResult.ok(notice)


def get_appointment(db: Session, appointment_id: int) -> ServiceResult[Appointment]:
    try:
        appointment = db.get(Appointment, appointment_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Appointment %s lookup failed', appointment_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch appointment')

    if appointment is None:
        return ServiceResult.fail(FailureCode.APPOINTMENT_NOT_FOUND, 'Appointment not found')
    return ServiceResult.ok(appointment)


def list_appointments(
    db: Session,
    start: datetime,
    end: datetime,
    branch_id: int | None = None,
) -> ServiceResult[list[Appointment]]:
    if end < start:
        return ServiceResult.fail(FailureCode.INVALID_RANGE, 'End date cannot be before start date')

    try:
        appointments = SqlAlchemyStore(db).list_appointments(
            AppointmentQuery(scheduled_from=start, scheduled_to=end, branch_id=branch_id)
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Appointment listing failed')
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch appointments')

    return ServiceResult.ok(appointments)
