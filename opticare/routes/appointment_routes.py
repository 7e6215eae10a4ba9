from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from opticare.auth.dependencies import require_staff
from opticare.database import get_db
from opticare.models.user import User
from opticare.routes.common import ensure_database_ready, raise_for_failure
from opticare.scheduling.timeutils import to_local_naive
from opticare.services import appointment_service
from opticare.services.appointment_service import AppointmentCreateData
from opticare.services.sms import (
    booking_confirmation_message,
    cancellation_message,
    notify_safely,
    status_change_message,
)

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600
AppointmentStatus = Literal['pending', 'confirmed', 'completed', 'cancelled', 'no_show']


def _normalize_patient_name(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < 2:
        raise ValueError('Name must be at least 2 characters')
    return normalized


def _normalize_phone(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < 10:
        raise ValueError('Phone number must be at least 10 characters')
    return normalized


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        return None
    if '@' not in normalized or normalized.startswith('@') or normalized.endswith('@'):
        raise ValueError('Invalid email')
    return normalized


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')
    return normalized


class CreateAppointmentRequest(BaseModel):
    patient_name: str
    phone: str
    email: str | None = None
    service_id: int
    branch_id: int
    optician_id: int | None = None
    scheduled_at: datetime
    notes: str | None = None

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str) -> str:
        return _normalize_patient_name(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return _normalize_phone(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    @field_validator('scheduled_at')
    @classmethod
    def validate_scheduled_at(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class UpdateAppointmentRequest(BaseModel):
    status: AppointmentStatus | None = None
    patient_name: str | None = None
    phone: str | None = None
    email: str | None = None
    service_id: int | None = None
    branch_id: int | None = None
    optician_id: int | None = None
    scheduled_at: datetime | None = None
    notes: str | None = None

    @field_validator('optician_id', mode='before')
    @classmethod
    def blank_optician_means_unassigned(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str | None) -> str | None:
        return None if value is None else _normalize_patient_name(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return None if value is None else _normalize_phone(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    @field_validator('scheduled_at')
    @classmethod
    def validate_scheduled_at(cls, value: datetime | None) -> datetime | None:
        return None if value is None else to_local_naive(value)


class AppointmentResponse(BaseModel):
    id: int
    patient_name: str
    phone: str
    email: str | None = None
    service_id: int
    branch_id: int
    optician_id: int | None = None
    scheduled_at: datetime
    status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    result = appointment_service.create_appointment(
        db,
        AppointmentCreateData(
            patient_name=data.patient_name,
            phone=data.phone,
            email=data.email,
            service_id=data.service_id,
            branch_id=data.branch_id,
            optician_id=data.optician_id,
            scheduled_at=data.scheduled_at,
            notes=data.notes,
        ),
    )
    raise_for_failure(result)

    appointment = result.data
    notify_safely(
        appointment.phone,
        booking_confirmation_message(
            appointment.patient_name,
            appointment.service.name,
            appointment.branch.name,
            appointment.scheduled_at,
        ),
    )
    return appointment


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    branch_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = appointment_service.list_appointments(
        db,
        to_local_naive(start_date),
        to_local_naive(end_date),
        branch_id,
    )
    raise_for_failure(result)
    return result.data


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = appointment_service.get_appointment(db, appointment_id)
    raise_for_failure(result)
    return result.data


@router.patch('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    previous = appointment_service.get_appointment(db, appointment_id)
    raise_for_failure(previous)
    previous_status = previous.data.status

    result = appointment_service.update_appointment(db, appointment_id, data.model_dump(exclude_unset=True))
    raise_for_failure(result)

    appointment = result.data
    if data.status and data.status != previous_status:
        notify_safely(
            appointment.phone,
            status_change_message(
                appointment.patient_name,
                appointment.status,
                appointment.optician.name if appointment.optician else None,
                appointment.branch.phone,
            ),
        )
    return appointment


@router.delete('/{appointment_id}')
def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = appointment_service.delete_appointment(db, appointment_id)
    raise_for_failure(result)

    notice = result.data
    notify_safely(
        notice.phone,
        cancellation_message(notice.patient_name, notice.optician_name, notice.branch_phone),
    )
    return {'success': True, 'message': 'Appointment deleted successfully'}
