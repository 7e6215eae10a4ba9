from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from opticare.auth.dependencies import require_staff
from opticare.database import get_db
from opticare.models.user import User
from opticare.routes.common import ensure_database_ready, raise_for_failure
from opticare.scheduling.timeutils import to_local_naive
from opticare.services import time_off_service

router = APIRouter(tags=['time-off'])


def _normalize_reason(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class CreateTimeOffRequest(BaseModel):
    optician_id: int
    start_date: datetime
    end_date: datetime
    reason: str | None = None
    is_all_day: bool = True

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, value: datetime) -> datetime:
        return to_local_naive(value)

    @field_validator('reason')
    @classmethod
    def normalize_reason(cls, value: str | None) -> str | None:
        return _normalize_reason(value)


class UpdateTimeOffRequest(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    reason: str | None = None
    is_all_day: bool | None = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return None if value is None else to_local_naive(value)

    @field_validator('reason')
    @classmethod
    def normalize_reason(cls, value: str | None) -> str | None:
        return _normalize_reason(value)


class TimeOffResponse(BaseModel):
    id: int
    optician_id: int
    start_date: datetime
    end_date: datetime
    reason: str | None = None
    is_all_day: bool

    class Config:
        from_attributes = True


@router.get('', response_model=list[TimeOffResponse])
def list_time_off(
    optician_id: int = Query(...),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = time_off_service.list_time_off(
        db,
        optician_id,
        to_local_naive(start_date) if start_date else None,
        to_local_naive(end_date) if end_date else None,
    )
    raise_for_failure(result)
    return result.data


@router.post('', response_model=TimeOffResponse, status_code=status.HTTP_201_CREATED)
def create_time_off(
    data: CreateTimeOffRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = time_off_service.create_time_off(
        db,
        data.optician_id,
        data.start_date,
        data.end_date,
        data.reason,
        data.is_all_day,
    )
    raise_for_failure(result)
    return result.data


@router.put('/{time_off_id}', response_model=TimeOffResponse)
def update_time_off(
    time_off_id: int,
    data: UpdateTimeOffRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = time_off_service.update_time_off(
        db,
        time_off_id,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
        is_all_day=data.is_all_day,
    )
    raise_for_failure(result)
    return result.data


@router.delete('/{time_off_id}')
def delete_time_off(
    time_off_id: int,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = time_off_service.delete_time_off(db, time_off_id)
    raise_for_failure(result)
    return {'success': True, 'message': 'Time off deleted successfully'}
