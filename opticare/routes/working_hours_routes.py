from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from opticare.auth.dependencies import require_staff
from opticare.database import get_db
from opticare.models.user import User
from opticare.routes.common import ensure_database_ready, raise_for_failure
from opticare.scheduling.timeutils import normalize_time_of_day
from opticare.services import working_hours_service
from opticare.services.working_hours_service import ScheduleEntry

router = APIRouter(tags=['working-hours'])


class ScheduleEntryRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_time_of_day(cls, value: str) -> str:
        return normalize_time_of_day(value)

    def to_entry(self) -> ScheduleEntry:
        return ScheduleEntry(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            is_available=self.is_available,
        )


class WorkingHoursRequest(ScheduleEntryRequest):
    optician_id: int


class WeeklyScheduleRequest(BaseModel):
    optician_id: int
    working_hours: list[ScheduleEntryRequest]


class WorkingHoursResponse(BaseModel):
    id: int
    optician_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool

    class Config:
        from_attributes = True


@router.get('', response_model=list[WorkingHoursResponse])
def list_working_hours(
    optician_id: int = Query(...),
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = working_hours_service.list_working_hours(db, optician_id)
    raise_for_failure(result)
    return result.data


@router.post('', response_model=WorkingHoursResponse, status_code=status.HTTP_201_CREATED)
def create_working_hours(
    data: WorkingHoursRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = working_hours_service.create_working_hours(db, data.optician_id, data.to_entry())
    raise_for_failure(result)
    return result.data


@router.put('', response_model=WorkingHoursResponse)
def update_working_hours(
    data: WorkingHoursRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = working_hours_service.update_working_hours(db, data.optician_id, data.to_entry())
    raise_for_failure(result)
    return result.data


@router.put('/schedule', response_model=list[WorkingHoursResponse])
def replace_weekly_schedule(
    data: WeeklyScheduleRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = working_hours_service.replace_schedule(
        db,
        data.optician_id,
        [entry.to_entry() for entry in data.working_hours],
    )
    raise_for_failure(result)
    return result.data


@router.delete('')
def delete_working_hours(
    optician_id: int = Query(...),
    day_of_week: int | None = Query(default=None),
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = working_hours_service.delete_working_hours(db, optician_id, day_of_week)
    raise_for_failure(result)

    if day_of_week is None:
        return {'success': True, 'message': 'All working hours deleted successfully'}
    return {'success': True, 'message': 'Working hours deleted successfully'}
