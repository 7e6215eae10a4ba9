from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from opticare.auth.dependencies import require_staff
from opticare.database import get_db
from opticare.models.user import User
from opticare.routes.common import ensure_database_ready
from opticare.routes.working_hours_routes import ScheduleEntryRequest
from opticare.scheduling.timeutils import to_local_naive
from opticare.services import bulk_service
from opticare.services.bulk_service import BulkOperationResult

router = APIRouter(tags=['bulk'])


class BulkTimeOffRequest(BaseModel):
    optician_ids: list[int] = Field(min_length=1)
    start_date: datetime
    end_date: datetime
    reason: str | None = None
    is_all_day: bool = True

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class BulkScheduleRequest(BaseModel):
    optician_ids: list[int] = Field(min_length=1)
    schedule: list[ScheduleEntryRequest] = Field(min_length=1)


class BulkStatusRequest(BaseModel):
    optician_ids: list[int] = Field(min_length=1)
    is_active: bool


class BulkOperationErrorResponse(BaseModel):
    id: int
    error: str
    code: str | None = None


class BulkOperationResponse(BaseModel):
    success: bool
    processed: int
    succeeded: int
    failed: int
    errors: list[BulkOperationErrorResponse]
    succeeded_ids: list[int]


def to_bulk_response(outcome: BulkOperationResult) -> BulkOperationResponse:
    return BulkOperationResponse(
        success=outcome.success,
        processed=outcome.processed,
        succeeded=outcome.succeeded,
        failed=outcome.failed,
        errors=[
            BulkOperationErrorResponse(id=error.id, error=error.error, code=error.code)
            for error in outcome.errors
        ],
        succeeded_ids=outcome.succeeded_ids,
    )


@router.post('/time-off', response_model=BulkOperationResponse)
def bulk_create_time_off(
    data: BulkTimeOffRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    outcome = bulk_service.bulk_create_time_off(
        db,
        data.optician_ids,
        data.start_date,
        data.end_date,
        data.reason,
        data.is_all_day,
    )
    return to_bulk_response(outcome)


@router.post('/working-hours', response_model=BulkOperationResponse)
def bulk_replace_schedule(
    data: BulkScheduleRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    outcome = bulk_service.bulk_replace_schedule(
        db,
        data.optician_ids,
        [entry.to_entry() for entry in data.schedule],
    )
    return to_bulk_response(outcome)


@router.post('/status', response_model=BulkOperationResponse)
def bulk_set_active(
    data: BulkStatusRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    outcome = bulk_service.bulk_set_active(db, data.optician_ids, data.is_active)
    return to_bulk_response(outcome)
