import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from opticare.database import get_db
from opticare.routes.common import ensure_database_ready, raise_for_failure
from opticare.routes.time_off_routes import TimeOffResponse
from opticare.routes.working_hours_routes import WorkingHoursResponse
from opticare.scheduling.availability import AvailabilityAggregator, OpticianAvailabilityEvaluator
from opticare.scheduling.queries import TimeOffQuery
from opticare.scheduling.results import FailureCode, ServiceResult
from opticare.scheduling.store import SqlAlchemyStore
from opticare.scheduling.timeutils import day_bounds, to_local_naive

router = APIRouter(tags=['availability'])

logger = logging.getLogger(__name__)


class AvailabilityRangeRequest(BaseModel):
    branch_id: int
    service_id: int
    start_date: date
    end_date: date
    optician_id: int | None = None


class OpticianAvailabilityRequest(BaseModel):
    optician_id: int
    date_time: datetime

    @field_validator('date_time')
    @classmethod
    def normalize_date_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class DayAvailabilityResponse(BaseModel):
    date: date
    available_slots: list[str]
    is_available: bool


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration: int


class OpticianContext(BaseModel):
    id: int
    name: str
    branch: str | None = None
    working_hours: list[WorkingHoursResponse]
    time_off: list[TimeOffResponse]


class AvailabilityRangeResponse(BaseModel):
    availability: list[DayAvailabilityResponse]
    optician: OpticianContext | None = None
    service: ServiceSummary
    start_date: date
    end_date: date


class OpticianAvailabilityResponse(BaseModel):
    optician_id: int
    date_time: datetime
    available: bool
    reason: str | None = None


def build_optician_context(
    store: SqlAlchemyStore,
    optician_id: int,
    start_date: date,
    end_date: date,
) -> OpticianContext | None:
    """Working hours plus the time-off overlapping the requested days."""
    optician = store.get_optician(optician_id)
    if optician is None:
        return None

    window_start, _ = day_bounds(start_date)
    _, window_end = day_bounds(end_date)
    time_off = store.list_time_off(
        TimeOffQuery(optician_id=optician_id, window_start=window_start, window_end=window_end)
    )
    return OpticianContext(
        id=optician.id,
        name=optician.name,
        branch=optician.branch.name if optician.branch else None,
        working_hours=[WorkingHoursResponse.model_validate(entry) for entry in store.list_working_hours(optician_id)],
        time_off=[TimeOffResponse.model_validate(entry) for entry in time_off],
    )


@router.get('', response_model=list[str])
def get_available_slots(
    branch_id: int = Query(...),
    service_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    optician_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    result = AvailabilityAggregator(SqlAlchemyStore(db)).available_slots(branch_id, service_id, slot_date, optician_id)
    raise_for_failure(result)
    return result.data


@router.post('/range', response_model=AvailabilityRangeResponse)
def get_available_days(data: AvailabilityRangeRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    store = SqlAlchemyStore(db)
    service = store.get_service(data.service_id)
    if service is None:
        raise_for_failure(ServiceResult.fail(FailureCode.SERVICE_NOT_FOUND, 'Service not found'))

    result = AvailabilityAggregator(store).available_days(
        data.branch_id,
        data.service_id,
        data.start_date,
        data.end_date,
        data.optician_id,
    )
    raise_for_failure(result)

    return AvailabilityRangeResponse(
        availability=[
            DayAvailabilityResponse(
                date=day.date,
                available_slots=day.available_slots,
                is_available=day.is_available,
            )
            for day in result.data
        ],
        optician=build_optician_context(store, data.optician_id, data.start_date, data.end_date)
        if data.optician_id is not None else None,
        service=ServiceSummary(id=service.id, name=service.name, duration=service.duration),
        start_date=data.start_date,
        end_date=data.end_date,
    )


@router.post('/optician', response_model=OpticianAvailabilityResponse)
def check_optician_availability(data: OpticianAvailabilityRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    availability = OpticianAvailabilityEvaluator(SqlAlchemyStore(db)).check(data.optician_id, data.date_time)
    logger.debug('Optician %s at %s: %s', data.optician_id, data.date_time, availability)

    return OpticianAvailabilityResponse(
        optician_id=data.optician_id,
        date_time=data.date_time,
        available=availability.available,
        reason=availability.reason,
    )
