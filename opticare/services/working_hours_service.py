import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from opticare.models.optician import OpticianWorkingHours
from opticare.scheduling.results import FailureCode, ServiceResult
from opticare.scheduling.store import SqlAlchemyStore
from opticare.scheduling.timeutils import InvalidTimeFormat, compare_time_of_day, normalize_time_of_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleEntry:
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


def validate_schedule_entry(entry: ScheduleEntry) -> ServiceResult[ScheduleEntry]:
    """Check the weekday and times, returning the entry with canonical HH:MM strings."""
    if not 0 <= entry.day_of_week <= 6:
        return ServiceResult.fail(FailureCode.INVALID_FORMAT, 'Day of week must be 0-6')

    try:
        start_time = normalize_time_of_day(entry.start_time)
        end_time = normalize_time_of_day(entry.end_time)
    except InvalidTimeFormat as exc:
        return ServiceResult.fail(FailureCode.INVALID_FORMAT, str(exc))

    if compare_time_of_day(end_time, start_time) <= 0:
        return ServiceResult.fail(FailureCode.INVALID_RANGE, 'End time must be after start time')

    return ServiceResult.ok(
        ScheduleEntry(
            day_of_week=entry.day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_available=entry.is_available,
        )
    )


def _validate_schedule(entries: Iterable[ScheduleEntry]) -> ServiceResult[list[ScheduleEntry]]:
    validated: list[ScheduleEntry] = []
    seen_days: set[int] = set()
    for entry in entries:
        result = validate_schedule_entry(entry)
        if not result.success:
            return ServiceResult.fail(result.code, result.error, day_of_week=entry.day_of_week)
        if entry.day_of_week in seen_days:
            return ServiceResult.fail(
                FailureCode.INVALID_FORMAT,
                'Each day of week may appear only once',
                day_of_week=entry.day_of_week,
            )
        seen_days.add(entry.day_of_week)
        validated.append(result.data)
    return ServiceResult.ok(validated)


def list_working_hours(db: Session, optician_id: int) -> ServiceResult[list[OpticianWorkingHours]]:
    store = SqlAlchemyStore(db)
    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')
        entries = store.list_working_hours(optician_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Working hours listing for optician %s failed', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch working hours')

    return ServiceResult.ok(entries)


def create_working_hours(db: Session, optician_id: int, entry: ScheduleEntry) -> ServiceResult[OpticianWorkingHours]:
    store = SqlAlchemyStore(db)
    validated = validate_schedule_entry(entry)
    if not validated.success:
        return ServiceResult.fail(validated.code, validated.error)

    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')

        if store.get_working_hours(optician_id, entry.day_of_week) is not None:
            return ServiceResult.fail(FailureCode.WORKING_HOURS_EXIST, 'Working hours already exist for this day')

        working_hours = OpticianWorkingHours(
            optician_id=optician_id,
            day_of_week=validated.data.day_of_week,
            start_time=validated.data.start_time,
            end_time=validated.data.end_time,
            is_available=validated.data.is_available,
        )
        db.add(working_hours)
        db.commit()
        db.refresh(working_hours)
    except IntegrityError:
        db.rollback()
        return ServiceResult.fail(FailureCode.WORKING_HOURS_EXIST, 'Working hours already exist for this day')
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Working hours creation failed for optician %s', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to create working hours')

    return ServiceResult.ok(working_hours)


def update_working_hours(db: Session, optician_id: int, entry: ScheduleEntry) -> ServiceResult[OpticianWorkingHours]:
    store = SqlAlchemyStore(db)
    validated = validate_schedule_entry(entry)
    if not validated.success:
        return ServiceResult.fail(validated.code, validated.error)

    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')

        working_hours = store.get_working_hours(optician_id, entry.day_of_week)
        if working_hours is None:
            return ServiceResult.fail(FailureCode.WORKING_HOURS_NOT_FOUND, 'Working hours not found for this day')

        working_hours.start_time = validated.data.start_time
        working_hours.end_time = validated.data.end_time
        working_hours.is_available = validated.data.is_available
        db.commit()
        db.refresh(working_hours)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Working hours update failed for optician %s', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to update working hours')

    return ServiceResult.ok(working_hours)


def delete_working_hours(db: Session, optician_id: int, day_of_week: int | None = None) -> ServiceResult[int]:
    """Delete one weekday's entry, or the whole template when no day is given."""
    store = SqlAlchemyStore(db)
    if day_of_week is not None and not 0 <= day_of_week <= 6:
        return ServiceResult.fail(FailureCode.INVALID_FORMAT, 'Invalid day of week')

    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')

        statement = db.query(OpticianWorkingHours).filter(OpticianWorkingHours.optician_id == optician_id)
        if day_of_week is not None:
            statement = statement.filter(OpticianWorkingHours.day_of_week == day_of_week)

        deleted = statement.delete()
        if day_of_week is not None and deleted == 0:
            db.rollback()
            return ServiceResult.fail(FailureCode.WORKING_HOURS_NOT_FOUND, 'Working hours not found for this day')
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Working hours deletion failed for optician %s', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to delete working hours')

    return ServiceResult.ok(deleted)


def replace_schedule(
    db: Session,
    optician_id: int,
    entries: Iterable[ScheduleEntry],
) -> ServiceResult[list[OpticianWorkingHours]]:
    """Swap an optician's weekly template for ``entries``."""
    store = SqlAlchemyStore(db)
    validated = _validate_schedule(entries)
    if not validated.success:
        return ServiceResult.fail(validated.code, validated.error, **validated.details)

    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')

        db.query(OpticianWorkingHours).filter(
            OpticianWorkingHours.optician_id == optician_id,
        ).delete()
        db.add_all(
            OpticianWorkingHours(
                optician_id=optician_id,
                day_of_week=entry.day_of_week,
                start_time=entry.start_time,
                end_time=entry.end_time,
                is_available=entry.is_available,
            )
            for entry in validated.data
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Schedule replacement failed for optician %s', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to update working hours')

    return ServiceResult.ok(store.list_working_hours(optician_id))
