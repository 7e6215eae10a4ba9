import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opticare.models.optician import OpticianTimeOff
from opticare.scheduling.conflicts import BookingConflictChecker
from opticare.scheduling.queries import TimeOffQuery
from opticare.scheduling.results import FailureCode, ServiceResult
from opticare.scheduling.store import SqlAlchemyStore

logger = logging.getLogger(__name__)


def list_time_off(
    db: Session,
    optician_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> ServiceResult[list[OpticianTimeOff]]:
    if (start is None) != (end is None):
        return ServiceResult.fail(FailureCode.INVALID_RANGE, 'Both start and end dates are required to filter time off')
    if start is not None and end < start:
        return ServiceResult.fail(FailureCode.INVALID_RANGE, 'End date cannot be before start date')

    store = SqlAlchemyStore(db)
    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')
        entries = store.list_time_off(TimeOffQuery(optician_id=optician_id, window_start=start, window_end=end))
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Time off listing for optician %s failed', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch time off')

    return ServiceResult.ok(entries)


def create_time_off(
    db: Session,
    optician_id: int,
    start_date: datetime,
    end_date: datetime,
    reason: str | None = None,
    is_all_day: bool = True,
) -> ServiceResult[OpticianTimeOff]:
    store = SqlAlchemyStore(db)

    try:
        if store.get_optician(optician_id) is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')

        conflict = BookingConflictChecker(store).check_time_off(optician_id, start_date, end_date)
        if not conflict.success:
            logger.warning('Time off for optician %s rejected: %s', optician_id, conflict.error)
            return ServiceResult.fail(conflict.code, conflict.error, **conflict.details)

        time_off = OpticianTimeOff(
            optician_id=optician_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            is_all_day=is_all_day,
        )
        db.add(time_off)
        db.commit()
        db.refresh(time_off)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Time off creation failed for optician %s', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to create time off')

    logger.info('Time off %s created for optician %s', time_off.id, optician_id)
    return ServiceResult.ok(time_off)


def update_time_off(
    db: Session,
    time_off_id: int,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    reason: str | None = None,
    is_all_day: bool | None = None,
) -> ServiceResult[OpticianTimeOff]:
    store = SqlAlchemyStore(db)

    try:
        time_off = db.get(OpticianTimeOff, time_off_id)
        if time_off is None:
            return ServiceResult.fail(FailureCode.TIME_OFF_NOT_FOUND, 'Time off not found')

        if start_date is not None or end_date is not None:
            new_start = start_date or time_off.start_date
            new_end = end_date or time_off.end_date
            conflict = BookingConflictChecker(store).check_time_off(
                time_off.optician_id,
                new_start,
                new_end,
                exclude_time_off_id=time_off.id,
            )
            if not conflict.success:
                return ServiceResult.fail(conflict.code, conflict.error, **conflict.details)
            time_off.start_date = new_start
            time_off.end_date = new_end

        if reason is not None:
            time_off.reason = reason
        if is_all_day is not None:
            time_off.is_all_day = is_all_day

        db.commit()
        db.refresh(time_off)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Time off %s update failed', time_off_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to update time off')

    return ServiceResult.ok(time_off)


def delete_time_off(db: Session, time_off_id: int) -> ServiceResult[None]:
    try:
        time_off = db.get(OpticianTimeOff, time_off_id)
        if time_off is None:
            return ServiceResult.fail(FailureCode.TIME_OFF_NOT_FOUND, 'Time off not found')

        db.delete(time_off)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Time off %s deletion failed', time_off_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to delete time off')

    return ServiceResult.ok()
