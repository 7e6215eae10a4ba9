"""Batch operations across many opticians.

Items are processed one after another, each in its own transaction. A failed
item is recorded and the batch carries on.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from opticare.scheduling.results import ServiceResult
from opticare.services.optician_service import update_optician
from opticare.services.time_off_service import create_time_off
from opticare.services.working_hours_service import ScheduleEntry, replace_schedule

logger = logging.getLogger(__name__)


@dataclass
class BulkOperationError:
    id: int
    error: str
    code: str | None = None


@dataclass
class BulkOperationResult:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[BulkOperationError] = field(default_factory=list)
    succeeded_ids: list[int] = field(default_factory=list)
    data: list[Any] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def record(self, item_id: int, result: ServiceResult) -> None:
        self.processed += 1
        if result.success:
            self.succeeded += 1
            self.succeeded_ids.append(item_id)
            if result.data is not None:
                self.data.append(result.data)
            return

        self.failed += 1
        self.errors.append(
            BulkOperationError(
                id=item_id,
                error=result.error or 'Unknown error',
                code=result.code.value if result.code else None,
            )
        )


def _run_for_each(
    item_ids: Sequence[int],
    operation: Callable[[int], ServiceResult],
    label: str,
) -> BulkOperationResult:
    outcome = BulkOperationResult()
    for item_id in item_ids:
        outcome.record(item_id, operation(item_id))

    logger.info(
        '%s: %s processed, %s succeeded, %s failed',
        label, outcome.processed, outcome.succeeded, outcome.failed,
    )
    return outcome


def bulk_create_time_off(
    db: Session,
    optician_ids: Sequence[int],
    start_date: datetime,
    end_date: datetime,
    reason: str | None = None,
    is_all_day: bool = True,
) -> BulkOperationResult:
    return _run_for_each(
        optician_ids,
        lambda optician_id: create_time_off(db, optician_id, start_date, end_date, reason, is_all_day),
        'Bulk time off',
    )


def bulk_replace_schedule(
    db: Session,
    optician_ids: Sequence[int],
    schedule: Iterable[ScheduleEntry],
) -> BulkOperationResult:
    entries = list(schedule)
    return _run_for_each(
        optician_ids,
        lambda optician_id: replace_schedule(db, optician_id, entries),
        'Bulk working hours',
    )


def bulk_set_active(db: Session, optician_ids: Sequence[int], is_active: bool) -> BulkOperationResult:
    return _run_for_each(
        optician_ids,
        lambda optician_id: update_optician(db, optician_id, {'is_active': is_active}),
        'Bulk optician status',
    )
