from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from opticare.models.branch import Branch
from opticare.scheduling.availability import AvailabilityAggregator
from opticare.scheduling.results import ErrorKind, FailureCode
from opticare.scheduling.store import SqlAlchemyStore

MONDAY = date(2024, 6, 10)


def _aggregator(db) -> AvailabilityAggregator:
    return AvailabilityAggregator(SqlAlchemyStore(db))


def test_open_branch_offers_every_slot(scheduling_db, practice) -> None:
    result = _aggregator(scheduling_db).available_slots(practice.branch.id, practice.service.id, MONDAY)

    assert result.success is True
    assert len(result.data) == 18
    assert result.data[0] == '2024-06-10T08:00:00'
    assert result.data[-1] == '2024-06-10T16:30:00'


def test_repeated_queries_return_the_same_slots(scheduling_db, practice) -> None:
    aggregator = _aggregator(scheduling_db)

    first = aggregator.available_slots(practice.branch.id, practice.service.id, MONDAY)
    second = aggregator.available_slots(practice.branch.id, practice.service.id, MONDAY)

    assert first.data == second.data


def test_booked_slot_disappears_and_returns_after_cancellation(scheduling_db, practice, add_appointment) -> None:
    aggregator = _aggregator(scheduling_db)
    appointment = add_appointment(datetime(2024, 6, 10, 10, 0))

    booked = aggregator.available_slots(practice.branch.id, practice.service.id, MONDAY)
    assert '2024-06-10T10:00:00' not in booked.data
    assert len(booked.data) == 17

    appointment.status = 'cancelled'
    scheduling_db.commit()

    reopened = aggregator.available_slots(practice.branch.id, practice.service.id, MONDAY)
    assert '2024-06-10T10:00:00' in reopened.data
    assert len(reopened.data) == 18


@pytest.mark.parametrize('status', ['completed', 'cancelled', 'no_show'])
def test_finished_appointments_do_not_block_slots(scheduling_db, practice, add_appointment, status: str) -> None:
    add_appointment(datetime(2024, 6, 10, 9, 0), status=status)

    result = _aggregator(scheduling_db).available_slots(practice.branch.id, practice.service.id, MONDAY)

    assert '2024-06-10T09:00:00' in result.data


def test_only_exact_start_times_are_removed(scheduling_db, practice, add_appointment) -> None:
    add_appointment(datetime(2024, 6, 10, 9, 15))

    result = _aggregator(scheduling_db).available_slots(practice.branch.id, practice.service.id, MONDAY)

    assert '2024-06-10T09:00:00' in result.data
    assert '2024-06-10T09:30:00' in result.data
    assert len(result.data) == 18


def test_other_branch_bookings_are_ignored(scheduling_db, practice, add_appointment) -> None:
    other = Branch(name='Greendale', operating_hours='Mon-Fri: 08:00-17:00')
    scheduling_db.add(other)
    scheduling_db.commit()
    add_appointment(datetime(2024, 6, 10, 11, 0), branch_id=other.id)

    result = _aggregator(scheduling_db).available_slots(practice.branch.id, practice.service.id, MONDAY)

    assert '2024-06-10T11:00:00' in result.data


def test_optician_view_applies_working_hours_and_time_off(scheduling_db, practice, add_time_off) -> None:
    add_time_off(datetime(2024, 6, 10, 8, 0), datetime(2024, 6, 10, 11, 59), reason='Training')

    result = _aggregator(scheduling_db).available_slots(
        practice.branch.id, practice.service.id, MONDAY, optician_id=practice.optician.id
    )

    assert result.data[0] == '2024-06-10T12:00:00'
    assert len(result.data) == 10


def test_optician_view_on_a_day_off_is_empty(scheduling_db, practice) -> None:
    sunday = date(2024, 6, 9)

    result = _aggregator(scheduling_db).available_slots(
        practice.branch.id, practice.service.id, sunday, optician_id=practice.optician.id
    )

    assert result.success is True
    assert result.data == []


def test_optician_view_only_counts_that_opticians_bookings(scheduling_db, practice, add_appointment) -> None:
    add_appointment(datetime(2024, 6, 10, 14, 0))
    add_appointment(datetime(2024, 6, 10, 15, 0), optician_id=practice.optician.id)

    result = _aggregator(scheduling_db).available_slots(
        practice.branch.id, practice.service.id, MONDAY, optician_id=practice.optician.id
    )

    assert '2024-06-10T14:00:00' in result.data
    assert '2024-06-10T15:00:00' not in result.data


def test_unknown_service_and_branch_are_not_found(scheduling_db, practice) -> None:
    aggregator = _aggregator(scheduling_db)

    missing_service = aggregator.available_slots(practice.branch.id, 9999, MONDAY)
    missing_branch = aggregator.available_slots(9999, practice.service.id, MONDAY)

    assert missing_service.code == FailureCode.SERVICE_NOT_FOUND
    assert missing_branch.code == FailureCode.BRANCH_NOT_FOUND
    assert missing_branch.kind == ErrorKind.NOT_FOUND


def test_storage_failure_becomes_internal_error(scheduling_db, practice, monkeypatch: pytest.MonkeyPatch) -> None:
    store = SqlAlchemyStore(scheduling_db)

    def broken_lookup(query):
        raise OperationalError('SELECT 1', {}, Exception('connection lost'))

    monkeypatch.setattr(store, 'list_appointments', broken_lookup)

    result = AvailabilityAggregator(store).available_slots(practice.branch.id, practice.service.id, MONDAY)

    assert result.success is False
    assert result.code == FailureCode.INTERNAL_ERROR


def test_available_days_reports_each_day_in_range(scheduling_db, practice) -> None:
    result = _aggregator(scheduling_db).available_days(
        practice.branch.id,
        practice.service.id,
        date(2024, 6, 8),
        date(2024, 6, 10),
        optician_id=practice.optician.id,
    )

    assert [day.date for day in result.data] == [date(2024, 6, 8), date(2024, 6, 9), date(2024, 6, 10)]
    assert [day.is_available for day in result.data] == [False, False, True]


@pytest.mark.parametrize(
    ('start', 'end'),
    [(date(2024, 6, 10), date(2024, 6, 9)), (date(2024, 6, 1), date(2024, 7, 2))],
)
def test_available_days_rejects_bad_ranges(scheduling_db, practice, start: date, end: date) -> None:
    result = _aggregator(scheduling_db).available_days(practice.branch.id, practice.service.id, start, end)

    assert result.code == FailureCode.INVALID_RANGE
