from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from opticare.models.optician import OpticianTimeOff, OpticianWorkingHours
from opticare.scheduling.availability import (
    CHECK_FAILED_REASON,
    NOT_SCHEDULED_REASON,
    OUTSIDE_HOURS_REASON,
    TIME_OFF_REASON,
    OpticianAvailabilityEvaluator,
    evaluate_optician_availability,
)
from opticare.scheduling.store import SqlAlchemyStore

TUESDAY_HOURS = OpticianWorkingHours(day_of_week=2, start_time='08:00', end_time='17:00', is_available=True)


def test_evaluate_reports_available_inside_working_hours() -> None:
    availability = evaluate_optician_availability(datetime(2025, 6, 3, 10, 0), TUESDAY_HOURS, [])

    assert availability.available is True
    assert availability.reason is None


@pytest.mark.parametrize('clock', [(8, 0), (17, 0)])
def test_evaluate_includes_working_hour_boundaries(clock: tuple[int, int]) -> None:
    availability = evaluate_optician_availability(datetime(2025, 6, 3, *clock), TUESDAY_HOURS, [])

    assert availability.available is True


@pytest.mark.parametrize('clock', [(7, 59), (17, 1)])
def test_evaluate_rejects_times_outside_working_hours(clock: tuple[int, int]) -> None:
    availability = evaluate_optician_availability(datetime(2025, 6, 3, *clock), TUESDAY_HOURS, [])

    assert availability.available is False
    assert availability.reason == OUTSIDE_HOURS_REASON


def test_evaluate_without_template_entry_is_not_scheduled() -> None:
    availability = evaluate_optician_availability(datetime(2025, 6, 3, 10, 0), None, [])

    assert availability.reason == NOT_SCHEDULED_REASON


def test_evaluate_uses_generic_reason_for_unexplained_time_off() -> None:
    time_off = OpticianTimeOff(start_date=datetime(2025, 6, 3, 9, 0), end_date=datetime(2025, 6, 3, 12, 0), reason=None)

    availability = evaluate_optician_availability(datetime(2025, 6, 3, 12, 0), TUESDAY_HOURS, [time_off])

    assert availability.available is False
    assert availability.reason == TIME_OFF_REASON


def test_sunday_is_not_a_working_day(scheduling_db, practice) -> None:
    evaluator = OpticianAvailabilityEvaluator(SqlAlchemyStore(scheduling_db))

    for hour in (0, 9, 12, 23):
        availability = evaluator.check(practice.optician.id, datetime(2025, 6, 1, hour, 0))

        assert availability.available is False
        assert availability.reason == NOT_SCHEDULED_REASON


def test_saturday_without_entry_is_not_scheduled(scheduling_db, practice) -> None:
    evaluator = OpticianAvailabilityEvaluator(SqlAlchemyStore(scheduling_db))

    availability = evaluator.check(practice.optician.id, datetime(2025, 6, 7, 10, 0))

    assert availability.reason == NOT_SCHEDULED_REASON


def test_time_off_reason_is_reported(scheduling_db, practice, add_time_off) -> None:
    add_time_off(datetime(2025, 6, 1), datetime(2025, 6, 7), reason='Vacation')
    evaluator = OpticianAvailabilityEvaluator(SqlAlchemyStore(scheduling_db))

    availability = evaluator.check(practice.optician.id, datetime(2025, 6, 3, 10, 0))

    assert availability.available is False
    assert availability.reason == 'Vacation'


def test_time_off_ending_before_the_moment_does_not_block(scheduling_db, practice, add_time_off) -> None:
    add_time_off(datetime(2025, 6, 3, 8, 0), datetime(2025, 6, 3, 9, 59), reason='Dentist')
    evaluator = OpticianAvailabilityEvaluator(SqlAlchemyStore(scheduling_db))

    assert evaluator.check(practice.optician.id, datetime(2025, 6, 3, 10, 0)).available is True
    assert evaluator.check(practice.optician.id, datetime(2025, 6, 3, 9, 59)).reason == 'Dentist'


def test_unknown_optician_is_not_scheduled(scheduling_db, practice) -> None:
    evaluator = OpticianAvailabilityEvaluator(SqlAlchemyStore(scheduling_db))

    assert evaluator.check(9999, datetime(2025, 6, 3, 10, 0)).reason == NOT_SCHEDULED_REASON


def test_storage_failure_is_reported_as_unavailable(scheduling_db, practice, monkeypatch: pytest.MonkeyPatch) -> None:
    store = SqlAlchemyStore(scheduling_db)

    def broken_lookup(optician_id: int, day_of_week: int):
        raise OperationalError('SELECT 1', {}, Exception('database is locked'))

    monkeypatch.setattr(store, 'get_working_hours', broken_lookup)

    availability = OpticianAvailabilityEvaluator(store).check(practice.optician.id, datetime(2025, 6, 3, 10, 0))

    assert availability.available is False
    assert availability.reason == CHECK_FAILED_REASON


def test_filter_slots_drops_slots_inside_time_off(scheduling_db, practice, add_time_off) -> None:
    add_time_off(datetime(2025, 6, 3, 12, 0), datetime(2025, 6, 3, 13, 0), reason='Lunch meeting')
    evaluator = OpticianAvailabilityEvaluator(SqlAlchemyStore(scheduling_db))
    slots = [datetime(2025, 6, 3, hour, minute) for hour in (11, 12, 13) for minute in (0, 30)]

    kept = evaluator.filter_slots(practice.optician.id, date(2025, 6, 3), slots)

    assert kept == [datetime(2025, 6, 3, 11, 0), datetime(2025, 6, 3, 11, 30), datetime(2025, 6, 3, 13, 30)]
