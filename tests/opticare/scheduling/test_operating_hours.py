import pytest

from opticare.core import config
from opticare.scheduling.operating_hours import OperatingHours, default_operating_hours, resolve_operating_hours


def test_resolve_operating_hours_uses_first_window() -> None:
    hours = resolve_operating_hours('Mon-Fri: 08:00-17:00, Sat: 08:00-13:00')

    assert hours == OperatingHours(start='08:00', end='17:00')


def test_resolve_operating_hours_pads_single_digit_hours() -> None:
    assert resolve_operating_hours('Daily 9:30-16:00') == OperatingHours(start='09:30', end='16:00')


@pytest.mark.parametrize('description', [None, '', 'By appointment only', 'Mon-Fri: 25:00-26:00'])
def test_resolve_operating_hours_falls_back_to_default(description: str | None) -> None:
    assert resolve_operating_hours(description) == OperatingHours(start='08:00', end='17:00')


def test_default_operating_hours_follow_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'DEFAULT_OPERATING_HOURS_START', '7:30')
    monkeypatch.setattr(config, 'DEFAULT_OPERATING_HOURS_END', '15:00')

    assert default_operating_hours() == OperatingHours(start='07:30', end='15:00')
    assert resolve_operating_hours('closed') == OperatingHours(start='07:30', end='15:00')
