from datetime import datetime

import httpx
import pytest

from opticare.core import config
from opticare.services import sms


@pytest.fixture
def twilio_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'TWILIO_ACCOUNT_SID', 'AC0123456789')
    monkeypatch.setattr(config, 'TWILIO_AUTH_TOKEN', 'secret-token')
    monkeypatch.setattr(config, 'TWILIO_PHONE_NUMBER', '+15005550006')


@pytest.fixture
def twilio_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'TWILIO_ACCOUNT_SID', '')
    monkeypatch.setattr(config, 'TWILIO_AUTH_TOKEN', '')
    monkeypatch.setattr(config, 'TWILIO_PHONE_NUMBER', '')


@pytest.mark.parametrize(
    ('phone', 'expected'),
    [
        ('0771234567', '+263771234567'),
        ('077 123 4567', '+263771234567'),
        ('263771234567', '+263771234567'),
        ('+263771234567', '+263771234567'),
        ('(077) 123-4567', '+263771234567'),
    ],
)
def test_format_phone_number_produces_international_numbers(phone: str, expected: str) -> None:
    assert sms.format_phone_number(phone, '263') == expected


def test_format_phone_number_honours_other_country_codes() -> None:
    assert sms.format_phone_number('0821234567', '27') == '+27821234567'


def test_send_sms_is_simulated_without_credentials(twilio_missing, monkeypatch: pytest.MonkeyPatch) -> None:
    def unexpected_post(*args, **kwargs):
        raise AssertionError('Twilio should not be called')

    monkeypatch.setattr(sms.httpx, 'post', unexpected_post)

    result = sms.send_sms('0771234567', 'Hello')

    assert result == sms.SmsResult(success=True, message_id='simulated')


def test_send_sms_posts_to_twilio(twilio_configured, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_post(url, auth, data, timeout):
        calls.append((url, auth, data))
        return httpx.Response(201, json={'sid': 'SM123'})

    monkeypatch.setattr(sms.httpx, 'post', fake_post)

    result = sms.send_sms('0771234567', 'Your appointment is confirmed')

    assert result.success is True
    assert result.message_id == 'SM123'
    url, auth, data = calls[0]
    assert url.endswith('/Accounts/AC0123456789/Messages.json')
    assert auth == ('AC0123456789', 'secret-token')
    assert data == {'To': '+263771234567', 'From': '+15005550006', 'Body': 'Your appointment is confirmed'}


def test_send_sms_translates_twilio_error_codes(twilio_configured, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sms.httpx,
        'post',
        lambda *args, **kwargs: httpx.Response(400, json={'code': 21610, 'message': 'Attempt to send to unsubscribed'}),
    )

    result = sms.send_sms('0771234567', 'Hello')

    assert result.success is False
    assert result.error == 'Phone number is not SMS capable'


def test_send_sms_reports_transport_errors(twilio_configured, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_post(*args, **kwargs):
        raise httpx.ConnectTimeout('timed out')

    monkeypatch.setattr(sms.httpx, 'post', failing_post)

    result = sms.send_sms('0771234567', 'Hello')

    assert result.success is False
    assert result.error == 'timed out'


def test_notify_safely_swallows_unexpected_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def exploding_send(to, message):
        raise RuntimeError('boom')

    monkeypatch.setattr(sms, 'send_sms', exploding_send)

    assert sms.notify_safely('0771234567', 'Hello') is None


def test_notify_safely_skips_missing_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sms, 'send_sms', lambda to, message: pytest.fail('should not send'))

    assert sms.notify_safely('', 'Hello') is None
    assert sms.notify_safely(None, 'Hello') is None


def test_booking_confirmation_message_mentions_the_visit() -> None:
    message = sms.booking_confirmation_message(
        'Rudo', 'Eye Examination', 'Robinson House', datetime(2025, 6, 3, 10, 30)
    )

    assert message.startswith('Hi Rudo! Your Eye Examination appointment at Robinson House')
    assert 'Tue 03 Jun 2025 at 10:30' in message


def test_status_and_cancellation_messages_mention_optician_when_assigned() -> None:
    assert 'Your assigned optician: Dr. Moyo.' in sms.status_change_message('Rudo', 'confirmed', 'Dr. Moyo', '+263242757558')
    assert 'optician' not in sms.cancellation_message('Rudo', None, '+263242757558')
