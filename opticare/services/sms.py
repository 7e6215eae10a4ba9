"""
Twilio SMS delivery for appointment notifications.

Messages go straight to the Twilio REST API. Without real credentials the
message is only logged, so development and test runs never hit the network.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime

import httpx

from opticare.core import config

logger = logging.getLogger(__name__)

_PLACEHOLDER_TOKENS = {"", "your_auth_token_here"}
_PLACEHOLDER_NUMBERS = {"", "+1234567890"}
_TWILIO_ERROR_MESSAGES = {
    21211: "Invalid phone number format",
    21408: "Twilio account not authorized to send to this region",
    21610: "Phone number is not SMS capable",
}


@dataclass(frozen=True)
class SmsResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


def has_valid_twilio_config() -> bool:
    return (
        config.TWILIO_ACCOUNT_SID.startswith("AC")
        and config.TWILIO_AUTH_TOKEN not in _PLACEHOLDER_TOKENS
        and config.TWILIO_PHONE_NUMBER not in _PLACEHOLDER_NUMBERS
    )


def format_phone_number(phone: str, country_code: str | None = None) -> str:
    """Convert a local number such as 0771234567 to E.164 (+263771234567)."""
    country_code = country_code or config.SMS_DEFAULT_COUNTRY_CODE
    formatted = re.sub(r"[\s\-()]", "", phone.strip())

    if formatted.startswith("0"):
        formatted = f"+{country_code}{formatted[1:]}"
    elif not formatted.startswith("+"):
        formatted = f"+{formatted}"

    if not formatted.startswith(f"+{country_code}"):
        logger.warning("Number may not be in the expected +%s format: %s", country_code, formatted)

    return formatted


def send_sms(to: str, message: str) -> SmsResult:
    if not has_valid_twilio_config():
        logger.info("SMS not sent (Twilio not configured). To: %s Message: %s", to, message)
        return SmsResult(success=True, message_id="simulated")

    formatted_to = format_phone_number(to)
    account_sid = config.TWILIO_ACCOUNT_SID
    logger.info("Sending SMS to %s", formatted_to)

    try:
        response = httpx.post(
            f"{config.TWILIO_API_BASE_URL}/Accounts/{account_sid}/Messages.json",
            auth=(account_sid, config.TWILIO_AUTH_TOKEN),
            data={"To": formatted_to, "From": config.TWILIO_PHONE_NUMBER, "Body": message},
            timeout=config.SMS_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        logger.error("Twilio request failed: %s", exc)
        return SmsResult(success=False, error=str(exc))

    if response.status_code in (200, 201):
        message_sid = response.json().get("sid")
        logger.info("SMS sent successfully: %s", message_sid)
        return SmsResult(success=True, message_id=message_sid)

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    error_code = payload.get("code")
    error_message = _TWILIO_ERROR_MESSAGES.get(error_code, payload.get("message") or "Failed to send SMS")
    logger.error("Twilio API error [%s]: %s", error_code, error_message)
    return SmsResult(success=False, error=error_message)


def notify_safely(to: str | None, message: str) -> SmsResult | None:
    """Send a notification without letting delivery problems reach the caller."""
    if not to:
        return None
    try:
        result = send_sms(to, message)
    except Exception:
        logger.exception("Unexpected error while sending SMS to %s", to)
        return None
    if not result.success:
        logger.warning("SMS to %s was not delivered: %s", to, result.error)
    return result


def _display_time(moment: datetime) -> str:
    return moment.strftime("%a %d %b %Y at %H:%M")


def booking_confirmation_message(patient_name: str, service_name: str, branch_name: str, scheduled_at: datetime) -> str:
    return (
        f"Hi {patient_name}! Your {service_name} appointment at {branch_name} is confirmed for "
        f"{_display_time(scheduled_at)}. Thank you for choosing {config.SMS_BUSINESS_NAME}!"
    )


def status_change_message(patient_name: str, status: str, optician_name: str | None, branch_phone: str) -> str:
    message = f"Hi {patient_name}! Your appointment status has been updated to: {status}."
    if optician_name:
        message += f" Your assigned optician: {optician_name}."
    return message + f" For questions, call {branch_phone}."


def cancellation_message(patient_name: str, optician_name: str | None, branch_phone: str) -> str:
    message = f"Hi {patient_name}! Your appointment has been cancelled."
    if optician_name:
        message += f" Your assigned optician was: {optician_name}."
    return message + f" If this was a mistake, please call {branch_phone}."
