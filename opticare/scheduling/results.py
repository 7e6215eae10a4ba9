"""Result values returned by the scheduling engine and entity services.

Failures are values, not exceptions: each carries a human-readable message,
a stable code and the broad kind the HTTP layer maps to a status.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar('T')


class ErrorKind(str, Enum):
    NOT_FOUND = 'not_found'
    INVALID_INPUT = 'invalid_input'
    CONFLICT = 'conflict'
    INTERNAL = 'internal'


class FailureCode(str, Enum):
    SERVICE_NOT_FOUND = 'service_not_found'
    BRANCH_NOT_FOUND = 'branch_not_found'
    OPTICIAN_NOT_FOUND = 'optician_not_found'
    APPOINTMENT_NOT_FOUND = 'appointment_not_found'
    TIME_OFF_NOT_FOUND = 'time_off_not_found'
    WORKING_HOURS_NOT_FOUND = 'working_hours_not_found'
    INVALID_FORMAT = 'invalid_format'
    INVALID_RANGE = 'invalid_range'
    SLOT_TAKEN = 'slot_taken'
    OPTICIAN_UNAVAILABLE = 'optician_unavailable'
    OVERLAPPING_TIME_OFF = 'overlapping_time_off'
    CONFLICTING_APPOINTMENTS = 'conflicting_appointments'
    WORKING_HOURS_EXIST = 'working_hours_exist'
    DUPLICATE_OPTICIAN = 'duplicate_optician'
    INTERNAL_ERROR = 'internal_error'

    @property
    def kind(self) -> ErrorKind:
        return FAILURE_KINDS[self]


FAILURE_KINDS = {
    FailureCode.SERVICE_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureCode.BRANCH_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureCode.OPTICIAN_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureCode.APPOINTMENT_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureCode.TIME_OFF_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureCode.WORKING_HOURS_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureCode.INVALID_FORMAT: ErrorKind.INVALID_INPUT,
    FailureCode.INVALID_RANGE: ErrorKind.INVALID_INPUT,
    FailureCode.SLOT_TAKEN: ErrorKind.CONFLICT,
    FailureCode.OPTICIAN_UNAVAILABLE: ErrorKind.CONFLICT,
    FailureCode.OVERLAPPING_TIME_OFF: ErrorKind.CONFLICT,
    FailureCode.CONFLICTING_APPOINTMENTS: ErrorKind.CONFLICT,
    FailureCode.WORKING_HOURS_EXIST: ErrorKind.CONFLICT,
    FailureCode.DUPLICATE_OPTICIAN: ErrorKind.CONFLICT,
    FailureCode.INTERNAL_ERROR: ErrorKind.INTERNAL,
}


@dataclass
class ServiceResult(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None
    code: FailureCode | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> ErrorKind | None:
        return self.code.kind if self.code else None

    @classmethod
    def ok(cls, data: T | None = None) -> 'ServiceResult[T]':
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: FailureCode, error: str, **details: Any) -> 'ServiceResult[T]':
        return cls(success=False, error=error, code=code, details=details)
