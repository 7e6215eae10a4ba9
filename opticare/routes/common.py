from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from opticare.database import ensure_scheduling_schema
from opticare.scheduling.results import ErrorKind, ServiceResult

ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


def raise_for_failure(result: ServiceResult) -> None:
    if result.success:
        return

    status_code = ERROR_STATUS_CODES.get(result.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code == status.HTTP_404_NOT_FOUND or status_code >= 500:
        raise HTTPException(status_code=status_code, detail=result.error)

    raise HTTPException(
        status_code=status_code,
        detail={
            'error': result.error,
            'code': result.code.value if result.code else None,
            **result.details,
        },
    )
