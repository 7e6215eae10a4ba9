from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from opticare.auth.dependencies import require_staff
from opticare.database import get_db
from opticare.models.user import User
from opticare.routes.common import ensure_database_ready, raise_for_failure
from opticare.services import optician_service

router = APIRouter(tags=['opticians'])


class OpticianResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    specialty: str | None = None
    is_active: bool
    branch_id: int
    branch_name: str | None = None


class OpticianWriteRequest(BaseModel):
    name: str
    email: str
    phone: str
    specialty: str | None = None
    branch_id: int
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < 2:
            raise ValueError('Name must be at least 2 characters')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('Invalid email')
        return normalized


class OpticianUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    specialty: str | None = None
    branch_id: int | None = None
    is_active: bool | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('Invalid email')
        return normalized


def to_optician_response(optician) -> OpticianResponse:
    return OpticianResponse(
        id=optician.id,
        name=optician.name,
        email=optician.email,
        phone=optician.phone,
        specialty=optician.specialty,
        is_active=optician.is_active,
        branch_id=optician.branch_id,
        branch_name=optician.branch.name if optician.branch else None,
    )


@router.get('', response_model=list[OpticianResponse])
def list_opticians(
    branch_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    result = optician_service.list_opticians(db, branch_id)
    raise_for_failure(result)
    return [to_optician_response(optician) for optician in result.data]


@router.get('/{optician_id}', response_model=OpticianResponse)
def get_optician(optician_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    result = optician_service.get_optician(db, optician_id)
    raise_for_failure(result)
    return to_optician_response(result.data)


@router.post('', response_model=OpticianResponse, status_code=status.HTTP_201_CREATED)
def create_optician(
    data: OpticianWriteRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = optician_service.create_optician(db, data.model_dump())
    raise_for_failure(result)
    return to_optician_response(result.data)


@router.patch('/{optician_id}', response_model=OpticianResponse)
def update_optician(
    optician_id: int,
    data: OpticianUpdateRequest,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff),
):
    ensure_database_ready()

    result = optician_service.update_optician(db, optician_id, data.model_dump(exclude_unset=True))
    raise_for_failure(result)
    return to_optician_response(result.data)
