from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from opticare.database import get_db
from opticare.routes.common import ensure_database_ready, raise_for_failure
from opticare.services import optician_service

router = APIRouter(tags=['catalog'])


class BranchResponse(BaseModel):
    id: int
    name: str
    address: str
    phone: str
    email: str
    operating_hours: str

    class Config:
        from_attributes = True


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    duration: int
    price: float | None = None

    class Config:
        from_attributes = True


@router.get('/branches', response_model=list[BranchResponse])
def list_branches(db: Session = Depends(get_db)):
    ensure_database_ready()
    result = optician_service.list_branches(db)
    raise_for_failure(result)
    return result.data


@router.get('/services', response_model=list[ServiceResponse])
def list_services(db: Session = Depends(get_db)):
    ensure_database_ready()
    result = optician_service.list_services(db)
    raise_for_failure(result)
    return result.data
