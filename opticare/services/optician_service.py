import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from opticare.models.branch import Branch
from opticare.models.optician import Optician
from opticare.models.service import Service
from opticare.scheduling.results import FailureCode, ServiceResult

logger = logging.getLogger(__name__)

OPTICIAN_FIELDS = ('name', 'email', 'phone', 'specialty', 'branch_id', 'is_active')


def list_branches(db: Session) -> ServiceResult[list[Branch]]:
    try:
        branches = db.query(Branch).order_by(Branch.name.asc()).all()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Branch listing failed')
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch branches')
    return ServiceResult.ok(branches)


def list_services(db: Session) -> ServiceResult[list[Service]]:
    try:
        services = db.query(Service).filter(Service.is_active.is_(True)).order_by(Service.name.asc()).all()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Service listing failed')
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch services')
    return ServiceResult.ok(services)


def list_opticians(
    db: Session,
    branch_id: int | None = None,
    include_inactive: bool = False,
) -> ServiceResult[list[Optician]]:
    try:
        statement = db.query(Optician)
        if not include_inactive:
            statement = statement.filter(Optician.is_active.is_(True))
        if branch_id is not None:
            statement = statement.filter(Optician.branch_id == branch_id)
        opticians = statement.order_by(Optician.name.asc()).all()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Optician listing failed')
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch opticians')
    return ServiceResult.ok(opticians)


def get_optician(db: Session, optician_id: int) -> ServiceResult[Optician]:
    try:
        optician = db.get(Optician, optician_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Optician %s lookup failed', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to fetch optician')

    if optician is None:
        return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')
    return ServiceResult.ok(optician)


def create_optician(db: Session, fields: Mapping[str, Any]) -> ServiceResult[Optician]:
    try:
        if db.get(Branch, fields.get('branch_id')) is None:
            return ServiceResult.fail(FailureCode.BRANCH_NOT_FOUND, 'Branch not found')

        optician = Optician(**{key: value for key, value in fields.items() if key in OPTICIAN_FIELDS})
        db.add(optician)
        db.commit()
        db.refresh(optician)
    except IntegrityError:
        db.rollback()
        return ServiceResult.fail(FailureCode.DUPLICATE_OPTICIAN, 'An optician with this email already exists')
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Optician creation failed')
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to create optician')

    return ServiceResult.ok(optician)


def update_optician(db: Session, optician_id: int, changes: Mapping[str, Any]) -> ServiceResult[Optician]:
    try:
        optician = db.get(Optician, optician_id)
        if optician is None:
            return ServiceResult.fail(FailureCode.OPTICIAN_NOT_FOUND, 'Optician not found')

        if 'branch_id' in changes and db.get(Branch, changes['branch_id']) is None:
            return ServiceResult.fail(FailureCode.BRANCH_NOT_FOUND, 'Branch not found')

        for key, value in changes.items():
            if key in OPTICIAN_FIELDS and value is not None:
                setattr(optician, key, value)

        db.commit()
        db.refresh(optician)
    except IntegrityError:
        db.rollback()
        return ServiceResult.fail(FailureCode.DUPLICATE_OPTICIAN, 'An optician with this email already exists')
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Optician %s update failed', optician_id)
        return ServiceResult.fail(FailureCode.INTERNAL_ERROR, 'Failed to update optician')

    return ServiceResult.ok(optician)
