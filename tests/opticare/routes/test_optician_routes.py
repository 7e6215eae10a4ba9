import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from opticare.models.service import Service
from opticare.routes.catalog_routes import list_branches, list_services
from opticare.routes.optician_routes import (
    OpticianUpdateRequest,
    OpticianWriteRequest,
    create_optician,
    get_optician,
    list_opticians,
    update_optician,
)


@pytest.fixture(autouse=True)
def database_ready(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('opticare.routes.optician_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr('opticare.routes.catalog_routes.ensure_database_ready', lambda: None)


def _new_optician(practice, **overrides) -> OpticianWriteRequest:
    fields = {
        'name': ' Dr. Nyasha Ndlovu ',
        'email': ' NDLOVU@linkopticians.co.zw ',
        'phone': '+263242757558',
        'specialty': 'Contact Lenses',
        'branch_id': practice.branch.id,
    }
    fields.update(overrides)
    return OpticianWriteRequest(**fields)


def test_optician_request_rejects_short_name(practice) -> None:
    with pytest.raises(ValidationError):
        _new_optician(practice, name='X')


def test_create_optician_returns_branch_name(scheduling_db, practice, staff_user) -> None:
    response = create_optician(_new_optician(practice), db=scheduling_db, _staff=staff_user)

    assert response.name == 'Dr. Nyasha Ndlovu'
    assert response.email == 'ndlovu@linkopticians.co.zw'
    assert response.branch_name == 'Robinson House'


def test_create_optician_with_taken_email_conflicts(scheduling_db, practice, staff_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_optician(
            _new_optician(practice, email=practice.optician.email),
            db=scheduling_db,
            _staff=staff_user,
        )

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'duplicate_optician'


def test_create_optician_for_unknown_branch(scheduling_db, practice, staff_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_optician(_new_optician(practice, branch_id=9999), db=scheduling_db, _staff=staff_user)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Branch not found'


def test_inactive_opticians_are_hidden_from_listing(scheduling_db, practice, staff_user) -> None:
    created = create_optician(_new_optician(practice), db=scheduling_db, _staff=staff_user)
    update_optician(created.id, OpticianUpdateRequest(is_active=False), db=scheduling_db, _staff=staff_user)

    listed = list_opticians(branch_id=practice.branch.id, db=scheduling_db)

    assert [optician.id for optician in listed] == [practice.optician.id]


def test_get_unknown_optician_is_not_found(scheduling_db, practice) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_optician(9999, db=scheduling_db)

    assert exception_info.value.status_code == 404


def test_catalog_lists_branches_and_active_services(scheduling_db, practice) -> None:
    scheduling_db.add(Service(name='Legacy Screening', duration=15, is_active=False))
    scheduling_db.commit()

    assert [branch.name for branch in list_branches(db=scheduling_db)] == ['Robinson House']
    assert [service.name for service in list_services(db=scheduling_db)] == ['Eye Examination']


def test_catalog_storage_failure_is_a_server_error(scheduling_db, practice, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_query(*entities):
        raise OperationalError('SELECT 1', {}, Exception('connection lost'))

    monkeypatch.setattr(scheduling_db, 'query', broken_query)

    for listing in (list_branches, list_services):
        with pytest.raises(HTTPException) as exception_info:
            listing(db=scheduling_db)
        assert exception_info.value.status_code == 500

    with pytest.raises(HTTPException) as exception_info:
        list_opticians(branch_id=None, db=scheduling_db)
    assert exception_info.value.detail == 'Failed to fetch opticians'
