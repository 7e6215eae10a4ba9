import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from opticare.auth.dependencies import get_current_user, require_staff
from opticare.auth.jwt_handler import create_access_token, decode_access_token
from opticare.core import config
from opticare.models.user import User
from opticare.routes.auth_routes import me


@pytest.fixture(autouse=True)
def signing_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'test-signing-key-with-enough-length-for-hs256')


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trips_subject_and_role() -> None:
    payload = decode_access_token(create_access_token('reception@linkopticians.co.zw', role='admin'))

    assert payload['sub'] == 'reception@linkopticians.co.zw'
    assert payload['role'] == 'admin'


def test_expired_token_is_rejected() -> None:
    token = create_access_token('reception@linkopticians.co.zw', expires_minutes=-1)

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(token)


def test_get_current_user_resolves_staff_account(scheduling_db, staff_user) -> None:
    user = get_current_user(_bearer(create_access_token(staff_user.email)), db=scheduling_db)

    assert user.id == staff_user.id
    assert me(current_user=user) == {
        'email': 'reception@linkopticians.co.zw',
        'full_name': 'Front Desk',
        'role': 'staff',
    }


def test_get_current_user_rejects_tampered_token(scheduling_db, staff_user) -> None:
    token = create_access_token(staff_user.email) + 'x'

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(_bearer(token), db=scheduling_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_unknown_account(scheduling_db, staff_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(_bearer(create_access_token('stranger@example.com')), db=scheduling_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


@pytest.mark.parametrize('role', ['staff', 'admin', 'ADMIN'])
def test_require_staff_accepts_staff_roles(role: str) -> None:
    user = User(email='desk@linkopticians.co.zw', role=role)

    assert require_staff(current_user=user) is user


@pytest.mark.parametrize('role', ['patient', None])
def test_require_staff_rejects_other_roles(role: str | None) -> None:
    with pytest.raises(HTTPException) as exception_info:
        require_staff(current_user=User(email='someone@example.com', role=role))

    assert exception_info.value.status_code == 403


def test_runtime_config_refuses_default_secret_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()
