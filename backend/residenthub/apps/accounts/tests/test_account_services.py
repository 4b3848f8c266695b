from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from residenthub.apps.accounts import router, schemas, services
from residenthub.apps.accounts.models import AccountStatus, User, UserRole
from residenthub.errors import BadRequestError, ConflictError, UnauthorizedError
from residenthub.notifications import Notifier
from residenthub.security import decode_access_token, hash_reset_token, verify_password
from residenthub.tests.factories import DEFAULT_PASSWORD, make_user


class RecordingNotifier(Notifier):
    def __init__(self):
        self.resets = []

    def send_password_reset(self, *, recipient, name, token):
        self.resets.append((recipient, token))

    def send_join_request_decision(self, *, recipient, name, approved, reason=None):
        return None


def _signup(db_session, email="admin@example.com"):
    payload = schemas.SignupRequest(name="  Asha Rao ", email=email, password="Password123!")
    return router.signup(payload, db=db_session)


def test_signup_creates_active_admin_and_returns_token(db_session):
    response = _signup(db_session, email="Admin@Example.com")

    user = db_session.query(User).one()
    assert user.email == "admin@example.com"
    assert user.name == "Asha Rao"
    assert user.role == UserRole.SOCIETY_ADMIN
    assert user.status == AccountStatus.ACTIVE
    assert user.password_hash != "Password123!"

    assert response.token_type == "bearer"
    assert response.user.id == user.id
    claims = decode_access_token(response.access_token)
    assert claims["sub"] == user.id
    assert claims["role"] == "SOCIETY_ADMIN"


def test_signup_rejects_duplicate_email(db_session):
    _signup(db_session)

    with pytest.raises(ConflictError):
        _signup(db_session, email="ADMIN@example.com")


def test_login_stamps_last_login(db_session):
    user = make_user(db_session, email="res@example.com")
    now = datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)

    logged_in = services.authenticate_user(db_session, email="RES@example.com", password=DEFAULT_PASSWORD, now=now)

    assert logged_in.id == user.id
    assert logged_in.last_login_at is not None


def test_login_failures_share_one_message(db_session):
    make_user(db_session, email="res@example.com")

    with pytest.raises(UnauthorizedError) as wrong_password:
        services.authenticate_user(db_session, email="res@example.com", password="nope-nope")
    with pytest.raises(UnauthorizedError) as unknown_email:
        services.authenticate_user(db_session, email="ghost@example.com", password=DEFAULT_PASSWORD)

    assert wrong_password.value.message == unknown_email.value.message == services.INVALID_CREDENTIALS_MESSAGE


def test_suspended_user_cannot_log_in_but_pending_can(db_session):
    make_user(db_session, email="blocked@example.com", status=AccountStatus.SUSPENDED)
    make_user(db_session, email="waiting@example.com", status=AccountStatus.PENDING_APPROVAL)

    with pytest.raises(UnauthorizedError) as exc:
        services.authenticate_user(db_session, email="blocked@example.com", password=DEFAULT_PASSWORD)
    assert "suspended" in exc.value.message

    pending = services.authenticate_user(db_session, email="waiting@example.com", password=DEFAULT_PASSWORD)
    assert pending.status == AccountStatus.PENDING_APPROVAL


def test_password_reset_flow(db_session):
    user = make_user(db_session, email="res@example.com")
    notifier = RecordingNotifier()

    token = services.request_password_reset(db_session, email="res@example.com", notifier=notifier)

    assert token is not None
    assert notifier.resets == [("res@example.com", token)]
    db_session.refresh(user)
    assert user.password_reset_token_hash == hash_reset_token(token)

    services.reset_password(db_session, token=token, new_password="BrandNew456!")

    db_session.refresh(user)
    assert verify_password("BrandNew456!", user.password_hash)
    assert user.password_reset_token_hash is None
    assert user.password_reset_expires_at is None

    # single use
    with pytest.raises(BadRequestError):
        services.reset_password(db_session, token=token, new_password="Another789!")


def test_password_reset_for_unknown_email_is_silent(db_session):
    notifier = RecordingNotifier()

    token = services.request_password_reset(db_session, email="ghost@example.com", notifier=notifier)

    assert token is None
    assert notifier.resets == []
    assert services.forgot_password_response(token).message == services.FORGOT_PASSWORD_MESSAGE


def test_expired_reset_token_is_rejected(db_session):
    make_user(db_session, email="res@example.com")
    issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
    token = services.request_password_reset(
        db_session, email="res@example.com", notifier=RecordingNotifier(), now=issued_at
    )

    with pytest.raises(BadRequestError) as exc:
        services.reset_password(db_session, token=token, new_password="BrandNew456!")
    assert exc.value.message == services.INVALID_RESET_TOKEN_MESSAGE


def test_forgot_password_response_hides_token_in_production(monkeypatch):
    monkeypatch.setattr(services, "APP_ENV", "production")
    assert services.forgot_password_response("abc").reset_token is None

    monkeypatch.setattr(services, "APP_ENV", "development")
    assert services.forgot_password_response("abc").reset_token == "abc"


def test_profile_update_reissues_token_on_email_change(db_session):
    user = make_user(db_session, email="old@example.com")

    response = router.update_me(
        schemas.ProfileUpdate(email="new@example.com"),
        db=db_session,
        current_user=user,
    )

    assert response.user.email == "new@example.com"
    assert response.access_token is not None

    renamed = router.update_me(schemas.ProfileUpdate(name="New Name"), db=db_session, current_user=user)
    assert renamed.user.name == "New Name"
    assert renamed.access_token is None


def test_profile_update_validation(db_session):
    make_user(db_session, email="taken@example.com")
    user = make_user(db_session, email="me@example.com")

    with pytest.raises(BadRequestError):
        services.update_profile(db_session, user=user, payload=schemas.ProfileUpdate())

    with pytest.raises(ConflictError) as exc:
        services.update_profile(db_session, user=user, payload=schemas.ProfileUpdate(email="taken@example.com"))
    assert exc.value.message == "Email is already taken by another user"


def test_profile_password_change(db_session):
    user = make_user(db_session)

    services.update_profile(db_session, user=user, payload=schemas.ProfileUpdate(password="Changed123!"))

    assert verify_password("Changed123!", user.password_hash)
