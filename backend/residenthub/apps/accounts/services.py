# backend/residenthub/apps/accounts/services.py

"""
Account flows: admin signup, login, password reset and self-service profile.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from residenthub.database import unit_of_work
from residenthub.errors import BadRequestError, ConflictError, UnauthorizedError
from residenthub.notifications import Notifier, get_notifier
from residenthub.security import (
    SUSPENDED_MESSAGE,
    build_token_claims,
    create_access_token,
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    reset_token_expiry,
    verify_password,
)
from residenthub.utils.dates import ensure_aware

from . import models, schemas

logger = logging.getLogger(__name__)

APP_ENV = os.getenv("RESIDENTHUB_ENV", "development").strip().lower()

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent."
INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired reset token"


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def _is_production() -> bool:
    return APP_ENV in {"prod", "production"}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.email == _normalise_email(email))
        .first()
    )


def ensure_email_available(
    db: Session,
    email: str,
    *,
    exclude_user_id: Optional[str] = None,
    message: str = "User with this email already exists",
) -> str:
    """Return the normalised email, or raise ConflictError if another user has it."""
    normalised = _normalise_email(email)
    existing = get_user_by_email(db, normalised)
    if existing is not None and existing.id != exclude_user_id:
        raise ConflictError(message)
    return normalised


def issue_token_response(user: models.User) -> schemas.TokenResponse:
    token = create_access_token(data=build_token_claims(user))
    return schemas.TokenResponse(
        access_token=token,
        user=schemas.UserRead.model_validate(user),
    )


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------


def signup_admin(db: Session, payload: schemas.SignupRequest) -> models.User:
    """Register a society admin. Admins are active immediately."""
    email = ensure_email_available(db, payload.email)
    user = models.User(
        name=payload.name.strip(),
        email=email,
        password_hash=get_password_hash(payload.password),
        role=models.UserRole.SOCIETY_ADMIN,
        status=models.AccountStatus.ACTIVE,
    )
    with unit_of_work(db, conflict_message="User with this email already exists"):
        db.add(user)
    db.refresh(user)
    logger.info("Society admin registered", extra={"user_id": user.id})
    return user


def authenticate_user(
    db: Session,
    *,
    email: str,
    password: str,
    now: Optional[datetime] = None,
) -> models.User:
    """
    Check credentials and stamp last_login_at.

    Pending users may log in (they need to poll their join request);
    suspended users may not.
    """
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
    if user.status == models.AccountStatus.SUSPENDED:
        raise UnauthorizedError(SUSPENDED_MESSAGE)

    user.last_login_at = now or datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


def request_password_reset(
    db: Session,
    *,
    email: str,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Issue a reset token for `email` if such a user exists.

    Returns the raw token (or None for unknown emails). Callers must respond
    identically in both cases.
    """
    user = get_user_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None

    raw_token = generate_reset_token()
    user.password_reset_token_hash = hash_reset_token(raw_token)
    user.password_reset_expires_at = reset_token_expiry(now)
    db.add(user)
    db.commit()

    (notifier or get_notifier()).send_password_reset(
        recipient=user.email,
        name=user.name,
        token=raw_token,
    )
    return raw_token


def reset_password(
    db: Session,
    *,
    token: str,
    new_password: str,
    now: Optional[datetime] = None,
) -> models.User:
    now = now or datetime.now(timezone.utc)
    user = (
        db.query(models.User)
        .filter(models.User.password_reset_token_hash == hash_reset_token(token))
        .first()
    )
    if user is None:
        raise BadRequestError(INVALID_RESET_TOKEN_MESSAGE)

    expires_at = ensure_aware(user.password_reset_expires_at)
    if expires_at is None or expires_at <= now:
        raise BadRequestError(INVALID_RESET_TOKEN_MESSAGE)

    user.password_hash = get_password_hash(new_password)
    user.password_reset_token_hash = None
    user.password_reset_expires_at = None
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Password reset completed", extra={"user_id": user.id})
    return user


def forgot_password_response(raw_token: Optional[str]) -> schemas.ForgotPasswordResponse:
    return schemas.ForgotPasswordResponse(
        message=FORGOT_PASSWORD_MESSAGE,
        reset_token=None if _is_production() else raw_token,
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def update_profile(db: Session, *, user: models.User, payload: schemas.ProfileUpdate) -> bool:
    """
    Apply name/email/password changes to the caller's own account.

    Returns True when the email changed (callers reissue the token).
    """
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise BadRequestError("No fields provided to update")

    email_changed = False
    if "name" in data:
        user.name = data["name"].strip()
    if "email" in data:
        email = ensure_email_available(
            db,
            data["email"],
            exclude_user_id=user.id,
            message="Email is already taken by another user",
        )
        email_changed = email != user.email
        user.email = email
    if "password" in data:
        user.password_hash = get_password_hash(data["password"])

    with unit_of_work(db, conflict_message="Email is already taken by another user"):
        db.add(user)
    db.refresh(user)
    return email_changed
