# backend/residenthub/security.py

"""
Security helpers for ResidentHub.

Responsibilities:
- Password hashing and verification
- Password-reset token generation, digesting and expiry
- JWT access token creation and decoding
- FastAPI dependencies forming the request pipeline:
    get_current_user         (token -> live User, 401)
    get_current_active_user  (account status gate, 403)
    require_roles(...)       (role gate, 403)
  Tenant scope is checked afterwards, inside the services, through
  residenthub.access.
"""

from __future__ import annotations

import hashlib
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Set, Union

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
import bcrypt

from .database import get_db
from .errors import ForbiddenError, UnauthorizedError
from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import AccountStatus, UserRole

# ---------------------------------------------------------------------------
# CONFIG
# ---------------------------------------------------------------------------

# In production, ALWAYS override these via environment variables.
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

try:
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")
    )
except ValueError:
    ACCESS_TOKEN_EXPIRE_MINUTES = 1440

try:
    PASSWORD_RESET_TOKEN_TTL_HOURS: int = int(
        os.getenv("PASSWORD_RESET_TOKEN_TTL_HOURS", "1")
    )
except ValueError:
    PASSWORD_RESET_TOKEN_TTL_HOURS = 1

SUSPENDED_MESSAGE = "Your account has been suspended. Please contact support."
PENDING_APPROVAL_MESSAGE = "Your account is pending approval."
INACTIVE_MESSAGE = "Your account is not active."

# Used by FastAPI's OAuth2 docs / OpenAPI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ---------------------------------------------------------------------------
# PASSWORD HASHING
# ---------------------------------------------------------------------------

_pwd_hasher = PasswordHasher(
    time_cost=int(os.getenv("ARGON2_TIME_COST", "3")),
    memory_cost=int(os.getenv("ARGON2_MEMORY_COST", "65536")),  # KiB (64MB)
    parallelism=int(os.getenv("ARGON2_PARALLELISM", "2")),
)


def _is_argon2_hash(hashed_password: str) -> bool:
    return isinstance(hashed_password, str) and hashed_password.startswith("$argon2")


def _is_bcrypt_hash(hashed_password: str) -> bool:
    return isinstance(hashed_password, str) and hashed_password.startswith(("$2a$", "$2b$", "$2y$"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if the plain password matches the hash."""
    if not plain_password or not hashed_password:
        return False

    if _is_argon2_hash(hashed_password):
        try:
            return _pwd_hasher.verify(hashed_password, plain_password)
        except (VerifyMismatchError, VerificationError, InvalidHash):
            return False

    # Accounts imported from the previous system carry bcrypt digests.
    if _is_bcrypt_hash(hashed_password):
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False

    return False


def get_password_hash(password: str) -> str:
    """Hash a password for storing in the database (Argon2id)."""
    return _pwd_hasher.hash(password)


# ---------------------------------------------------------------------------
# PASSWORD RESET TOKENS
# ---------------------------------------------------------------------------


def generate_reset_token(n_bytes: int = 32) -> str:
    """Random hex token handed to the user; only its digest is stored."""
    return secrets.token_hex(n_bytes)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def reset_token_expiry(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=PASSWORD_RESET_TOKEN_TTL_HOURS)


# ---------------------------------------------------------------------------
# JWT TOKENS
# ---------------------------------------------------------------------------


def build_token_claims(user: account_models.User) -> dict:
    """Claims embedded at login/signup: subject, role and tenant scope."""
    return {
        "sub": user.id,
        "role": user.role.value if isinstance(user.role, UserRole) else user.role,
        "society_id": user.society_id,
        "unit_id": user.unit_id,
    }


def create_access_token(
    *,
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT.

    The `data` dict should already include the subject, e.g.:
        {"sub": user.id, "role": "RESIDENT", "society_id": ..., "unit_id": ...}
    """
    to_encode = data.copy()

    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError()
    if not payload.get("sub"):
        raise UnauthorizedError()
    return payload


# ---------------------------------------------------------------------------
# USER LOOKUP HELPERS
# ---------------------------------------------------------------------------


def get_user_by_id(
    db: Session,
    user_id: Union[str, int, None],
) -> Optional[account_models.User]:
    if user_id is None:
        return None

    normalised_id = str(user_id).strip()

    return (
        db.query(account_models.User)
        .filter(account_models.User.id == normalised_id)
        .first()
    )


def authenticate_token(db: Session, token: str) -> account_models.User:
    """
    Resolve a bearer token to the live User row.

    Claims other than `sub` are not trusted: role, scope and status always
    come from the database.
    """
    payload = decode_access_token(token)
    user = get_user_by_id(db, payload.get("sub"))
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def ensure_account_active(user: account_models.User) -> account_models.User:
    if user.status == AccountStatus.ACTIVE:
        return user
    if user.status == AccountStatus.SUSPENDED:
        raise ForbiddenError(SUSPENDED_MESSAGE)
    if user.status == AccountStatus.PENDING_APPROVAL:
        raise ForbiddenError(PENDING_APPROVAL_MESSAGE)
    raise ForbiddenError(INACTIVE_MESSAGE)


def ensure_role(user: account_models.User, roles: Set[UserRole]) -> account_models.User:
    if user.role not in roles:
        raise ForbiddenError("Insufficient permissions for this operation")
    return user


# ---------------------------------------------------------------------------
# FASTAPI DEPENDENCIES
# ---------------------------------------------------------------------------


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> account_models.User:
    """
    Authenticated user regardless of account status.

    Only routes that pending users must reach (their own join request) depend
    on this directly; everything else goes through get_current_active_user.
    """
    return authenticate_token(db, token)


def get_current_active_user(
    current_user: account_models.User = Depends(get_current_user),
) -> account_models.User:
    return ensure_account_active(current_user)


def require_roles(
    *allowed_roles: Union[UserRole, str],
) -> Callable[[account_models.User], account_models.User]:
    """
    Dependency factory to enforce that the current (active) user has one of
    the given roles.

    Usage:
        @router.post(...)
        def endpoint(
            current_user: User = Depends(
                require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)
            )
        ):
            ...
    """
    normalised_roles: Set[UserRole] = set()
    for r in allowed_roles:
        if isinstance(r, UserRole):
            normalised_roles.add(r)
        else:
            try:
                normalised_roles.add(UserRole(r))
            except ValueError:
                raise ValueError(f"Unknown role {r!r} passed to require_roles()")

    def dependency(
        current_user: account_models.User = Depends(get_current_active_user),
    ) -> account_models.User:
        return ensure_role(current_user, normalised_roles)

    return dependency
