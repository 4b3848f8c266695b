"""Create (or repair) the platform owner account.

Usage:
    PLATFORM_OWNER_EMAIL=owner@example.com PLATFORM_OWNER_PASSWORD=... \
        python -m residenthub.scripts.seed_platform_owner
"""

from __future__ import annotations

import argparse
import os
from typing import Optional

from sqlalchemy.orm import Session

from residenthub.database import WriteSessionLocal
from residenthub.security import get_password_hash
from residenthub.apps.accounts.models import AccountStatus, User, UserRole


def ensure_platform_owner(
    db: Session,
    *,
    email: str,
    password: str,
    name: str = "Platform Owner",
    reset_password: bool = False,
) -> User:
    """Idempotent: an existing account is promoted and re-activated, not duplicated."""
    email = email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        existing.role = UserRole.PLATFORM_OWNER
        existing.status = AccountStatus.ACTIVE
        existing.society_id = None
        existing.unit_id = None
        if reset_password:
            existing.password_hash = get_password_hash(password)
        db.add(existing)
        db.commit()
        db.refresh(existing)
        return existing

    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=UserRole.PLATFORM_OWNER,
        status=AccountStatus.ACTIVE,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the ResidentHub platform owner.")
    parser.add_argument("--email", default=os.getenv("PLATFORM_OWNER_EMAIL"))
    parser.add_argument("--password", default=os.getenv("PLATFORM_OWNER_PASSWORD"))
    parser.add_argument("--name", default=os.getenv("PLATFORM_OWNER_NAME", "Platform Owner"))
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Overwrite the password when the account already exists.",
    )
    args = parser.parse_args(argv)
    if not args.email or not args.password:
        parser.error("email and password are required (flags or PLATFORM_OWNER_* env vars)")

    db = WriteSessionLocal()
    try:
        user = ensure_platform_owner(
            db,
            email=args.email,
            password=args.password,
            name=args.name,
            reset_password=args.reset_password,
        )
        print("OK:", user.email, "role =", user.role.value)
    finally:
        db.close()


if __name__ == "__main__":
    main()
