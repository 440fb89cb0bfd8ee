from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from planform.core.config import get_settings
from planform.core.db import new_session
from planform.core.errors import Conflict, Unauthorized, ValidationError
from planform.core.ids import now_iso
from planform.modules.auth.passwords import compare_passwords, hash_password

from .models import User, VerificationToken

VERIFICATION_TTL_HOURS = 24


def _expired(expires_at: str) -> bool:
    dt = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    return dt <= datetime.now(timezone.utc)


def user_info(user: User) -> Dict[str, Any]:
    return {"id": user.id, "email": user.email, "name": user.name, "is_verified": bool(user.is_verified)}


def get_active_user(user_id: int) -> Optional[User]:
    with new_session() as session:
        user = session.get(User, user_id)
        if user is None or user.deleted_at is not None:
            return None
        return user


def get_user_by_email(email: str) -> Optional[User]:
    with new_session() as session:
        return session.exec(
            select(User).where(User.email == email.strip().lower(), User.deleted_at.is_(None))
        ).first()


def create_user(
    *,
    email: str,
    password: str,
    name: Optional[str] = None,
    remaining_runs: Optional[int] = None,
    is_verified: bool = False,
) -> tuple[User, str]:
    """Insert a user plus a verification token. Returns (user, token)."""
    now = now_iso()
    runs = get_settings().default_remaining_runs if remaining_runs is None else remaining_runs
    token = secrets.token_urlsafe(32)
    expires = (datetime.now(timezone.utc) + timedelta(hours=VERIFICATION_TTL_HOURS)).isoformat()

    with new_session() as session:
        try:
            user = User(
                name=name,
                email=email.strip().lower(),
                password_hash=hash_password(password),
                remaining_runs=runs,
                is_verified=is_verified,
                created_at=now,
                updated_at=now,
            )
            session.add(user)
            session.flush()
            session.add(VerificationToken(user_id=user.id, token=token, created_at=now, expires_at=expires))
            session.commit()
        except IntegrityError:
            session.rollback()
            raise Conflict("An account with this email already exists")
        session.refresh(user)
        return user, token


def authenticate(email: str, password: str) -> User:
    user = get_user_by_email(email)
    if user is None or not compare_passwords(password, user.password_hash):
        raise Unauthorized("Invalid email or password")
    return user


def verify_email(token: str) -> User:
    with new_session() as session:
        row = session.exec(select(VerificationToken).where(VerificationToken.token == token)).first()
        if row is None or _expired(row.expires_at):
            raise ValidationError("Invalid or expired verification token")

        user = session.get(User, row.user_id)
        if user is None:
            raise ValidationError("Invalid or expired verification token")

        try:
            user.is_verified = True
            user.updated_at = now_iso()
            session.add(user)
            session.delete(row)
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(user)
        return user
