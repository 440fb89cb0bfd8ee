from __future__ import annotations

from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("remaining_runs >= 0", name="ck_users_remaining_runs_non_negative"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: Optional[str] = None
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str = Field(default="member")
    # consumed by idea creation; never negative (guarded UPDATE in ideas.service)
    remaining_runs: int = Field(default=1)
    is_verified: bool = Field(default=False)
    agency_id: Optional[int] = Field(default=None, foreign_key="agencies.id")

    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class VerificationToken(SQLModel, table=True):
    __tablename__ = "verification_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    token: str = Field(unique=True)
    created_at: str
    expires_at: str
