from __future__ import annotations

from typing import Optional

from pydantic import Field

from planform.core.schemas import CamelModel


class UserInfoOut(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    is_verified: bool = False


class SignUpIn(CamelModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8, max_length=100)
    name: Optional[str] = Field(default=None, max_length=100)


class SignInIn(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=100)


class VerifyEmailIn(CamelModel):
    token: str = Field(min_length=1)


class SignOutOut(CamelModel):
    status: str = "signed_out"
