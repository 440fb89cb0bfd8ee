"""Session cookie helpers shared by the gate and the account routes."""
from __future__ import annotations

from datetime import datetime

from starlette.responses import Response

from planform.core.config import get_settings

from .tokens import session_expiry, session_payload, sign


def set_session_cookie(response: Response, token: str, expires: datetime) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        expires=expires,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def start_session(response: Response, user_id: int) -> str:
    expires = session_expiry()
    token = sign(session_payload(user_id), expires)
    set_session_cookie(response, token, expires)
    return token
