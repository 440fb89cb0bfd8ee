from __future__ import annotations

from fastapi import Request

from planform.core.config import get_settings
from planform.core.errors import Unauthorized
from planform.modules.users.models import User
from planform.modules.users.service import get_active_user

from .tokens import InvalidTokenError, user_id_of, verify


def current_user(request: Request) -> User:
    """FastAPI dependency: the user behind the session cookie, or 401."""
    token = request.cookies.get(get_settings().cookie_name)
    if not token:
        raise Unauthorized()
    try:
        uid = user_id_of(verify(token))
    except InvalidTokenError:
        # ExpiredTokenError included
        raise Unauthorized()
    user = get_active_user(uid)
    if user is None:
        raise Unauthorized()
    return user
