"""
Stateless session tokens.

Format: ``<b64url(canonical json payload)>.<b64url(hmac-sha256)>``.
The payload carries ``expires`` (ISO-8601, UTC); nothing is stored server-side.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from planform.core.config import get_settings


class ConfigError(RuntimeError):
    pass


class InvalidTokenError(ValueError):
    pass


class ExpiredTokenError(InvalidTokenError):
    pass


def _secret(secret: Optional[str] = None) -> bytes:
    s = secret if secret is not None else get_settings().session_secret
    if not s:
        raise ConfigError("PLANFORM_SESSION_SECRET is not set")
    return s.encode("utf-8")


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)


def _canonical(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _signature(body: str, key: bytes) -> str:
    return _b64encode(hmac.new(key, body.encode("ascii"), hashlib.sha256).digest())


def _format_expiry(expiry: datetime) -> str:
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def _parse_expiry(raw: Any) -> datetime:
    if not isinstance(raw, str) or not raw:
        raise InvalidTokenError("token has no expiry")
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidTokenError("token expiry is not ISO-8601") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def session_expiry(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=get_settings().session_ttl_hours)


def sign(payload: Dict[str, Any], expiry: datetime, *, secret: Optional[str] = None) -> str:
    """Sign ``payload`` with ``expires`` set to ``expiry``.

    Any ``expires`` already present in ``payload`` is replaced. Raises
    ``ConfigError`` when no secret is configured.
    """
    key = _secret(secret)
    data = dict(payload)
    data["expires"] = _format_expiry(expiry)
    body = _b64encode(_canonical(data))
    return f"{body}.{_signature(body, key)}"


def verify(token: str, *, secret: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Return the payload of a valid token.

    The expiry is checked before the signature, so an expired token is always
    reported as ``ExpiredTokenError``.
    """
    key = _secret(secret)
    if not token or token.count(".") != 1:
        raise InvalidTokenError("malformed token")
    body, sig = token.split(".", 1)

    try:
        payload = json.loads(_b64decode(body).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidTokenError("token payload is not decodable") from e
    if not isinstance(payload, dict):
        raise InvalidTokenError("token payload is not an object")

    expires = _parse_expiry(payload.get("expires"))
    if expires <= (now or datetime.now(timezone.utc)):
        raise ExpiredTokenError("token expired")

    if not hmac.compare_digest(sig.encode("utf-8"), _signature(body, key).encode("ascii")):
        raise InvalidTokenError("bad signature")
    return payload


def refresh(payload: Dict[str, Any], *, now: Optional[datetime] = None) -> tuple[str, datetime]:
    """Re-sign ``payload`` with a fresh sliding expiry."""
    expiry = session_expiry(now)
    return sign(payload, expiry), expiry


def user_id_of(payload: Dict[str, Any]) -> int:
    user = payload.get("user")
    if not isinstance(user, dict):
        raise InvalidTokenError("token has no user")
    try:
        return int(user["id"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("token user id is invalid") from e


def session_payload(user_id: int) -> Dict[str, Any]:
    return {"user": {"id": int(user_id)}}
