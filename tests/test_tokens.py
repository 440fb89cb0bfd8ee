from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from planform.core.config import get_settings
from planform.modules.auth.tokens import (
    ConfigError,
    ExpiredTokenError,
    InvalidTokenError,
    refresh,
    session_payload,
    sign,
    user_id_of,
    verify,
)


def _future(hours: int = 1) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def test_sign_then_verify_returns_payload_with_expiry():
    expiry = _future()
    token = sign({"user": {"id": 7}}, expiry)
    payload = verify(token)
    assert payload["user"] == {"id": 7}
    assert payload["expires"].endswith("Z")
    assert user_id_of(payload) == 7


def test_expired_token_is_reported_as_expired_even_with_bad_signature():
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    token = sign(session_payload(1), past)
    body, _sig = token.split(".")
    with pytest.raises(ExpiredTokenError):
        verify(token)
    with pytest.raises(ExpiredTokenError):
        verify(body + ".not-a-signature")


def test_tampered_payload_is_invalid():
    token = sign(session_payload(1), _future())
    other = sign(session_payload(2), _future())
    forged = other.split(".")[0] + "." + token.split(".")[1]
    with pytest.raises(InvalidTokenError) as ei:
        verify(forged)
    assert not isinstance(ei.value, ExpiredTokenError)


def test_wrong_secret_is_invalid():
    token = sign(session_payload(1), _future(), secret="one")
    with pytest.raises(InvalidTokenError):
        verify(token, secret="two")


@pytest.mark.parametrize("raw", ["", "abc", "a.b.c", "!!!.sig"])
def test_malformed_tokens_are_invalid(raw):
    with pytest.raises(InvalidTokenError):
        verify(raw)


def test_missing_secret_raises_config_error(monkeypatch):
    monkeypatch.delenv("PLANFORM_SESSION_SECRET", raising=False)
    get_settings.cache_clear()
    with pytest.raises(ConfigError):
        sign(session_payload(1), _future())
    with pytest.raises(ConfigError):
        verify("a.b")


def test_refresh_slides_expiry_forward():
    now = datetime.now(timezone.utc)
    token, expiry = refresh({"user": {"id": 3}, "expires": "2000-01-01T00:00:00.000000Z"}, now=now)
    assert expiry == now + timedelta(hours=get_settings().session_ttl_hours)
    payload = verify(token)
    assert payload["user"] == {"id": 3}
    assert payload["expires"] != "2000-01-01T00:00:00.000000Z"


@pytest.mark.parametrize("bad_sig", ["ébad", "sig☃"])
def test_non_ascii_signature_is_invalid(bad_sig):
    body = sign(session_payload(1), _future()).split(".")[0]
    with pytest.raises(InvalidTokenError):
        verify(f"{body}.{bad_sig}")


def test_non_ascii_body_is_invalid():
    with pytest.raises(InvalidTokenError):
        verify("é.sig")
