from __future__ import annotations

from planform.core.config import DEFAULT_ALLOWED_ORIGINS, get_settings


def test_defaults(monkeypatch):
    for name in ("PLANFORM_SESSION_TTL_HOURS", "PLANFORM_ALLOWED_ORIGINS", "PLANFORM_RESPONDER",
                 "PLANFORM_DEFAULT_REMAINING_RUNS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    s = get_settings()
    assert s.session_ttl_hours == 24
    assert s.cookie_name == "session"
    assert s.verification_fail_open is False
    assert s.default_remaining_runs == 1
    assert s.responder == "scripted"
    assert s.allowed_origins == DEFAULT_ALLOWED_ORIGINS


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PLANFORM_SESSION_TTL_HOURS", "2")
    monkeypatch.setenv("PLANFORM_VERIFICATION_FAIL_OPEN", "true")
    monkeypatch.setenv("PLANFORM_ALLOWED_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("PLANFORM_USER_INFO_TIMEOUT_SECONDS", "0.5")
    get_settings.cache_clear()
    s = get_settings()
    assert s.session_ttl_hours == 2
    assert s.verification_fail_open is True
    assert s.allowed_origins == ["https://a.example", "https://b.example"]
    assert s.user_info_timeout_seconds == 0.5


def test_unparsable_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("PLANFORM_SESSION_TTL_HOURS", "soon")
    get_settings.cache_clear()
    assert get_settings().session_ttl_hours == 24
