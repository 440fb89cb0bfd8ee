"""Configuration helpers for the Planform backend."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./data/app.db"
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

load_dotenv(override=False)


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


def _parse_int(raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Process-wide settings read once from the environment.

    A missing ``session_secret`` surfaces as ``ConfigError`` from the token
    codec at the point of use; ``/health`` still answers.
    """

    app_version: str = "0.1.0"
    database_url: str = DEFAULT_DATABASE_URL
    session_secret: Optional[str] = None
    session_ttl_hours: int = 24
    cookie_name: str = "session"
    cookie_secure: bool = True
    user_info_url: Optional[str] = None
    user_info_timeout_seconds: float = 2.0
    verification_fail_open: bool = False
    default_remaining_runs: int = 1
    responder: str = "scripted"
    responder_timeout_seconds: float = 30.0
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    log_level: str = "INFO"


def _resolve_allowed_origins(environ: Mapping[str, str]) -> List[str]:
    raw = environ.get("PLANFORM_ALLOWED_ORIGINS")
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return list(DEFAULT_ALLOWED_ORIGINS)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read environment variables and return cached settings."""

    environ = os.environ
    return Settings(
        app_version=environ.get("APP_VERSION", "0.1.0"),
        database_url=environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        session_secret=environ.get("PLANFORM_SESSION_SECRET") or None,
        session_ttl_hours=_parse_int(environ.get("PLANFORM_SESSION_TTL_HOURS"), 24),
        cookie_secure=_parse_bool(environ.get("PLANFORM_COOKIE_SECURE"), True),
        user_info_url=environ.get("PLANFORM_USER_INFO_URL") or None,
        user_info_timeout_seconds=_parse_float(environ.get("PLANFORM_USER_INFO_TIMEOUT_SECONDS"), 2.0),
        verification_fail_open=_parse_bool(environ.get("PLANFORM_VERIFICATION_FAIL_OPEN"), False),
        default_remaining_runs=_parse_int(environ.get("PLANFORM_DEFAULT_REMAINING_RUNS"), 1),
        responder=environ.get("PLANFORM_RESPONDER", "scripted"),
        responder_timeout_seconds=_parse_float(environ.get("PLANFORM_RESPONDER_TIMEOUT_SECONDS"), 30.0),
        openai_api_key=environ.get("OPENAI_API_KEY") or None,
        openai_model=environ.get("OPENAI_MODEL") or "gpt-4o-mini",
        allowed_origins=_resolve_allowed_origins(environ),
        log_level=environ.get("LOG_LEVEL", "INFO"),
    )
