"""
Access gate for page routes.

Per request:
- classify the path (public | protected | protected + verification)
- NoSession: protected -> redirect /sign-in; public -> pass through
- GET with a cookie: verify it
  - ValidSession: optional verification lookup, then slide the cookie expiry
  - ExpiredOrInvalid: drop the cookie; protected -> redirect /sign-in
  - Unverifiable (no secret): keep the cookie; protected -> redirect /sign-in
- other methods pass the existing cookie through untouched
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from planform.core.config import Settings, get_settings
from planform.core.observability import emit, request_id_of

from .session import clear_session_cookie, set_session_cookie
from .tokens import ConfigError, InvalidTokenError, refresh, verify
from .user_info import HttpUserInfoLookup, UserInfoLookup, UserInfoLookupError

PROTECTED_PREFIXES = ("/dashboard", "/arena")
VERIFICATION_REQUIRED_PREFIXES = ("/arena",)
# never gated: API, static assets, image optimisation
SKIPPED_PREFIXES = ("/api", "/static", "/_next/static", "/_next/image", "/favicon.ico")

SIGN_IN_PATH = "/sign-in"
VERIFICATION_NEEDED_PATH = "/verification-needed"


class RouteClass(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    VERIFICATION_REQUIRED = "protected+verification"


class SessionState(str, Enum):
    NO_SESSION = "no_session"
    VALID = "valid"
    EXPIRED_OR_INVALID = "expired_or_invalid"
    # no secret configured; the cookie can be neither trusted nor re-signed
    UNVERIFIABLE = "unverifiable"


def is_skipped(path: str) -> bool:
    return any(path.startswith(p) for p in SKIPPED_PREFIXES)


def classify(path: str) -> RouteClass:
    if any(path.startswith(p) for p in VERIFICATION_REQUIRED_PREFIXES):
        return RouteClass.VERIFICATION_REQUIRED
    if any(path.startswith(p) for p in PROTECTED_PREFIXES):
        return RouteClass.PROTECTED
    return RouteClass.PUBLIC


def resolve_session(token: Optional[str]) -> Tuple[SessionState, Optional[Dict[str, Any]]]:
    if not token:
        return SessionState.NO_SESSION, None
    try:
        return SessionState.VALID, verify(token)
    except InvalidTokenError:
        return SessionState.EXPIRED_OR_INVALID, None
    except ConfigError:
        return SessionState.UNVERIFIABLE, None


def _redirect(request: Request, path: str) -> RedirectResponse:
    return RedirectResponse(url=str(request.base_url).rstrip("/") + path, status_code=307)


class AccessGate:
    """HTTP middleware callable; register with ``app.middleware("http")(gate)``."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _lookup(self, request: Request) -> UserInfoLookup:
        lookup = getattr(request.app.state, "user_info_lookup", None)
        if lookup is not None:
            return lookup
        s = self.settings
        return HttpUserInfoLookup(url=s.user_info_url, timeout=s.user_info_timeout_seconds)

    async def _verification_redirect(self, request: Request, token: str) -> Optional[Response]:
        rid = request_id_of(request)
        s = self.settings
        try:
            verified = await self._lookup(request).is_verified(
                base_url=str(request.base_url), cookie_name=s.cookie_name, token=token
            )
        except UserInfoLookupError as e:
            emit("warning", "gate.verification.lookup_failed", str(e), rid, __name__,
                 path=request.url.path, fail_open=s.verification_fail_open)
            if s.verification_fail_open:
                return None
            return _redirect(request, VERIFICATION_NEEDED_PATH)

        if not verified:
            emit("info", "gate.verification.required", "email not verified", rid, __name__, path=request.url.path)
            return _redirect(request, VERIFICATION_NEEDED_PATH)
        return None

    async def __call__(self, request: Request, call_next):
        path = request.url.path
        if is_skipped(path):
            return await call_next(request)

        rid = request_id_of(request)
        route = classify(path)
        protected = route is not RouteClass.PUBLIC
        token = request.cookies.get(self.settings.cookie_name)

        if not token:
            if protected:
                emit("info", "gate.redirect.sign_in", "no session", rid, __name__, path=path)
                return _redirect(request, SIGN_IN_PATH)
            return await call_next(request)

        if request.method != "GET":
            return await call_next(request)

        state, payload = resolve_session(token)

        if state is SessionState.UNVERIFIABLE:
            # keep the cookie: it becomes valid again once the secret is back
            emit("error", "gate.config_error", "session secret is not configured", rid, __name__, path=path)
            if protected:
                return _redirect(request, SIGN_IN_PATH)
            return await call_next(request)

        if state is SessionState.EXPIRED_OR_INVALID:
            emit("info", "gate.session.invalid", "dropping session cookie", rid, __name__, path=path)
            if protected:
                resp = _redirect(request, SIGN_IN_PATH)
            else:
                resp = await call_next(request)
            clear_session_cookie(resp)
            return resp

        if route is RouteClass.VERIFICATION_REQUIRED:
            blocked = await self._verification_redirect(request, token)
            if blocked is not None:
                return blocked

        new_token, expires = refresh(payload or {})
        resp = await call_next(request)
        set_session_cookie(resp, new_token, expires)
        return resp
