from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from planform.core.config import get_settings
from planform.modules.auth.gate import RouteClass, SessionState, classify, is_skipped, resolve_session
from planform.modules.auth.tokens import session_payload, sign
from planform.modules.auth.user_info import HttpUserInfoLookup, UserInfoLookupError

from .conftest import session_cookie


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/dashboard", RouteClass.PROTECTED),
        ("/dashboard/settings", RouteClass.PROTECTED),
        ("/arena", RouteClass.VERIFICATION_REQUIRED),
        ("/arena/123", RouteClass.VERIFICATION_REQUIRED),
        ("/", RouteClass.PUBLIC),
        ("/sign-in", RouteClass.PUBLIC),
    ],
)
def test_classify(path, expected):
    assert classify(path) is expected


def test_skipped_paths():
    assert is_skipped("/api/ideas")
    assert is_skipped("/_next/static/chunk.js")
    assert is_skipped("/favicon.ico")
    assert not is_skipped("/dashboard")


def test_no_cookie_on_protected_page_redirects_to_sign_in(client):
    r = client.get("/dashboard")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/sign-in")


def test_no_cookie_on_public_page_passes_through(client):
    r = client.get("/sign-in")
    assert r.status_code == 200
    assert "set-cookie" not in r.headers


def test_invalid_cookie_is_dropped_and_redirected(client):
    client.cookies.set("session", "garbage.token")
    r = client.get("/dashboard")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/sign-in")
    assert 'session=""' in r.headers["set-cookie"] or "Max-Age=0" in r.headers["set-cookie"]


def test_invalid_cookie_on_public_page_is_dropped(client):
    client.cookies.set("session", "garbage.token")
    r = client.get("/sign-in")
    assert r.status_code == 200
    assert "Max-Age=0" in r.headers["set-cookie"]


def test_valid_get_slides_cookie(client, make_user, login):
    user = make_user()
    login(user)
    r = client.get("/dashboard")
    assert r.status_code == 200
    assert r.headers["set-cookie"].startswith("session=")
    assert r.json()["user"]["id"] == user.id


def test_non_get_does_not_touch_cookie(client, make_user, login):
    user = make_user()
    login(user)
    r = client.post("/sign-in")
    # no POST route there; the gate must still not refresh the cookie
    assert "set-cookie" not in r.headers


def test_api_paths_are_not_gated(client):
    r = client.get("/api/user-info")
    assert r.status_code == 401
    assert r.json()["error"] == "unauthorized"


def test_arena_unverified_redirects_to_verification_needed(client, lookup, make_user, login):
    lookup.verified = False
    login(make_user(is_verified=False))
    r = client.get("/arena")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/verification-needed")
    assert lookup.calls == 1


def test_arena_verified_passes(client, lookup, make_user, login):
    login(make_user())
    r = client.get("/arena")
    assert r.status_code == 200
    assert r.json() == {"ideas": []}


def test_dashboard_does_not_ask_for_verification(client, lookup, make_user, login):
    lookup.verified = False
    login(make_user(is_verified=False))
    assert client.get("/dashboard").status_code == 200
    assert lookup.calls == 0


def test_lookup_failure_fails_closed_by_default(client, lookup, make_user, login):
    lookup.error = UserInfoLookupError("timeout")
    login(make_user())
    r = client.get("/arena")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/verification-needed")


def test_lookup_failure_can_fail_open(client, lookup, make_user, login, monkeypatch):
    monkeypatch.setenv("PLANFORM_VERIFICATION_FAIL_OPEN", "1")
    get_settings.cache_clear()
    lookup.error = UserInfoLookupError("timeout")
    login(make_user())
    r = client.get("/arena")
    assert r.status_code == 200


def _lookup_with(handler) -> HttpUserInfoLookup:
    return HttpUserInfoLookup(url="http://users.internal/api/user-info", transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_http_lookup_sends_cookie_and_reads_flag():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["cookie"] = request.headers.get("cookie")
        return httpx.Response(200, json={"id": 1, "isVerified": True})

    assert await _lookup_with(handler).is_verified(base_url="http://x/", cookie_name="session", token="t0k")
    assert seen["cookie"] == "session=t0k"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [httpx.Response(500), httpx.Response(200, text="not json"), httpx.Response(200, json={"id": 1})],
)
async def test_http_lookup_errors_are_wrapped(response):
    with pytest.raises(UserInfoLookupError):
        await _lookup_with(lambda request: response).is_verified(base_url="http://x/", cookie_name="session", token="t")


def test_session_cookie_helper_is_accepted_by_api(client, make_user):
    user = make_user()
    for k, v in session_cookie(user.id).items():
        client.cookies.set(k, v)
    assert client.get("/api/user-info").json()["id"] == user.id


def test_no_cookie_on_arena_redirects_to_sign_in(client, lookup):
    r = client.get("/arena")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/sign-in")
    assert lookup.calls == 0


def test_expired_cookie_is_dropped_and_redirected(client, make_user):
    user = make_user()
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    client.cookies.set("session", sign(session_payload(user.id), past))
    r = client.get("/dashboard")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/sign-in")
    assert "Max-Age=0" in r.headers["set-cookie"]


def test_resolve_session_maps_bad_tokens():
    body = sign(session_payload(1), datetime.now(timezone.utc) + timedelta(hours=1)).split(".")[0]
    assert resolve_session(None)[0] is SessionState.NO_SESSION
    assert resolve_session(f"{body}.ébad") == (SessionState.EXPIRED_OR_INVALID, None)


def test_missing_secret_keeps_cookie_and_redirects(client, monkeypatch):
    token = sign(session_payload(1), datetime.now(timezone.utc) + timedelta(hours=1))
    monkeypatch.delenv("PLANFORM_SESSION_SECRET", raising=False)
    get_settings.cache_clear()
    assert resolve_session(token)[0] is SessionState.UNVERIFIABLE

    client.cookies.set("session", token)
    r = client.get("/dashboard")
    assert r.status_code == 307
    assert r.headers["location"].endswith("/sign-in")
    assert "set-cookie" not in r.headers

    r = client.get("/sign-in")
    assert r.status_code == 200
    assert "set-cookie" not in r.headers
