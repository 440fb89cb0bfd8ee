from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from starlette.responses import Response

from planform.core import db
from planform.core.config import get_settings
from planform.main import create_app
from planform.modules.auth.session import start_session
from planform.modules.users.models import User
from planform.modules.users.service import create_user

SECRET = "test-session-secret"


class FakeUserInfoLookup:
    """Stands in for the HTTP user-info call made by the gate."""

    def __init__(self, verified: Optional[bool] = True, error: Optional[Exception] = None) -> None:
        self.verified = verified
        self.error = error
        self.calls = 0

    async def is_verified(self, *, base_url: str, cookie_name: str, token: str) -> bool:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return bool(self.verified)


@pytest.fixture(autouse=True)
def _env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Fresh sqlite file, settings and engine for every test."""

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    monkeypatch.setenv("PLANFORM_SESSION_SECRET", SECRET)
    # TestClient talks plain http; secure cookies would never be sent back
    monkeypatch.setenv("PLANFORM_COOKIE_SECURE", "0")
    monkeypatch.delenv("PLANFORM_VERIFICATION_FAIL_OPEN", raising=False)
    monkeypatch.delenv("PLANFORM_USER_INFO_URL", raising=False)
    monkeypatch.delenv("PLANFORM_RESPONDER", raising=False)
    get_settings.cache_clear()
    db.reset_engine()
    db.create_all()
    yield
    db.reset_engine()
    get_settings.cache_clear()


@pytest.fixture
def lookup() -> FakeUserInfoLookup:
    return FakeUserInfoLookup(verified=True)


@pytest.fixture
def client(lookup: FakeUserInfoLookup) -> TestClient:
    app = create_app()
    app.state.user_info_lookup = lookup
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def make_user() -> Callable[..., User]:
    counter = {"n": 0}

    def _make(remaining_runs: int = 1, is_verified: bool = True, email: Optional[str] = None) -> User:
        counter["n"] += 1
        user, _ = create_user(
            email=email or f"user{counter['n']}@example.com",
            password="correct-horse",
            name=f"User {counter['n']}",
            remaining_runs=remaining_runs,
            is_verified=is_verified,
        )
        return user

    return _make


def session_cookie(user_id: int) -> Dict[str, str]:
    token = start_session(Response(), user_id)
    return {get_settings().cookie_name: token}


@pytest.fixture
def login(client: TestClient) -> Callable[[User], TestClient]:
    def _login(user: User) -> TestClient:
        client.cookies.clear()
        for k, v in session_cookie(user.id).items():
            client.cookies.set(k, v)
        return client

    return _login


def idea_payload(**overrides: str) -> Dict[str, str]:
    body = {
        "title": "Focus Weekly",
        "rawIdea": "An AI coach that helps remote teams agree on three weekly outcomes.",
        "idealCustomer": "Engineering managers at remote-first startups",
        "problem": "Weekly priorities drift and nobody notices until the retro.",
        "currentSolutions": "Spreadsheets and stand-up notes",
        "valueProp": "Alignment in five minutes a week.",
    }
    body.update(overrides)
    return body
