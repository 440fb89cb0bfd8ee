from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import DBAPIError

from planform.core.config import get_settings

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def migrated(tmp_path, monkeypatch):
    url = f"sqlite:///{(tmp_path / 'migrated.db').as_posix()}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    command.upgrade(cfg, "head")
    engine = create_engine(url)
    yield engine
    engine.dispose()


def _seed(conn) -> None:
    now = "2026-01-01T00:00:00.000000Z"
    conn.execute(text(
        "INSERT INTO users (email, password_hash, role, remaining_runs, is_verified, created_at, updated_at) "
        "VALUES ('a@example.com', 'x', 'member', 1, 1, :now, :now)"
    ), {"now": now})
    conn.execute(text(
        "INSERT INTO ideas (id, owner_id, title, raw_idea, ideal_customer, problem, current_solutions, value_prop, "
        "created_at) VALUES ('I1', 1, 't', 'r', 'c', 'p', '', 'v', :now)"
    ), {"now": now})
    conn.execute(text(
        "INSERT INTO stages (id, idea_id, stage_name, created_at) VALUES ('S1', 'I1', 'customer', :now)"
    ), {"now": now})
    conn.execute(text(
        "INSERT INTO messages (stage_id, role, content, created_at) VALUES ('S1', 'user', 'hi', :now)"
    ), {"now": now})


def test_upgrade_creates_tables(migrated):
    names = set(inspect(migrated).get_table_names())
    assert {"users", "verification_tokens", "agencies", "services", "ideas", "stages", "messages"} <= names


def test_messages_cannot_be_updated(migrated):
    with migrated.begin() as conn:
        _seed(conn)
    with pytest.raises(DBAPIError, match="append-only"):
        with migrated.begin() as conn:
            conn.execute(text("UPDATE messages SET content = 'edited'"))


def test_stage_completion_is_set_once(migrated):
    with migrated.begin() as conn:
        _seed(conn)
        conn.execute(text("UPDATE stages SET completed_at = 'T1' WHERE id = 'S1'"))
    with pytest.raises(DBAPIError, match="set once"):
        with migrated.begin() as conn:
            conn.execute(text("UPDATE stages SET completed_at = 'T2' WHERE id = 'S1'"))


def test_one_stage_per_persona(migrated):
    with migrated.begin() as conn:
        _seed(conn)
    with pytest.raises(DBAPIError):
        with migrated.begin() as conn:
            conn.execute(text(
                "INSERT INTO stages (id, idea_id, stage_name, created_at) VALUES ('S2', 'I1', 'customer', 'now')"
            ))


def test_remaining_runs_cannot_go_negative(migrated):
    with migrated.begin() as conn:
        _seed(conn)
    with pytest.raises(DBAPIError):
        with migrated.begin() as conn:
            conn.execute(text("UPDATE users SET remaining_runs = -1"))


def test_completed_stage_takes_no_messages(migrated):
    with migrated.begin() as conn:
        _seed(conn)
        conn.execute(text("UPDATE stages SET completed_at = 'T1' WHERE id = 'S1'"))
    with pytest.raises(DBAPIError, match="messages are closed"):
        with migrated.begin() as conn:
            conn.execute(text(
                "INSERT INTO messages (stage_id, role, content, created_at) VALUES ('S1', 'ai', 'late', 'T2')"
            ))
