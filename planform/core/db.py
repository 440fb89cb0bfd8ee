"""
Engine and session helpers.

DATABASE_URL defaults to sqlite:///./data/app.db; relative sqlite paths are
anchored at the repo root so the API and alembic share one file.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine, make_url
from sqlmodel import Session, SQLModel, create_engine

from planform.core.config import get_settings

REPO_ROOT = Path(__file__).resolve().parents[2]


def get_database_url() -> str:
    return get_settings().database_url


def resolve_sqlite_path(database_url: str) -> Optional[Path]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return None
    p = Path(url.database)
    return p if p.is_absolute() else (REPO_ROOT / p).resolve()


def engine_url(database_url: str) -> str:
    """``database_url`` with a relative sqlite path made absolute (parent dir created)."""
    sp = resolve_sqlite_path(database_url)
    if sp is None:
        return database_url
    sp.parent.mkdir(parents=True, exist_ok=True)
    return "sqlite:///" + sp.as_posix()


_engine: Optional[Engine] = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = engine_url(get_database_url())
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, connect_args=connect_args)
    return _engine


def reset_engine() -> None:
    """Dispose the cached engine so the next call re-reads DATABASE_URL."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def new_session() -> Session:
    return Session(get_engine(), expire_on_commit=False)


def create_all() -> None:
    # table classes register on SQLModel.metadata at import time
    from planform.modules.agencies import models as _agencies  # noqa: F401
    from planform.modules.ideas import models as _ideas  # noqa: F401
    from planform.modules.stages import models as _stages  # noqa: F401
    from planform.modules.users import models as _users  # noqa: F401

    SQLModel.metadata.create_all(get_engine())


def db_health() -> Dict[str, Any]:
    url = get_database_url()
    kind = make_url(url).get_backend_name()
    sp = resolve_sqlite_path(url)
    path = sp.as_posix() if sp is not None else None
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "kind": kind, "path": path}
    except Exception as e:
        return {"status": "error", "kind": kind, "path": path, "error": str(e)}
