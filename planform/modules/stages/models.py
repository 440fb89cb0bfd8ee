from __future__ import annotations

from typing import Optional

from sqlalchemy import DDL, CheckConstraint, UniqueConstraint, event
from sqlmodel import Field, SQLModel


# one row per (idea, persona); completed_at is set once and never cleared
class Stage(SQLModel, table=True):
    __tablename__ = "stages"
    __table_args__ = (
        UniqueConstraint("idea_id", "stage_name", name="uq_stages_idea_stage"),
        CheckConstraint("stage_name IN ('customer','designer','marketer','vc')", name="ck_stages_stage_name"),
    )

    id: str = Field(primary_key=True)
    idea_id: str = Field(foreign_key="ideas.id", index=True)
    stage_name: str  # customer|designer|marketer|vc
    summary: Optional[str] = None
    score: Optional[int] = None
    completed_at: Optional[str] = None

    created_at: str


# append-only; ordered by (created_at, id)
class Message(SQLModel, table=True):
    __tablename__ = "messages"
    __table_args__ = (CheckConstraint("role IN ('user','ai')", name="ck_messages_role"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: str = Field(foreign_key="stages.id", index=True)
    role: str  # user|ai
    content: str

    created_at: str


# SQLite guards, kept in step with migrations/versions/0001_planform_core.py
STAGE_COMPLETED_ONCE = """
CREATE TRIGGER IF NOT EXISTS trg_stages_completed_once
BEFORE UPDATE OF completed_at ON stages
WHEN OLD.completed_at IS NOT NULL
BEGIN
  SELECT RAISE(ABORT, 'stages.completed_at is set once');
END;
"""

MESSAGES_NO_UPDATE = """
CREATE TRIGGER IF NOT EXISTS trg_messages_no_update
BEFORE UPDATE ON messages
BEGIN
  SELECT RAISE(ABORT, 'append-only: messages cannot be updated');
END;
"""

MESSAGES_OPEN_STAGE_ONLY = """
CREATE TRIGGER IF NOT EXISTS trg_messages_open_stage_only
BEFORE INSERT ON messages
WHEN EXISTS (SELECT 1 FROM stages WHERE id = NEW.stage_id AND completed_at IS NOT NULL)
BEGIN
  SELECT RAISE(ABORT, 'stage is completed: messages are closed');
END;
"""

event.listen(Stage.__table__, "after_create", DDL(STAGE_COMPLETED_ONCE).execute_if(dialect="sqlite"))
for _ddl in (MESSAGES_NO_UPDATE, MESSAGES_OPEN_STAGE_ONLY):
    event.listen(Message.__table__, "after_create", DDL(_ddl).execute_if(dialect="sqlite"))
