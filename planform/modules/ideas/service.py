from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from planform.core.db import new_session
from planform.core.errors import Forbidden, NotFound, QuotaExhausted, Unauthorized
from planform.core.ids import new_ulid, now_iso
from planform.modules.stages.models import Message, Stage
from planform.modules.users.models import User

from .models import Idea

IDEA_FIELDS = ("title", "raw_idea", "ideal_customer", "problem", "current_solutions", "value_prop")


def _idea_to_dict(idea: Idea) -> Dict[str, Any]:
    return idea.model_dump()


def _owned_idea(session: Session, idea_id: str, caller_id: int) -> Idea:
    idea = session.get(Idea, idea_id)
    if idea is None:
        raise NotFound("Idea not found")
    if idea.owner_id != caller_id:
        raise Forbidden()
    return idea


def create_idea(owner_id: Optional[int], fields: Dict[str, Any]) -> tuple[str, int]:
    """
    Decrement the owner's remaining runs and insert the idea in one transaction.
    Returns (idea_id, remaining_runs).
    """
    if owner_id is None:
        raise Unauthorized()

    with new_session() as session:
        try:
            # guarded decrement: 0 rows touched means no credit left
            res = session.execute(
                update(User)
                .where(User.id == owner_id, User.deleted_at.is_(None), User.remaining_runs > 0)
                .values(remaining_runs=User.remaining_runs - 1, updated_at=now_iso())
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                owner = session.get(User, owner_id)
                if owner is None or owner.deleted_at is not None:
                    raise Unauthorized()
                raise QuotaExhausted()

            idea = Idea(
                id=new_ulid(),
                owner_id=owner_id,
                title=fields["title"],
                raw_idea=fields["raw_idea"],
                ideal_customer=fields["ideal_customer"],
                problem=fields["problem"],
                current_solutions=fields.get("current_solutions") or "",
                value_prop=fields["value_prop"],
                created_at=now_iso(),
            )
            session.add(idea)
            session.flush()

            remaining = session.exec(select(User.remaining_runs).where(User.id == owner_id)).one()
            session.commit()
            return idea.id, int(remaining)
        except Exception:
            session.rollback()
            raise


def get_idea(idea_id: str, caller_id: int) -> Dict[str, Any]:
    with new_session() as session:
        return _idea_to_dict(_owned_idea(session, idea_id, caller_id))


def list_ideas(owner_id: int) -> List[Dict[str, Any]]:
    with new_session() as session:
        rows = session.exec(
            select(Idea).where(Idea.owner_id == owner_id).order_by(Idea.created_at.desc(), Idea.id.desc())
        ).all()
        return [_idea_to_dict(r) for r in rows]


def delete_idea(idea_id: str, caller_id: int) -> None:
    """Delete an idea with its stages and messages."""
    with new_session() as session:
        try:
            _owned_idea(session, idea_id, caller_id)
            stage_ids = select(Stage.id).where(Stage.idea_id == idea_id)
            session.execute(delete(Message).where(Message.stage_id.in_(stage_ids)))
            session.execute(delete(Stage).where(Stage.idea_id == idea_id))
            session.execute(delete(Idea).where(Idea.id == idea_id))
            session.commit()
        except Exception:
            session.rollback()
            raise
