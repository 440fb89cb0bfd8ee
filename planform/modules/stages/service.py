from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import insert, literal, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from planform.core.db import new_session
from planform.core.errors import Conflict, Forbidden, NotFound, UpstreamUnavailable, ValidationError
from planform.core.ids import new_ulid, now_iso
from planform.core.observability import emit
from planform.modules.ideas.models import Idea

from .models import Message, Stage
from .personas import StageName, build_summarization_prompt, build_system_prompt
from .responders import get_responder
from .responders.base import ChatTurn, ResponderError

ROLE_USER = "user"
ROLE_AI = "ai"

_COMPLETE_JSON = re.compile(r"```json\s*(\{[\s\S]*?\})\s*```|(\{[^{}]*\"stage_complete\"\s*:\s*true[^{}]*\})", re.I)
_SCORE = re.compile(r"(?:score|rating):\s*(\d+)(?:/10)?|(\d+)(?:/10)\s*(?:score|rating)", re.I)


def _message_to_dict(m: Message) -> Dict[str, Any]:
    return {"id": m.id, "role": m.role, "content": m.content}


def _messages(session: Session, stage_id: str) -> List[Message]:
    return list(
        session.exec(
            select(Message).where(Message.stage_id == stage_id).order_by(Message.created_at.asc(), Message.id.asc())
        ).all()
    )


def _owned_stage(session: Session, stage_id: str, caller_id: int) -> tuple[Stage, Idea]:
    stage = session.get(Stage, stage_id)
    if stage is None:
        raise NotFound("Stage not found")
    idea = session.get(Idea, stage.idea_id)
    if idea is None:
        raise NotFound("Stage not found")
    if idea.owner_id != caller_id:
        raise Forbidden()
    return stage, idea


def _turns(msgs: List[Message]) -> List[ChatTurn]:
    return [ChatTurn(role="user" if m.role == ROLE_USER else "assistant", content=m.content or "") for m in msgs]


def detect_stage_complete(text: str) -> bool:
    m = _COMPLETE_JSON.search(text or "")
    if m:
        try:
            return json.loads(m.group(1) or m.group(2)).get("stage_complete") is True
        except (ValueError, AttributeError):
            pass
    return '"stage_complete": true' in (text or "") or '"stage_complete":true' in (text or "")


def extract_score(summary: str) -> int:
    m = _SCORE.search(summary or "")
    if not m:
        return 0
    return max(0, min(10, int(m.group(1) or m.group(2))))


def get_stage(idea_id: str, stage_name: StageName, caller_id: int) -> Dict[str, Any]:
    """
    Absence is a normal state: returns {"exists": False} when the persona
    was never started for this idea.
    """
    with new_session() as session:
        stage = session.exec(
            select(Stage).where(Stage.idea_id == idea_id, Stage.stage_name == stage_name.value)
        ).first()
        if stage is None:
            return {"exists": False}

        idea = session.get(Idea, stage.idea_id)
        if idea is None or idea.owner_id != caller_id:
            raise Forbidden()

        return {
            "exists": True,
            "stage_id": stage.id,
            "messages": [_message_to_dict(m) for m in _messages(session, stage.id)],
        }


def start_stage(idea_id: str, stage_name: StageName, caller_id: int) -> Dict[str, Any]:
    """Get-or-create the stage row for (idea, persona)."""
    with new_session() as session:
        idea = session.get(Idea, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        if idea.owner_id != caller_id:
            raise Forbidden()

        stage = session.exec(
            select(Stage).where(Stage.idea_id == idea_id, Stage.stage_name == stage_name.value)
        ).first()
        if stage is None:
            stage = Stage(id=new_ulid(), idea_id=idea_id, stage_name=stage_name.value, created_at=now_iso())
            session.add(stage)
            try:
                session.commit()
            except IntegrityError:
                # lost a race on uq_stages_idea_stage; the winner's row is the stage
                session.rollback()
                stage = session.exec(
                    select(Stage).where(Stage.idea_id == idea_id, Stage.stage_name == stage_name.value)
                ).one()

        return {
            "stage_id": stage.id,
            "system_prompt": build_system_prompt(idea.model_dump(), stage_name),
            "completed": stage.completed_at is not None,
        }


def list_messages(stage_id: str, caller_id: int) -> List[Dict[str, Any]]:
    with new_session() as session:
        _owned_stage(session, stage_id, caller_id)
        return [_message_to_dict(m) for m in _messages(session, stage_id)]


def _append_if_open(session: Session, stage_id: str, role: str, content: str, created_at: str) -> None:
    """INSERT ... SELECT guarded on the stage still being open; 0 rows means it was completed."""
    still_open = select(Stage.id).where(Stage.id == stage_id, Stage.completed_at.is_(None)).exists()
    src = select(literal(stage_id), literal(role), literal(content), literal(created_at)).where(still_open)
    res = session.execute(
        insert(Message.__table__).from_select(["stage_id", "role", "content", "created_at"], src)
    )
    if res.rowcount != 1:
        raise Conflict("Stage is already completed")


def post_message(stage_id: str, content: str, caller_id: int, request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Ask the persona for a reply, then store the user's message and the reply
    together. Completed stages are read-only, including a completion that
    lands while the reply is being generated.
    """
    with new_session() as session:
        stage, idea = _owned_stage(session, stage_id, caller_id)
        if stage.completed_at is not None:
            raise Conflict("Stage is already completed")
        history = _messages(session, stage_id)
        idea_data = idea.model_dump()

    stage_name = StageName(stage.stage_name)
    user_at = now_iso()
    turns = _turns(history) + [ChatTurn(role="user", content=content)]
    if not history:
        turns.insert(0, ChatTurn(role="system", content=build_system_prompt(idea_data, stage_name)))

    try:
        result = get_responder().reply(stage_name=stage.stage_name, turns=turns, request_id=request_id or "")
    except ResponderError as e:
        emit("warning", "stages.responder_failed", str(e), request_id, __name__, stage_id=stage_id)
        raise UpstreamUnavailable() from e

    with new_session() as session:
        try:
            _append_if_open(session, stage_id, ROLE_USER, content, user_at)
            _append_if_open(session, stage_id, ROLE_AI, result.content, now_iso())
            session.commit()
        except Exception:
            session.rollback()
            raise

        return {
            "stage_id": stage_id,
            "messages": [_message_to_dict(m) for m in _messages(session, stage_id)],
            "stage_complete": detect_stage_complete(result.content),
        }


def finish_stage(stage_id: str, caller_id: int, request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    The single completion transition: summary + score, completed_at set once.
    """
    with new_session() as session:
        stage, _ = _owned_stage(session, stage_id, caller_id)
        if stage.completed_at is not None:
            raise Conflict("Stage is already completed")

        history = _messages(session, stage_id)
        if not history:
            raise ValidationError("No conversation found for this stage")

        conversation = "\n\n".join(f"{'AI' if m.role == ROLE_AI else 'User'}: {m.content}" for m in history)
        try:
            summary = get_responder().summarize(
                stage_name=stage.stage_name,
                prompt=build_summarization_prompt(conversation),
                turns=_turns(history),
                request_id=request_id or "",
            )
        except ResponderError as e:
            emit("warning", "stages.responder_failed", str(e), request_id, __name__, stage_id=stage_id)
            raise UpstreamUnavailable() from e
        stage_name = StageName(stage.stage_name)
        score = extract_score(summary) if stage_name is StageName.VC else 0

        try:
            res = session.execute(
                update(Stage)
                .where(Stage.id == stage_id, Stage.completed_at.is_(None))
                .values(summary=summary, score=score, completed_at=now_iso())
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise Conflict("Stage is already completed")
            session.commit()
        except Exception:
            session.rollback()
            raise

        nxt = stage_name.next_stage
        return {"next_stage": nxt, "summary": summary, "score": score}


def stage_progress(idea_ids: List[str]) -> Dict[str, Dict[str, str]]:
    """idea_id -> {stage_name: "not_started" | "in_progress" | "completed"}."""
    out: Dict[str, Dict[str, str]] = {i: {s.value: "not_started" for s in StageName} for i in idea_ids}
    if not idea_ids:
        return out
    with new_session() as session:
        rows = session.exec(select(Stage).where(Stage.idea_id.in_(idea_ids))).all()
        for st in rows:
            if st.stage_name in out[st.idea_id]:
                out[st.idea_id][st.stage_name] = "completed" if st.completed_at else "in_progress"
    return out
