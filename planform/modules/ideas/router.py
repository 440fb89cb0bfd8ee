from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from planform.core.observability import emit, request_id_of
from planform.core.errors import QuotaExhausted
from planform.modules.auth.deps import current_user
from planform.modules.users.models import User

from .schemas import IdeaCreateIn, IdeaCreateOut, IdeaDeleteOut, IdeaOut, IdeasListOut
from .service import create_idea, delete_idea, get_idea, list_ideas

router = APIRouter(prefix="/api/ideas", tags=["ideas"])


@router.post("", response_model=IdeaCreateOut, status_code=201)
def post_idea(body: IdeaCreateIn, request: Request, user: User = Depends(current_user)) -> IdeaCreateOut:
    rid = request_id_of(request)
    try:
        idea_id, remaining = create_idea(user.id, body.model_dump())
    except QuotaExhausted:
        emit("info", "ideas.quota_exhausted", f"user {user.id} has no remaining runs", rid, __name__, user_id=user.id)
        raise
    emit("info", "ideas.created", f"idea {idea_id} created", rid, __name__, user_id=user.id, remaining_runs=remaining)
    return IdeaCreateOut(idea_id=idea_id, remaining_runs=remaining)


@router.get("", response_model=IdeasListOut)
def get_ideas(user: User = Depends(current_user)) -> IdeasListOut:
    return IdeasListOut(items=list_ideas(user.id))


@router.get("/{idea_id}", response_model=IdeaOut)
def get_idea_detail(idea_id: str, user: User = Depends(current_user)) -> IdeaOut:
    return IdeaOut(**get_idea(idea_id, user.id))


@router.delete("/{idea_id}", response_model=IdeaDeleteOut)
def remove_idea(idea_id: str, user: User = Depends(current_user)) -> IdeaDeleteOut:
    delete_idea(idea_id, user.id)
    return IdeaDeleteOut()
