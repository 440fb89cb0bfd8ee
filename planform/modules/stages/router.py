from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from planform.core.observability import emit, request_id_of
from planform.modules.auth.deps import current_user
from planform.modules.users.models import User

from .personas import StageName
from .schemas import (
    StageFinishIn,
    StageFinishOut,
    StageGetOut,
    StageMessageIn,
    StageMessageOut,
    StageMessagesOut,
    StageStartIn,
    StageStartOut,
)
from .service import finish_stage, get_stage, list_messages, post_message, start_stage

router = APIRouter(prefix="/api/stage", tags=["stages"])


@router.get("/get", response_model=StageGetOut, response_model_exclude_none=True)
def api_get_stage(
    idea_id: str = Query(..., alias="ideaId", min_length=1),
    stage_name: StageName = Query(..., alias="stageName"),
    user: User = Depends(current_user),
) -> StageGetOut:
    return StageGetOut(**get_stage(idea_id, stage_name, user.id))


@router.post("/start", response_model=StageStartOut)
def api_start_stage(body: StageStartIn, user: User = Depends(current_user)) -> StageStartOut:
    return StageStartOut(**start_stage(body.idea_id, body.stage_name, user.id))


@router.post("/message", response_model=StageMessageOut)
def api_post_message(body: StageMessageIn, request: Request, user: User = Depends(current_user)) -> StageMessageOut:
    out = post_message(body.stage_id, body.message, user.id, request_id=request_id_of(request))
    if out["stage_complete"]:
        emit("info", "stages.completion_detected", f"stage {body.stage_id} reply carries completion marker",
             request_id_of(request), __name__, stage_id=body.stage_id)
    return StageMessageOut(**out)


@router.get("/message", response_model=StageMessagesOut)
def api_list_messages(
    stage_id: str = Query(..., alias="stageId", min_length=1),
    user: User = Depends(current_user),
) -> StageMessagesOut:
    return StageMessagesOut(stage_id=stage_id, messages=list_messages(stage_id, user.id))


@router.post("/finish", response_model=StageFinishOut)
def api_finish_stage(body: StageFinishIn, request: Request, user: User = Depends(current_user)) -> StageFinishOut:
    out = finish_stage(body.stage_id, user.id, request_id=request_id_of(request))
    emit("info", "stages.completed", f"stage {body.stage_id} completed", request_id_of(request), __name__,
         stage_id=body.stage_id, score=out["score"])
    return StageFinishOut(**out)
