from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from planform.core.schemas import CamelModel

from .personas import StageName


class MessageOut(CamelModel):
    id: int
    role: str
    content: str


class StageGetOut(CamelModel):
    exists: bool
    stage_id: Optional[str] = None
    messages: Optional[List[MessageOut]] = None


class StageStartIn(CamelModel):
    idea_id: str = Field(min_length=1)
    stage_name: StageName


class StageStartOut(CamelModel):
    stage_id: str
    system_prompt: str
    completed: bool = False


class StageMessageIn(CamelModel):
    stage_id: str = Field(min_length=1)
    message: str = Field(min_length=1, description="Message cannot be empty")


class StageMessageOut(CamelModel):
    stage_id: str
    messages: List[MessageOut]
    stage_complete: bool = False


class StageMessagesOut(CamelModel):
    stage_id: str
    messages: List[MessageOut]


class StageFinishIn(CamelModel):
    stage_id: str = Field(min_length=1)


class StageFinishOut(CamelModel):
    next_stage: Optional[StageName] = None
    summary: str
    score: int = 0
