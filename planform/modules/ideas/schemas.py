from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from planform.core.schemas import CamelModel


class IdeaCreateIn(CamelModel):
    title: str = Field(min_length=1, description="Title is required")
    raw_idea: str = Field(min_length=1, description="Idea description is required")
    ideal_customer: str = Field(min_length=1, description="Ideal customer is required")
    problem: str = Field(min_length=1, description="Problem statement is required")
    current_solutions: Optional[str] = None
    value_prop: str = Field(min_length=1, description="Value proposition is required")


class IdeaCreateOut(CamelModel):
    idea_id: str
    remaining_runs: int


class IdeaOut(CamelModel):
    id: str
    owner_id: int
    title: str
    raw_idea: str
    ideal_customer: str
    problem: str
    current_solutions: str = ""
    value_prop: str
    created_at: Optional[str] = None


class IdeasListOut(CamelModel):
    items: List[IdeaOut]


class IdeaDeleteOut(CamelModel):
    success: bool = True
