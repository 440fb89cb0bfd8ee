from __future__ import annotations

from sqlmodel import Field, SQLModel


# immutable after insert (delete only)
class Idea(SQLModel, table=True):
    __tablename__ = "ideas"

    id: str = Field(primary_key=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    title: str
    raw_idea: str
    ideal_customer: str
    problem: str
    current_solutions: str = Field(default="")
    value_prop: str

    created_at: str
