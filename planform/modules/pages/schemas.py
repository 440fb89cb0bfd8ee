from __future__ import annotations

from typing import Dict, List, Optional

from planform.core.schemas import CamelModel
from planform.modules.ideas.schemas import IdeaOut
from planform.modules.users.schemas import UserInfoOut


class DashboardOut(CamelModel):
    user: UserInfoOut
    remaining_runs: int
    agency_id: Optional[int] = None
    ideas: List[IdeaOut]


class ArenaIdeaOut(CamelModel):
    idea: IdeaOut
    stages: Dict[str, str]


class ArenaOut(CamelModel):
    ideas: List[ArenaIdeaOut]


class PagePromptOut(CamelModel):
    page: str
    message: str
