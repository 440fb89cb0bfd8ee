from __future__ import annotations

from fastapi import APIRouter, Depends

from planform.modules.auth.deps import current_user
from planform.modules.ideas.schemas import IdeaOut
from planform.modules.ideas.service import list_ideas
from planform.modules.stages.service import stage_progress
from planform.modules.users.models import User
from planform.modules.users.schemas import UserInfoOut
from planform.modules.users.service import user_info

from .schemas import ArenaIdeaOut, ArenaOut, DashboardOut, PagePromptOut

router = APIRouter(tags=["pages"])


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(user: User = Depends(current_user)) -> DashboardOut:
    return DashboardOut(
        user=UserInfoOut(**user_info(user)),
        remaining_runs=user.remaining_runs,
        agency_id=user.agency_id,
        ideas=[IdeaOut(**i) for i in list_ideas(user.id)],
    )


@router.get("/arena", response_model=ArenaOut)
def arena(user: User = Depends(current_user)) -> ArenaOut:
    ideas = list_ideas(user.id)
    progress = stage_progress([i["id"] for i in ideas])
    return ArenaOut(ideas=[ArenaIdeaOut(idea=IdeaOut(**i), stages=progress[i["id"]]) for i in ideas])


@router.get("/sign-in", response_model=PagePromptOut)
def sign_in_page() -> PagePromptOut:
    return PagePromptOut(page="sign-in", message="Sign in to continue.")


@router.get("/verification-needed", response_model=PagePromptOut)
def verification_needed_page() -> PagePromptOut:
    return PagePromptOut(page="verification-needed", message="Please verify your email address to access the arena.")
