"""Participation / completion endpoints and the session user's event lists."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from questlog.auth.dependencies import get_current_user
from questlog.dependencies import get_repositories
from questlog.progress import service
from questlog.progress.schemas import EventPayload
from questlog.repositories.base import Repositories
from questlog.users.schemas import User

router = APIRouter(prefix="/api/v1", tags=["Progress"])


@router.post("/quests/{quest_id}/participate", status_code=201)
async def participate_quest(
    quest_id: str,
    body: EventPayload,
    user: User = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
) -> Response:
    await service.participate_quest(repositories, user, body.user_id, quest_id)
    return Response(status_code=201)


@router.post("/challenges/{challenge_id}/complete", status_code=201)
async def complete_challenge(
    challenge_id: str,
    body: EventPayload,
    user: User = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
) -> Response:
    await service.complete_challenge(repositories, user, body.user_id, challenge_id)
    return Response(status_code=201)


@router.get("/me/participated_quests", response_model=list[str])
async def get_participated_quests(
    user: User = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
) -> list[str]:
    """Quest ids the session user joined, oldest first."""
    return await repositories.user_quests.get_participated_quests_by_user_id(user.id)


@router.get("/me/completed_challenges", response_model=list[str])
async def get_completed_challenges(
    user: User = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
) -> list[str]:
    """Challenge ids the session user cleared, oldest first."""
    return await repositories.user_challenges.get_completed_challenges_by_user_id(user.id)
