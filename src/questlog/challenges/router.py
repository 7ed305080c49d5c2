"""Challenge router."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from questlog.challenges.schemas import Challenge, CreateChallenge
from questlog.dependencies import get_repositories
from questlog.errors import ValidationError
from questlog.repositories.base import Repositories

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/challenges", tags=["Challenges"])


@router.post("", response_model=Challenge, status_code=201)
async def create_challenge(
    body: CreateChallenge,
    repositories: Repositories = Depends(get_repositories),
) -> Challenge:
    challenge = await repositories.challenges.create(body)
    logger.info("challenge_created", challenge_id=challenge.id, quest_id=challenge.quest_id)
    return challenge


@router.get("", response_model=list[Challenge])
async def find_challenge_by_quest_id(
    quest_id: str | None = None,
    repositories: Repositories = Depends(get_repositories),
) -> list[Challenge]:
    """Challenges of one quest in creation order. ``quest_id`` is required."""
    if not quest_id:
        raise ValidationError("quest_id query parameter is required")
    return await repositories.challenges.find_by_quest_id(quest_id)


@router.get("/{challenge_id}", response_model=Challenge)
async def find_challenge(
    challenge_id: str,
    repositories: Repositories = Depends(get_repositories),
) -> Challenge:
    return await repositories.challenges.find(challenge_id)
