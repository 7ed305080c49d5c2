"""Quest router: CRUD and nested challenge creation."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response

from questlog.challenges.schemas import Challenge, NestedChallengeRequest
from questlog.dependencies import get_repositories
from questlog.quests.schemas import CreateQuest, Quest, UpdateQuest
from questlog.repositories.base import Repositories

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/quests", tags=["Quests"])


@router.post("", response_model=Quest, status_code=201)
async def create_quest(
    body: CreateQuest,
    repositories: Repositories = Depends(get_repositories),
) -> Quest:
    quest = await repositories.quests.create(body)
    logger.info("quest_created", quest_id=quest.id)
    return quest


@router.get("", response_model=list[Quest])
async def all_quests(
    repositories: Repositories = Depends(get_repositories),
) -> list[Quest]:
    """Every quest with its challenges."""
    return await repositories.quests.all()


@router.get("/{quest_id}", response_model=Quest)
async def find_quest(
    quest_id: str,
    repositories: Repositories = Depends(get_repositories),
) -> Quest:
    return await repositories.quests.find(quest_id)


@router.patch("/{quest_id}", response_model=Quest)
async def update_quest(
    quest_id: str,
    body: UpdateQuest,
    repositories: Repositories = Depends(get_repositories),
) -> Quest:
    """Partial update: omitted fields keep their value."""
    quest = await repositories.quests.update(quest_id, body)
    logger.info("quest_updated", quest_id=quest_id, fields=sorted(body.changes()))
    return quest


@router.delete("/{quest_id}", status_code=204)
async def delete_quest(
    quest_id: str,
    repositories: Repositories = Depends(get_repositories),
) -> Response:
    """Delete a quest and its challenges."""
    await repositories.quests.delete(quest_id)
    logger.info("quest_deleted", quest_id=quest_id)
    return Response(status_code=204)


@router.post("/{quest_id}/challenges", response_model=Challenge, status_code=201)
async def create_quest_challenge(
    quest_id: str,
    body: NestedChallengeRequest,
    repositories: Repositories = Depends(get_repositories),
) -> Challenge:
    """Create a challenge under this quest."""
    challenge = await repositories.challenges.create(body.for_quest(quest_id))
    logger.info("challenge_created", challenge_id=challenge.id, quest_id=quest_id)
    return challenge
