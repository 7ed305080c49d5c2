"""
Participation and completion use cases.

Each use case checks the caller owns the event, confirms both ends of
the association exist, then appends the event. The lookups only read,
so any failure leaves nothing behind and surfaces as a single error.
"""

from __future__ import annotations

import structlog

from questlog.auth.dependencies import ensure_owner
from questlog.repositories.base import Repositories
from questlog.users.schemas import User

logger = structlog.get_logger()


async def participate_quest(repositories: Repositories, session_user: User, user_id: str, quest_id: str) -> None:
    """Record that ``user_id`` joined ``quest_id``."""
    ensure_owner(session_user, user_id)
    await repositories.users.find(user_id)
    await repositories.quests.find(quest_id)
    await repositories.user_quests.save_quest_participate_event(user_id, quest_id)
    logger.info("quest_participated", user_id=user_id, quest_id=quest_id)


async def complete_challenge(
    repositories: Repositories, session_user: User, user_id: str, challenge_id: str
) -> None:
    """Record that ``user_id`` cleared ``challenge_id``."""
    ensure_owner(session_user, user_id)
    await repositories.users.find(user_id)
    await repositories.challenges.find(challenge_id)
    await repositories.user_challenges.save_challenge_complete_event(user_id, challenge_id)
    logger.info("challenge_completed", user_id=user_id, challenge_id=challenge_id)
