"""
Repository interfaces.

Handlers depend only on these protocols. Every adapter (memory, sql,
redis) implements all five and reports failures with the classes in
``questlog.errors``:

- reads by id raise ``NotFoundError`` when the entity is absent
- uniqueness violations raise ``ConflictError``
- storage or transport faults raise ``BackendError``
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from questlog.auth.password import burn_verification, verify_password
from questlog.challenges.schemas import Challenge, CreateChallenge
from questlog.errors import UnauthorizedError
from questlog.quests.schemas import CreateQuest, Quest, UpdateQuest
from questlog.users.schemas import LoginRequest, RegisterRequest, User


class UserRepository(Protocol):
    async def register(self, payload: RegisterRequest) -> User:
        """Hash the password and persist a new user. Duplicate email is a conflict."""
        ...

    async def login(self, credentials: LoginRequest) -> User:
        """Return the user matching the credentials, else ``UnauthorizedError``."""
        ...

    async def find(self, user_id: str) -> User: ...

    async def delete(self, user_id: str) -> None:
        """Delete the user together with its participation and completion records."""
        ...


class QuestRepository(Protocol):
    async def create(self, payload: CreateQuest) -> Quest: ...

    async def find(self, quest_id: str) -> Quest:
        """Fetch a quest with its challenges attached."""
        ...

    async def all(self) -> list[Quest]: ...

    async def update(self, quest_id: str, payload: UpdateQuest) -> Quest: ...

    async def delete(self, quest_id: str) -> None:
        """Delete the quest and its challenges."""
        ...


class ChallengeRepository(Protocol):
    async def create(self, payload: CreateChallenge) -> Challenge:
        """Persist a challenge. A missing quest is ``NotFoundError``."""
        ...

    async def find(self, challenge_id: str) -> Challenge: ...

    async def find_by_quest_id(self, quest_id: str) -> list[Challenge]: ...


class UserQuestRepository(Protocol):
    async def save_quest_participate_event(self, user_id: str, quest_id: str) -> None: ...

    async def get_participated_quests_by_user_id(self, user_id: str) -> list[str]:
        """Quest ids in participation order; empty when there are none."""
        ...


class UserChallengeRepository(Protocol):
    async def save_challenge_complete_event(self, user_id: str, challenge_id: str) -> None: ...

    async def get_completed_challenges_by_user_id(self, user_id: str) -> list[str]:
        """Challenge ids in completion order; empty when there are none."""
        ...


async def _no_ping() -> None:
    return None


@dataclass(frozen=True)
class Repositories:
    """One adapter per entity family, wired together at startup."""

    users: UserRepository
    quests: QuestRepository
    challenges: ChallengeRepository
    user_quests: UserQuestRepository
    user_challenges: UserChallengeRepository
    # Round trip to the backing store, used by the readiness probe.
    ping: Callable[[], Awaitable[None]] = _no_ping
    # Name the readiness probe reports the store under.
    backend: str = "storage"


def new_id() -> str:
    """Server-generated opaque identifier."""
    return str(uuid.uuid4())


def check_credentials(user: User | None, password: str) -> User:
    """
    Return ``user`` if ``password`` matches its stored hash.

    A missing user and a wrong password raise the same error.
    """
    if user is None:
        burn_verification()
        raise UnauthorizedError("Invalid email or password")
    if not verify_password(password, user.hashed_password):
        raise UnauthorizedError("Invalid email or password")
    return user
