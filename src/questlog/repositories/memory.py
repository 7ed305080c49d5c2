"""
In-memory repository adapter.

All five repositories share one ``MemoryStore``, which is created by the
caller and passed in, so each test can own an isolated store. The store
is guarded by a reader/writer lock held only around the dictionary
access itself, never across an ``await``.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import structlog

from questlog.auth.password import hash_password
from questlog.challenges.schemas import Challenge, CreateChallenge
from questlog.errors import ConflictError, NotFoundError
from questlog.quests.schemas import CreateQuest, Quest, UpdateQuest
from questlog.repositories.base import Repositories, check_credentials, new_id
from questlog.users.schemas import LoginRequest, RegisterRequest, User

logger = structlog.get_logger()


class ReadWriteLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class MemoryStore:
    """Every table of the service as plain dictionaries and lists."""

    users: dict[str, User] = field(default_factory=dict)
    user_ids_by_email: dict[str, str] = field(default_factory=dict)
    quests: dict[str, Quest] = field(default_factory=dict)
    challenges: dict[str, Challenge] = field(default_factory=dict)
    participations: list[tuple[str, str]] = field(default_factory=list)
    completions: list[tuple[str, str]] = field(default_factory=list)
    lock: ReadWriteLock = field(default_factory=ReadWriteLock)

    def challenges_of(self, quest_id: str) -> list[Challenge]:
        """Challenges of one quest in insertion order. Caller holds the lock."""
        return [c for c in self.challenges.values() if c.quest_id == quest_id]


class MemoryUserRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def register(self, payload: RegisterRequest) -> User:
        hashed = hash_password(payload.password)
        store = self._store
        with store.lock.write():
            if payload.email in store.user_ids_by_email:
                raise ConflictError("Email already registered")
            user = User(id=new_id(), username=payload.username, email=payload.email, hashed_password=hashed)
            store.users[user.id] = user
            store.user_ids_by_email[user.email] = user.id
        return user

    async def login(self, credentials: LoginRequest) -> User:
        store = self._store
        with store.lock.read():
            user_id = store.user_ids_by_email.get(credentials.email)
            user = store.users.get(user_id) if user_id else None
        return check_credentials(user, credentials.password)

    async def find(self, user_id: str) -> User:
        with self._store.lock.read():
            user = self._store.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def delete(self, user_id: str) -> None:
        store = self._store
        with store.lock.write():
            user = store.users.pop(user_id, None)
            if user is None:
                raise NotFoundError("User not found")
            store.user_ids_by_email.pop(user.email, None)
            store.participations = [p for p in store.participations if p[0] != user_id]
            store.completions = [c for c in store.completions if c[0] != user_id]


class MemoryQuestRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, payload: CreateQuest) -> Quest:
        quest = Quest(id=new_id(), **payload.model_dump())
        with self._store.lock.write():
            self._store.quests[quest.id] = quest
        return quest

    async def find(self, quest_id: str) -> Quest:
        store = self._store
        with store.lock.read():
            quest = store.quests.get(quest_id)
            if quest is None:
                raise NotFoundError("Quest not found")
            challenges = store.challenges_of(quest_id)
        return quest.model_copy(update={"challenges": challenges})

    async def all(self) -> list[Quest]:
        store = self._store
        with store.lock.read():
            quests = list(store.quests.values())
            challenges = list(store.challenges.values())
        grouped: dict[str, list[Challenge]] = {q.id: [] for q in quests}
        for challenge in challenges:
            if challenge.quest_id in grouped:
                grouped[challenge.quest_id].append(challenge)
        return [q.model_copy(update={"challenges": grouped[q.id]}) for q in quests]

    async def update(self, quest_id: str, payload: UpdateQuest) -> Quest:
        store = self._store
        with store.lock.write():
            quest = store.quests.get(quest_id)
            if quest is None:
                raise NotFoundError("Quest not found")
            quest = payload.apply(quest)
            store.quests[quest_id] = quest
            challenges = store.challenges_of(quest_id)
        return quest.model_copy(update={"challenges": challenges})

    async def delete(self, quest_id: str) -> None:
        store = self._store
        with store.lock.write():
            if store.quests.pop(quest_id, None) is None:
                raise NotFoundError("Quest not found")
            removed = {cid for cid, c in store.challenges.items() if c.quest_id == quest_id}
            for challenge_id in removed:
                del store.challenges[challenge_id]
            store.participations = [p for p in store.participations if p[1] != quest_id]
            store.completions = [c for c in store.completions if c[1] not in removed]


class MemoryChallengeRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, payload: CreateChallenge) -> Challenge:
        challenge = Challenge(id=new_id(), **payload.model_dump())
        with self._store.lock.write():
            if challenge.quest_id not in self._store.quests:
                raise NotFoundError("Quest not found")
            self._store.challenges[challenge.id] = challenge
        return challenge

    async def find(self, challenge_id: str) -> Challenge:
        with self._store.lock.read():
            challenge = self._store.challenges.get(challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")
        return challenge

    async def find_by_quest_id(self, quest_id: str) -> list[Challenge]:
        with self._store.lock.read():
            return self._store.challenges_of(quest_id)


class MemoryUserQuestRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def save_quest_participate_event(self, user_id: str, quest_id: str) -> None:
        store = self._store
        with store.lock.write():
            if user_id not in store.users or quest_id not in store.quests:
                raise NotFoundError("User or quest not found")
            if (user_id, quest_id) in store.participations:
                raise ConflictError("Already participating in this quest")
            store.participations.append((user_id, quest_id))

    async def get_participated_quests_by_user_id(self, user_id: str) -> list[str]:
        with self._store.lock.read():
            return [quest_id for uid, quest_id in self._store.participations if uid == user_id]


class MemoryUserChallengeRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def save_challenge_complete_event(self, user_id: str, challenge_id: str) -> None:
        store = self._store
        with store.lock.write():
            if user_id not in store.users or challenge_id not in store.challenges:
                raise NotFoundError("User or challenge not found")
            if (user_id, challenge_id) in store.completions:
                raise ConflictError("Challenge already completed")
            store.completions.append((user_id, challenge_id))

    async def get_completed_challenges_by_user_id(self, user_id: str) -> list[str]:
        with self._store.lock.read():
            return [challenge_id for uid, challenge_id in self._store.completions if uid == user_id]


def memory_repositories(store: MemoryStore | None = None) -> Repositories:
    """Build a full repository bundle over one shared store."""
    store = store or MemoryStore()
    logger.debug("memory_store_ready")
    return Repositories(
        users=MemoryUserRepository(store),
        quests=MemoryQuestRepository(store),
        challenges=MemoryChallengeRepository(store),
        user_quests=MemoryUserQuestRepository(store),
        user_challenges=MemoryUserChallengeRepository(store),
        backend="memory",
    )
