"""
Key-value repository adapter (Redis).

Layout, every key under ``{prefix}:``::

    user:{id}                            hash   id, username, email, hashed_password
    user_email:{email}                   string user id
    quest_index                          list   quest ids, insertion order
    quest:{id}                           hash   quest fields
    quest_challenges:{id}                list   challenge ids, insertion order
    quest_participants:{id}              set    user ids
    challenge:{id}                       hash   challenge fields
    challenge_completers:{id}            set    user ids
    user_participating_quests:{uid}      list   quest ids, insertion order
    user_participating_quest_set:{uid}   set    same ids, for uniqueness
    user_completed_challenges:{uid}      list   challenge ids
    user_completed_challenge_set:{uid}   set

Each family name sits directly after the prefix and ids only ever come
last, so an id containing ``:`` cannot address another family's key.

Multi-key writes run in ``MULTI/EXEC`` with ``WATCH`` on the keys whose
state was checked first, so a concurrent change aborts the write.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError, WatchError

from questlog.auth.password import hash_password
from questlog.challenges.schemas import Challenge, CreateChallenge
from questlog.errors import BackendError, ConflictError, NotFoundError
from questlog.quests.schemas import CreateQuest, Quest, UpdateQuest
from questlog.repositories.base import Repositories, check_credentials, new_id
from questlog.users.schemas import LoginRequest, RegisterRequest, User

logger = structlog.get_logger()


class Keys:
    """Key builder for one namespace."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def user(self, user_id: str) -> str:
        return f"{self.prefix}:user:{user_id}"

    def user_email(self, email: str) -> str:
        return f"{self.prefix}:user_email:{email}"

    def quest_index(self) -> str:
        return f"{self.prefix}:quest_index"

    def quest(self, quest_id: str) -> str:
        return f"{self.prefix}:quest:{quest_id}"

    def quest_challenges(self, quest_id: str) -> str:
        return f"{self.prefix}:quest_challenges:{quest_id}"

    def quest_participants(self, quest_id: str) -> str:
        return f"{self.prefix}:quest_participants:{quest_id}"

    def challenge(self, challenge_id: str) -> str:
        return f"{self.prefix}:challenge:{challenge_id}"

    def challenge_completers(self, challenge_id: str) -> str:
        return f"{self.prefix}:challenge_completers:{challenge_id}"

    def participations(self, user_id: str) -> str:
        return f"{self.prefix}:user_participating_quests:{user_id}"

    def participation_set(self, user_id: str) -> str:
        return f"{self.prefix}:user_participating_quest_set:{user_id}"

    def completions(self, user_id: str) -> str:
        return f"{self.prefix}:user_completed_challenges:{user_id}"

    def completion_set(self, user_id: str) -> str:
        return f"{self.prefix}:user_completed_challenge_set:{user_id}"


def _to_hash(model: Any) -> dict[str, Any]:  # noqa: ANN401
    """Serialize a model for HSET. ``None`` fields are left out."""
    return {k: v for k, v in model.model_dump(mode="json", exclude={"challenges"}).items() if v is not None}


class _RedisRepository:
    def __init__(self, client: redis.Redis, keys: Keys) -> None:
        self._redis = client
        self._keys = keys

    @asynccontextmanager
    async def _errors(self, conflict_detail: str = "Conflict") -> AsyncIterator[None]:
        try:
            yield
        except WatchError as e:
            raise ConflictError(conflict_detail) from e
        except RedisError as e:
            logger.error("repository_backend_error", repository=type(self).__name__, error=str(e))
            raise BackendError from e

    async def _load_challenges(self, challenge_ids: list[str]) -> list[Challenge]:
        if not challenge_ids:
            return []
        pipe = self._redis.pipeline(transaction=False)
        for challenge_id in challenge_ids:
            pipe.hgetall(self._keys.challenge(challenge_id))
        rows: list[dict[str, str]] = await pipe.execute()
        return [Challenge(**row) for row in rows if row]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class RedisUserRepository(_RedisRepository):
    async def register(self, payload: RegisterRequest) -> User:
        hashed = hash_password(payload.password)
        user = User(id=new_id(), username=payload.username, email=payload.email, hashed_password=hashed)
        email_key = self._keys.user_email(user.email)
        async with self._errors("Email already registered"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(email_key)
            if await pipe.exists(email_key):
                raise ConflictError("Email already registered")
            pipe.multi()
            pipe.set(email_key, user.id)
            pipe.hset(
                self._keys.user(user.id),
                mapping={
                    "id": user.id,
                    "username": user.username,
                    "email": user.email,
                    "hashed_password": user.hashed_password,
                },
            )
            await pipe.execute()
        return user

    async def _get(self, user_id: str) -> User | None:
        row = await self._redis.hgetall(self._keys.user(user_id))
        return User(**row) if row else None

    async def login(self, credentials: LoginRequest) -> User:
        async with self._errors():
            user_id = await self._redis.get(self._keys.user_email(credentials.email))
            user = await self._get(user_id) if user_id else None
        return check_credentials(user, credentials.password)

    async def find(self, user_id: str) -> User:
        async with self._errors():
            user = await self._get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def delete(self, user_id: str) -> None:
        keys = self._keys
        watched = (keys.user(user_id), keys.participation_set(user_id), keys.completion_set(user_id))
        async with self._errors("User was modified concurrently"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(*watched)
            email = await pipe.hget(keys.user(user_id), "email")
            if email is None:
                raise NotFoundError("User not found")
            quest_ids = await pipe.smembers(keys.participation_set(user_id))
            challenge_ids = await pipe.smembers(keys.completion_set(user_id))
            pipe.multi()
            for quest_id in quest_ids:
                pipe.srem(keys.quest_participants(quest_id), user_id)
            for challenge_id in challenge_ids:
                pipe.srem(keys.challenge_completers(challenge_id), user_id)
            pipe.delete(
                keys.participations(user_id),
                keys.participation_set(user_id),
                keys.completions(user_id),
                keys.completion_set(user_id),
                keys.user_email(email),
                keys.user(user_id),
            )
            await pipe.execute()


# ---------------------------------------------------------------------------
# Quests
# ---------------------------------------------------------------------------


class RedisQuestRepository(_RedisRepository):
    async def create(self, payload: CreateQuest) -> Quest:
        quest = Quest(id=new_id(), **payload.model_dump())
        async with self._errors(), self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(self._keys.quest(quest.id), mapping=_to_hash(quest))
            pipe.rpush(self._keys.quest_index(), quest.id)
            await pipe.execute()
        return quest

    async def find(self, quest_id: str) -> Quest:
        async with self._errors():
            row = await self._redis.hgetall(self._keys.quest(quest_id))
            if not row:
                raise NotFoundError("Quest not found")
            challenge_ids = await self._redis.lrange(self._keys.quest_challenges(quest_id), 0, -1)
            challenges = await self._load_challenges(challenge_ids)
        return Quest(**row, challenges=challenges)

    async def all(self) -> list[Quest]:
        async with self._errors():
            quest_ids: list[str] = await self._redis.lrange(self._keys.quest_index(), 0, -1)
            if not quest_ids:
                return []
            pipe = self._redis.pipeline(transaction=False)
            for quest_id in quest_ids:
                pipe.hgetall(self._keys.quest(quest_id))
                pipe.lrange(self._keys.quest_challenges(quest_id), 0, -1)
            results = await pipe.execute()
            rows: list[dict[str, str]] = results[0::2]
            challenge_lists: list[list[str]] = results[1::2]
            challenges = await self._load_challenges([cid for ids in challenge_lists for cid in ids])

        grouped: dict[str, list[Challenge]] = {}
        for challenge in challenges:
            grouped.setdefault(challenge.quest_id, []).append(challenge)
        return [Quest(**row, challenges=grouped.get(row["id"], [])) for row in rows if row]

    async def update(self, quest_id: str, payload: UpdateQuest) -> Quest:
        key = self._keys.quest(quest_id)
        async with self._errors("Quest was modified concurrently"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(key)
            row = await pipe.hgetall(key)
            if not row:
                raise NotFoundError("Quest not found")
            quest = payload.apply(Quest(**row))
            pipe.multi()
            pipe.hset(key, mapping=_to_hash(quest))
            await pipe.execute()
        return await self.find(quest_id)

    async def delete(self, quest_id: str) -> None:
        keys = self._keys
        watched = (keys.quest(quest_id), keys.quest_challenges(quest_id), keys.quest_participants(quest_id))
        async with self._errors("Quest was modified concurrently"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(*watched)
            if not await pipe.exists(keys.quest(quest_id)):
                raise NotFoundError("Quest not found")
            challenge_ids = await pipe.lrange(keys.quest_challenges(quest_id), 0, -1)
            participants = await pipe.smembers(keys.quest_participants(quest_id))
            completers = {cid: await pipe.smembers(keys.challenge_completers(cid)) for cid in challenge_ids}
            pipe.multi()
            for user_id in participants:
                pipe.lrem(keys.participations(user_id), 0, quest_id)
                pipe.srem(keys.participation_set(user_id), quest_id)
            for challenge_id, user_ids in completers.items():
                for user_id in user_ids:
                    pipe.lrem(keys.completions(user_id), 0, challenge_id)
                    pipe.srem(keys.completion_set(user_id), challenge_id)
                pipe.delete(keys.challenge(challenge_id), keys.challenge_completers(challenge_id))
            pipe.lrem(keys.quest_index(), 0, quest_id)
            pipe.delete(*watched)
            await pipe.execute()


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class RedisChallengeRepository(_RedisRepository):
    async def create(self, payload: CreateChallenge) -> Challenge:
        challenge = Challenge(id=new_id(), **payload.model_dump())
        quest_key = self._keys.quest(challenge.quest_id)
        async with self._errors("Quest was modified concurrently"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(quest_key)
            if not await pipe.exists(quest_key):
                raise NotFoundError("Quest not found")
            pipe.multi()
            pipe.hset(self._keys.challenge(challenge.id), mapping=_to_hash(challenge))
            pipe.rpush(self._keys.quest_challenges(challenge.quest_id), challenge.id)
            await pipe.execute()
        return challenge

    async def find(self, challenge_id: str) -> Challenge:
        async with self._errors():
            row = await self._redis.hgetall(self._keys.challenge(challenge_id))
        if not row:
            raise NotFoundError("Challenge not found")
        return Challenge(**row)

    async def find_by_quest_id(self, quest_id: str) -> list[Challenge]:
        async with self._errors():
            challenge_ids = await self._redis.lrange(self._keys.quest_challenges(quest_id), 0, -1)
            return await self._load_challenges(challenge_ids)


# ---------------------------------------------------------------------------
# Participation / completion events
# ---------------------------------------------------------------------------


class RedisUserQuestRepository(_RedisRepository):
    async def save_quest_participate_event(self, user_id: str, quest_id: str) -> None:
        keys = self._keys
        watched = (keys.user(user_id), keys.quest(quest_id), keys.participation_set(user_id))
        async with self._errors("Already participating in this quest"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(*watched)
            if not await pipe.exists(keys.user(user_id)) or not await pipe.exists(keys.quest(quest_id)):
                raise NotFoundError("User or quest not found")
            if await pipe.sismember(keys.participation_set(user_id), quest_id):
                raise ConflictError("Already participating in this quest")
            pipe.multi()
            pipe.sadd(keys.participation_set(user_id), quest_id)
            pipe.rpush(keys.participations(user_id), quest_id)
            pipe.sadd(keys.quest_participants(quest_id), user_id)
            await pipe.execute()

    async def get_participated_quests_by_user_id(self, user_id: str) -> list[str]:
        async with self._errors():
            return await self._redis.lrange(self._keys.participations(user_id), 0, -1)


class RedisUserChallengeRepository(_RedisRepository):
    async def save_challenge_complete_event(self, user_id: str, challenge_id: str) -> None:
        keys = self._keys
        watched = (keys.user(user_id), keys.challenge(challenge_id), keys.completion_set(user_id))
        async with self._errors("Challenge already completed"), self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(*watched)
            if not await pipe.exists(keys.user(user_id)) or not await pipe.exists(keys.challenge(challenge_id)):
                raise NotFoundError("User or challenge not found")
            if await pipe.sismember(keys.completion_set(user_id), challenge_id):
                raise ConflictError("Challenge already completed")
            pipe.multi()
            pipe.sadd(keys.completion_set(user_id), challenge_id)
            pipe.rpush(keys.completions(user_id), challenge_id)
            pipe.sadd(keys.challenge_completers(challenge_id), user_id)
            await pipe.execute()

    async def get_completed_challenges_by_user_id(self, user_id: str) -> list[str]:
        async with self._errors():
            return await self._redis.lrange(self._keys.completions(user_id), 0, -1)


def redis_repositories(client: redis.Redis, prefix: str = "questlog") -> Repositories:
    """Build a full repository bundle over one Redis client."""
    keys = Keys(prefix)
    return Repositories(
        users=RedisUserRepository(client, keys),
        quests=RedisQuestRepository(client, keys),
        challenges=RedisChallengeRepository(client, keys),
        user_quests=RedisUserQuestRepository(client, keys),
        user_challenges=RedisUserChallengeRepository(client, keys),
        ping=client.ping,
        backend="redis",
    )
