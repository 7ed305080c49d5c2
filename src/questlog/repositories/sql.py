"""
Relational repository adapter (SQLAlchemy async ORM).

Each operation runs in its own session and transaction. Driver errors
never leave this module: integrity violations become ``ConflictError``
and every other ``SQLAlchemyError`` becomes ``BackendError``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from questlog.auth.password import hash_password
from questlog.challenges.schemas import Challenge, CreateChallenge
from questlog.db.models import (
    ChallengeRow,
    QuestRow,
    UserCompletedChallengeRow,
    UserParticipatingQuestRow,
    UserRow,
)
from questlog.errors import BackendError, ConflictError, NotFoundError
from questlog.quests.schemas import CreateQuest, Quest, UpdateQuest
from questlog.repositories.base import Repositories, check_credentials, new_id
from questlog.users.schemas import LoginRequest, RegisterRequest, User

logger = structlog.get_logger()

# Insertion order, id breaks ties between rows stamped in the same nanosecond.
_QUEST_ORDER = (QuestRow.created_ns, QuestRow.id)
_CHALLENGE_ORDER = (ChallengeRow.created_ns, ChallengeRow.id)


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _user(row: UserRow) -> User:
    return User(id=row.id, username=row.username, email=row.email, hashed_password=row.hashed_password)


def _challenge(row: ChallengeRow) -> Challenge:
    return Challenge(
        id=row.id,
        name=row.name,
        description=row.description,
        quest_id=row.quest_id,
        latitude=row.latitude,
        longitude=row.longitude,
        stamp_name=row.stamp_name,
        stamp_image_color=row.stamp_image_color,
        stamp_image_gray=row.stamp_image_gray,
        flavor_text=row.flavor_text,
    )


def _quest(row: QuestRow, challenges: list[Challenge]) -> Quest:
    return Quest(
        id=row.id,
        title=row.title,
        description=row.description,
        price=row.price,
        difficulty=row.difficulty,
        num_participate=row.num_participate,
        num_clear=row.num_clear,
        challenges=challenges,
    )


class _SqlRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, conflict_detail: str = "Conflict") -> AsyncIterator[AsyncSession]:
        """Session inside one transaction, committed on success, rolled back on error."""
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except IntegrityError as e:
            raise ConflictError(conflict_detail) from e
        except SQLAlchemyError as e:
            logger.error("repository_backend_error", repository=type(self).__name__, error=str(e))
            raise BackendError from e


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class SqlUserRepository(_SqlRepository):
    async def register(self, payload: RegisterRequest) -> User:
        hashed = hash_password(payload.password)
        async with self._transaction("Email already registered") as session:
            existing = await session.scalar(select(UserRow.id).where(UserRow.email == payload.email))
            if existing is not None:
                raise ConflictError("Email already registered")
            row = UserRow(id=new_id(), username=payload.username, email=payload.email, hashed_password=hashed)
            session.add(row)
            await session.flush()
            return _user(row)

    async def login(self, credentials: LoginRequest) -> User:
        async with self._transaction() as session:
            row = await session.scalar(select(UserRow).where(UserRow.email == credentials.email))
            user = _user(row) if row is not None else None
        return check_credentials(user, credentials.password)

    async def find(self, user_id: str) -> User:
        async with self._transaction() as session:
            row = await session.get(UserRow, user_id)
            if row is None:
                raise NotFoundError("User not found")
            return _user(row)

    async def delete(self, user_id: str) -> None:
        async with self._transaction() as session:
            await session.execute(
                delete(UserParticipatingQuestRow).where(UserParticipatingQuestRow.user_id == user_id)
            )
            await session.execute(
                delete(UserCompletedChallengeRow).where(UserCompletedChallengeRow.user_id == user_id)
            )
            result = await session.execute(delete(UserRow).where(UserRow.id == user_id))
            if result.rowcount == 0:
                raise NotFoundError("User not found")


# ---------------------------------------------------------------------------
# Quests
# ---------------------------------------------------------------------------


class SqlQuestRepository(_SqlRepository):
    async def create(self, payload: CreateQuest) -> Quest:
        async with self._transaction() as session:
            row = QuestRow(
                id=new_id(),
                title=payload.title,
                description=payload.description,
                price=payload.price,
                difficulty=payload.difficulty.value,
                num_participate=payload.num_participate,
                num_clear=payload.num_clear,
            )
            session.add(row)
            await session.flush()
            return _quest(row, [])

    async def find(self, quest_id: str) -> Quest:
        async with self._transaction() as session:
            row = await session.get(QuestRow, quest_id, options=[selectinload(QuestRow.challenges)])
            if row is None:
                raise NotFoundError("Quest not found")
            return _quest(row, [_challenge(c) for c in row.challenges])

    async def all(self) -> list[Quest]:
        async with self._transaction() as session:
            quest_rows = (await session.scalars(select(QuestRow).order_by(*_QUEST_ORDER))).all()
            challenge_rows = (await session.scalars(select(ChallengeRow).order_by(*_CHALLENGE_ORDER))).all()

        grouped: dict[str, list[Challenge]] = {row.id: [] for row in quest_rows}
        for challenge_row in challenge_rows:
            if challenge_row.quest_id in grouped:
                grouped[challenge_row.quest_id].append(_challenge(challenge_row))
        return [_quest(row, grouped[row.id]) for row in quest_rows]

    async def update(self, quest_id: str, payload: UpdateQuest) -> Quest:
        async with self._transaction() as session:
            row = await session.get(QuestRow, quest_id, options=[selectinload(QuestRow.challenges)])
            if row is None:
                raise NotFoundError("Quest not found")
            for field, value in payload.changes().items():
                setattr(row, field, getattr(value, "value", value))
            await session.flush()
            return _quest(row, [_challenge(c) for c in row.challenges])

    async def delete(self, quest_id: str) -> None:
        async with self._transaction() as session:
            challenge_ids = select(ChallengeRow.id).where(ChallengeRow.quest_id == quest_id)
            await session.execute(
                delete(UserCompletedChallengeRow).where(UserCompletedChallengeRow.challenge_id.in_(challenge_ids)),
                execution_options={"synchronize_session": False},
            )
            await session.execute(
                delete(UserParticipatingQuestRow).where(UserParticipatingQuestRow.quest_id == quest_id)
            )
            await session.execute(delete(ChallengeRow).where(ChallengeRow.quest_id == quest_id))
            result = await session.execute(delete(QuestRow).where(QuestRow.id == quest_id))
            if result.rowcount == 0:
                raise NotFoundError("Quest not found")


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class SqlChallengeRepository(_SqlRepository):
    async def create(self, payload: CreateChallenge) -> Challenge:
        async with self._transaction() as session:
            if await session.get(QuestRow, payload.quest_id) is None:
                raise NotFoundError("Quest not found")
            row = ChallengeRow(id=new_id(), **payload.model_dump())
            session.add(row)
            await session.flush()
            return _challenge(row)

    async def find(self, challenge_id: str) -> Challenge:
        async with self._transaction() as session:
            row = await session.get(ChallengeRow, challenge_id)
            if row is None:
                raise NotFoundError("Challenge not found")
            return _challenge(row)

    async def find_by_quest_id(self, quest_id: str) -> list[Challenge]:
        async with self._transaction() as session:
            rows = await session.scalars(
                select(ChallengeRow).where(ChallengeRow.quest_id == quest_id).order_by(*_CHALLENGE_ORDER)
            )
            return [_challenge(row) for row in rows]


# ---------------------------------------------------------------------------
# Participation / completion events
# ---------------------------------------------------------------------------


class SqlUserQuestRepository(_SqlRepository):
    async def save_quest_participate_event(self, user_id: str, quest_id: str) -> None:
        async with self._transaction("Already participating in this quest") as session:
            if await session.get(UserRow, user_id) is None or await session.get(QuestRow, quest_id) is None:
                raise NotFoundError("User or quest not found")
            session.add(UserParticipatingQuestRow(user_id=user_id, quest_id=quest_id))
            await session.flush()

    async def get_participated_quests_by_user_id(self, user_id: str) -> list[str]:
        async with self._transaction() as session:
            rows = await session.scalars(
                select(UserParticipatingQuestRow.quest_id)
                .where(UserParticipatingQuestRow.user_id == user_id)
                .order_by(UserParticipatingQuestRow.id)
            )
            return list(rows)


class SqlUserChallengeRepository(_SqlRepository):
    async def save_challenge_complete_event(self, user_id: str, challenge_id: str) -> None:
        async with self._transaction("Challenge already completed") as session:
            if await session.get(UserRow, user_id) is None or await session.get(ChallengeRow, challenge_id) is None:
                raise NotFoundError("User or challenge not found")
            session.add(UserCompletedChallengeRow(user_id=user_id, challenge_id=challenge_id))
            await session.flush()

    async def get_completed_challenges_by_user_id(self, user_id: str) -> list[str]:
        async with self._transaction() as session:
            rows = await session.scalars(
                select(UserCompletedChallengeRow.challenge_id)
                .where(UserCompletedChallengeRow.user_id == user_id)
                .order_by(UserCompletedChallengeRow.id)
            )
            return list(rows)


def sql_repositories(session_factory: async_sessionmaker[AsyncSession]) -> Repositories:
    """Build a full repository bundle over one session factory."""

    async def ping() -> None:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))

    return Repositories(
        users=SqlUserRepository(session_factory),
        quests=SqlQuestRepository(session_factory),
        challenges=SqlChallengeRepository(session_factory),
        user_quests=SqlUserQuestRepository(session_factory),
        user_challenges=SqlUserChallengeRepository(session_factory),
        ping=ping,
        backend="sql",
    )
