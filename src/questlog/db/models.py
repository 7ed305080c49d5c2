"""ORM models for the relational backend.

Table names match the schema the service has always used: ``users``,
``quests``, ``challenges``, ``user_participating_quests`` and
``user_completed_challenges``.
"""

from __future__ import annotations

import threading
import time

from sqlalchemy import BigInteger, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from questlog.db.base import Base


_clock_lock = threading.Lock()
_last_ns = 0


def _wall_ns() -> int:
    return time.time_ns()


def _now_ns() -> int:
    """Insert stamp, strictly increasing within the process even when the clock is coarse."""
    global _last_ns  # noqa: PLW0603
    with _clock_lock:
        _last_ns = max(_wall_ns(), _last_ns + 1)
        return _last_ns


class UserRow(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(256), nullable=False)


class QuestRow(Base):
    """Maps to the 'quests' table."""

    __tablename__ = "quests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="Normal")
    num_participate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    num_clear: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Listing order; nanoseconds since the epoch at insert. Ties across processes fall back to id.
    created_ns: Mapped[int] = mapped_column(BigInteger, nullable=False, default=_now_ns)

    challenges: Mapped[list[ChallengeRow]] = relationship(
        "ChallengeRow",
        back_populates="quest",
        order_by=lambda: [ChallengeRow.created_ns, ChallengeRow.id],
        passive_deletes=True,
    )


class ChallengeRow(Base):
    """Maps to the 'challenges' table."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    created_ns: Mapped[int] = mapped_column(BigInteger, nullable=False, default=_now_ns)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    quest_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("quests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    stamp_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    stamp_image_color: Mapped[str | None] = mapped_column(Text, nullable=True)
    stamp_image_gray: Mapped[str | None] = mapped_column(Text, nullable=True)
    flavor_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    quest: Mapped[QuestRow] = relationship("QuestRow", back_populates="challenges")


class UserParticipatingQuestRow(Base):
    """Maps to the 'user_participating_quests' table."""

    __tablename__ = "user_participating_quests"
    __table_args__ = (UniqueConstraint("user_id", "quest_id", name="unique_user_quest_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quest_id: Mapped[str] = mapped_column(String(36), ForeignKey("quests.id", ondelete="CASCADE"), nullable=False)


class UserCompletedChallengeRow(Base):
    """Maps to the 'user_completed_challenges' table."""

    __tablename__ = "user_completed_challenges"
    __table_args__ = (UniqueConstraint("user_id", "challenge_id", name="unique_user_challenge_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    challenge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
