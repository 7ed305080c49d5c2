"""Quest entity and request schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from questlog.challenges.schemas import Challenge


class Difficulty(str, Enum):
    """Quest difficulty."""

    EASY = "Easy"
    NORMAL = "Normal"
    HARD = "Hard"


class Quest(BaseModel):
    """A quest with its challenges in insertion order."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    price: int  # 0 means free
    difficulty: Difficulty
    num_participate: int
    num_clear: int
    challenges: list[Challenge] = Field(default_factory=list)


class CreateQuest(BaseModel):
    """Create a quest."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: int = Field(0, ge=0)
    difficulty: Difficulty = Difficulty.NORMAL
    num_participate: int = Field(0, ge=0)
    num_clear: int = Field(0, ge=0)


class UpdateQuest(BaseModel):
    """Partial update. Fields left unset (or null) keep their current value."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    price: int | None = Field(None, ge=0)
    difficulty: Difficulty | None = None
    num_participate: int | None = Field(None, ge=0)
    num_clear: int | None = Field(None, ge=0)

    def changes(self) -> dict[str, object]:
        """Return only the fields that carry a new value."""
        return {k: v for k, v in self.model_dump().items() if v is not None}

    def apply(self, quest: Quest) -> Quest:
        """Return ``quest`` with this update's values merged in."""
        return quest.model_copy(update=self.changes())
