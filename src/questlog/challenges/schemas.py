"""Challenge entity and request schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Challenge(BaseModel):
    """A location-bound challenge belonging to one quest."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    quest_id: str
    latitude: float
    longitude: float
    stamp_name: str | None = None
    stamp_image_color: str | None = None
    stamp_image_gray: str | None = None
    flavor_text: str | None = None


class ChallengeFields(BaseModel):
    """Fields shared by standalone and nested challenge creation."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    stamp_name: str | None = None
    stamp_image_color: str | None = None
    stamp_image_gray: str | None = None
    flavor_text: str | None = None


class CreateChallenge(ChallengeFields):
    """Create a challenge under ``quest_id``."""

    quest_id: str = Field(..., min_length=1)


class NestedChallengeRequest(ChallengeFields):
    """Create a challenge under the quest named in the path."""

    def for_quest(self, quest_id: str) -> CreateChallenge:
        return CreateChallenge(quest_id=quest_id, **self.model_dump())
