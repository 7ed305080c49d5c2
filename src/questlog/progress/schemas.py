"""Participation and completion event schemas."""

from pydantic import BaseModel, Field


class EventPayload(BaseModel):
    """Body of a participate / complete request."""

    user_id: str = Field(..., min_length=1)
