"""User entity and request schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class User(BaseModel):
    """A registered user. ``hashed_password`` never leaves the process."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str
    hashed_password: str = Field(exclude=True, repr=False)


class UserResponse(BaseModel):
    """Public representation of a user."""

    id: str
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(id=user.id, username=user.username, email=user.email)


class RegisterRequest(BaseModel):
    """Registration payload."""

    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class LoginRequest(BaseModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()
