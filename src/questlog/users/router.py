"""User router: owner-only find and delete."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response

from questlog.auth.cookies import clear_session_cookie
from questlog.auth.dependencies import ensure_owner, get_current_user
from questlog.config import Settings
from questlog.dependencies import get_app_settings, get_repositories
from questlog.repositories.base import Repositories
from questlog.users.schemas import User, UserResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/{user_id}", response_model=UserResponse)
async def find_user(
    user_id: str,
    user: User = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
) -> UserResponse:
    """Get a user. Only the user themself may read it."""
    ensure_owner(user, user_id)
    return UserResponse.from_user(await repositories.users.find(user_id))


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    user: User = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Delete a user with all of its participation and completion records."""
    ensure_owner(user, user_id)
    await repositories.users.delete(user_id)
    logger.info("user_deleted", user_id=user_id)
    response = Response(status_code=204)
    clear_session_cookie(response, settings)
    return response
