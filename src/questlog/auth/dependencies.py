"""FastAPI authentication dependencies (the session guard)."""

from __future__ import annotations

import structlog
from fastapi import Depends, Request

from questlog.auth.tokens import TokenError, verify_token
from questlog.config import Settings
from questlog.dependencies import get_app_settings, get_repositories
from questlog.errors import ForbiddenError, NotFoundError, UnauthorizedError
from questlog.repositories.base import Repositories
from questlog.users.schemas import User

logger = structlog.get_logger()


async def get_session_user_id(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> str:
    """
    Read the session cookie and verify it.

    Missing cookie, bad signature, expiry and malformed tokens all end in
    401; the specific reason is logged, not returned.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedError("Missing session cookie")

    try:
        claims = verify_token(token, settings.session_secret_key, settings.session_algorithm)
    except TokenError as e:
        logger.info("session_rejected", reason=e.reason)
        raise UnauthorizedError("Invalid or expired session") from e

    structlog.contextvars.bind_contextvars(user_id=claims.user_id)
    return claims.user_id


async def get_current_user(
    user_id: str = Depends(get_session_user_id),
    repositories: Repositories = Depends(get_repositories),
) -> User:
    """
    Resolve the session to the stored user.

    A token whose user has since been deleted is treated as no session.
    """
    try:
        return await repositories.users.find(user_id)
    except NotFoundError as e:
        logger.info("session_rejected", reason="user_not_found")
        raise UnauthorizedError("Invalid or expired session") from e


def ensure_owner(user: User, owner_id: str) -> None:
    """Raise 403 unless ``user`` is the owner named by ``owner_id``."""
    if user.id != owner_id:
        raise ForbiddenError("Not the owner of this resource")
