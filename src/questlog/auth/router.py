"""Authentication router: register, login, logout and the current session user."""

from __future__ import annotations

from datetime import timedelta

import structlog
from fastapi import APIRouter, Depends, Response

from questlog.auth.cookies import clear_session_cookie, set_session_cookie
from questlog.auth.dependencies import get_current_user
from questlog.auth.tokens import issue_session_token
from questlog.config import Settings
from questlog.dependencies import get_app_settings, get_repositories
from questlog.errors import UnauthorizedError
from questlog.repositories.base import Repositories
from questlog.users.schemas import LoginRequest, RegisterRequest, User, UserResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _start_session(response: Response, user: User, settings: Settings) -> None:
    """Issue a session token for ``user`` and attach it as a cookie."""
    token, expires_at = issue_session_token(
        user.id,
        settings.session_secret_key,
        timedelta(hours=settings.session_ttl_hours),
        settings.session_algorithm,
    )
    set_session_cookie(response, token, expires_at, settings)


@router.post("/register", response_model=UserResponse, status_code=201)
async def register_user(
    body: RegisterRequest,
    response: Response,
    repositories: Repositories = Depends(get_repositories),
    settings: Settings = Depends(get_app_settings),
) -> UserResponse:
    """Create an account and start a session."""
    user = await repositories.users.register(body)
    logger.info("user_registered", user_id=user.id)
    _start_session(response, user, settings)
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse, status_code=201)
async def login_user(
    body: LoginRequest,
    response: Response,
    repositories: Repositories = Depends(get_repositories),
    settings: Settings = Depends(get_app_settings),
) -> UserResponse:
    """Check email + password and start a session."""
    try:
        user = await repositories.users.login(body)
    except UnauthorizedError:
        logger.info("login_failed")
        raise
    logger.info("user_logged_in", user_id=user.id)
    _start_session(response, user, settings)
    return UserResponse.from_user(user)


@router.post("/logout", status_code=204)
async def logout_user(
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """
    Drop the session cookie.

    Tokens are stateless, so a copy of the token taken before logout
    stays valid until it expires.
    """
    response = Response(status_code=204)
    clear_session_cookie(response, settings)
    return response


@router.get("/me", response_model=UserResponse)
async def auth_user(
    user: User = Depends(get_current_user),
) -> UserResponse:
    """Return the user the session belongs to, as currently stored."""
    return UserResponse.from_user(user)
