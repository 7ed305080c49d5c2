"""Session cookie attach / clear."""

from __future__ import annotations

from datetime import datetime

from starlette.responses import Response

from questlog.config import Settings


def set_session_cookie(response: Response, token: str, expires_at: datetime, settings: Settings) -> None:
    """Attach the session token. The cookie expires together with the token."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        expires=expires_at,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Tell the client to drop the session cookie."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )
