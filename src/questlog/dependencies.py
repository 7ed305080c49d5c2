"""Shared FastAPI dependencies."""

from fastapi import Request

from questlog.config import Settings
from questlog.repositories.base import Repositories


def get_repositories(request: Request) -> Repositories:
    """Repository bundle wired at startup."""
    return request.app.state.repositories


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings
