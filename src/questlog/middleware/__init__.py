"""Logging, error rendering, request ids and CORS."""

from fastapi import FastAPI

from questlog.config import Settings
from questlog.middleware.cors import setup_cors
from questlog.middleware.error_handler import setup_error_handlers
from questlog.middleware.logging import setup_logging
from questlog.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Wire the cross-cutting layers onto ``app``.

    Starlette runs the last-added middleware outermost: CORS wraps the
    request-id layer, so error responses carry CORS headers too.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
