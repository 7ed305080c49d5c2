"""Cross-origin access for the browser client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from questlog.config import Settings

# Credentialed requests cannot use wildcards, so everything is listed.
_METHODS = ["GET", "POST", "PATCH", "DELETE"]
_REQUEST_HEADERS = ["Content-Type", "X-Request-Id"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Let ``settings.cors_origins`` call the API with the session cookie attached."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=_METHODS,
        allow_headers=_REQUEST_HEADERS,
        expose_headers=["X-Request-Id"],
    )
