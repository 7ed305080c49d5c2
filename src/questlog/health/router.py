"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends

from questlog.config import Settings
from questlog.dependencies import get_app_settings, get_repositories
from questlog.repositories.base import Repositories

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    repositories: Repositories = Depends(get_repositories),
) -> dict[str, object]:
    """Readiness probe: the storage backend in use answers a ping."""
    checks: dict[str, object] = {}
    try:
        await repositories.ping()
        checks[repositories.backend] = "ok"
    except Exception as exc:
        checks[repositories.backend] = f"error: {type(exc).__name__}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(
    settings: Settings = Depends(get_app_settings),
) -> dict[str, str]:
    """Return API version and environment."""
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
