"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ymg.config import get_settings
from ymg.dependencies import get_db, get_local_store, get_storage_selector
from ymg.storage.local import LocalStore
from ymg.storage.selector import StorageSelector

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_db),
    selector: StorageSelector = Depends(get_storage_selector),
    local_store: LocalStore = Depends(get_local_store),
) -> dict[str, object]:
    """Readiness probe: checks the database and the local staging store."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    try:
        checks["local_store"] = "ok" if await local_store.ping() else "error: no reply"
    except Exception as exc:
        checks["local_store"] = f"error: {exc}"

    backend = selector.active_backend
    if backend is not None:
        checks["hosted_storage"] = "ok" if await backend.ping() else "error: unreachable"

    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "ready" if all_ok else "degraded",
        "storage_type": selector.get_storage_type().value,
        "checks": checks,
    }


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
