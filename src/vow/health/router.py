"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends, Request

from vow.dependencies import get_store
from vow.errors import StorageError
from vow.redis_client import redis_status
from vow.storage import Collection, RecordStore

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(store: RecordStore = Depends(get_store)) -> dict[str, object]:  # noqa: B008
    """Readiness probe: every collection must be readable (missing is fine, corrupt is not)."""
    checks: dict[str, str] = {}

    try:
        for collection in Collection:
            await store.get(collection)
        checks["store"] = "ok"
    except StorageError as exc:
        checks["store"] = f"error: {exc.message}"

    checks["redis"] = await redis_status()

    all_ok = all(v in ("ok", "disabled") for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(request: Request) -> dict[str, str]:
    settings = request.app.state.settings
    return {
        "version": settings.app_version,
        "environment": settings.environment,
        "storage_backend": settings.storage_backend,
    }
