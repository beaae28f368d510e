"""Health check endpoints."""

from fastapi import APIRouter
from sqlalchemy import text

from homanager.api.deps import FeaturesDep
from homanager.config import get_settings
from homanager.db.session import DBSession

router = APIRouter()
settings = get_settings()


@router.get("/health/ready")
async def readiness_check(
    db: DBSession,
    features: FeaturesDep,
) -> dict[str, str | dict[str, str | bool]]:
    """Readiness check including database connectivity and feature availability."""
    checks: dict[str, str | bool] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"

    checks["notifications"] = features.notifications
    checks["important_dates"] = features.important_dates

    return {
        "status": "healthy" if checks["database"] == "healthy" else "unhealthy",
        "version": settings.app_version,
        "checks": checks,
    }
