from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from visitrack.database import get_db

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(db: Optional[AsyncSession] = Depends(get_db)) -> dict[str, Any]:
    checks = {
        "database": "unhealthy",
    }

    if db is None:
        checks["database"] = "not_configured"
    else:
        try:
            await db.execute(text("SELECT 1"))
            checks["database"] = "healthy"
        except Exception as e:
            checks["database"] = f"unhealthy: {str(e)}"

    overall = "healthy" if checks["database"] == "healthy" else "degraded"

    return {
        "status": overall,
        "checks": checks,
    }
