from fastapi import APIRouter

from visitrack.api.analytics import router as analytics_router
from visitrack.api.auth import router as auth_router
from visitrack.api.health import router as health_router
from visitrack.api.system import router as system_router

api_router = APIRouter()

# Include sub-routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(system_router)
api_router.include_router(analytics_router)

