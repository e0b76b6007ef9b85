from fastapi import APIRouter

from app.recon.core.config import settings
from app.recon.routers.auth import router as auth_router
from app.recon.routers.health import router as health_router
from app.recon.routers.metrics import router as metrics_router
from app.recon.routers.reports import router as reports_router
from app.recon.routers.sync import router as sync_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, prefix="/api", tags=["auth"])
api_router.include_router(sync_router, prefix="/api", tags=["sync"])
api_router.include_router(reports_router, prefix="/api", tags=["reports"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
