from fastapi import APIRouter, Depends, Request
from sqlalchemy import text

from app.recon.core.config import settings
from app.recon.core.error_catalog import ErrorCatalog
from app.recon.core.errors import error_response
from app.recon.db.session import get_db

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    trace_id = getattr(request.state, "trace_id", "")
    return {"status": "ok", "trace_id": trace_id}


@router.get("/ready")
def ready(request: Request, db=Depends(get_db)):
    trace_id = getattr(request.state, "trace_id", "")
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        return error_response(
            code=ErrorCatalog.DB_UNAVAILABLE.code,
            message=ErrorCatalog.DB_UNAVAILABLE.message,
            details=str(exc),
            trace_id=trace_id,
            status_code=ErrorCatalog.DB_UNAVAILABLE.status_code,
        )
    return {"status": "ready", "trace_id": trace_id}


@router.get("/api/config")
async def public_config():
    return {"oneSignalAppId": settings.ONESIGNAL_APP_ID or None}
