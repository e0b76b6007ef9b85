from fastapi import APIRouter, Depends, Request

from app.recon.core.deps import get_notifier
from app.recon.db.session import get_db
from app.recon.schemas.sync import ResetDataRequest, SyncPushRequest, SyncResponse
from app.recon.services.sync import SyncService

router = APIRouter()


@router.post(
    "/sync/push",
    response_model=SyncResponse,
    summary="Push desktop data",
    description=(
        "Upserts every collection present in `data` inside one transaction. "
        "Reconciliations, bank receipts and cash receipts are full-replace: stored rows missing "
        "from the pushed list are deleted and an empty list clears the collection. "
        "Omitted collections are left untouched."
    ),
)
def sync_push(request: Request, payload: SyncPushRequest, db=Depends(get_db), notifier=Depends(get_notifier)):
    trace_id = getattr(request.state, "trace_id", "")
    service = SyncService(db, notifier=notifier)
    service.push(payload.api_key, payload.data, trace_id=trace_id)
    return SyncResponse(message="Sync successful", trace_id=trace_id)


@router.post(
    "/reset-data",
    response_model=SyncResponse,
    summary="Clear synced reconciliation data",
    description="Deletes all cash receipts, bank receipts and reconciliations. API-key gated.",
)
def reset_data(request: Request, payload: ResetDataRequest, db=Depends(get_db)):
    trace_id = getattr(request.state, "trace_id", "")
    SyncService(db).reset(payload.api_key, trace_id=trace_id)
    return SyncResponse(message="Data reset successful", trace_id=trace_id)
