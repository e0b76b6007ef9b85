from fastapi import APIRouter, Depends, Response

from app.recon.core.deps import require_principal
from app.recon.core.metrics import metrics

router = APIRouter()


@router.get("/api/ops/metrics", dependencies=[Depends(require_principal)])
def get_metrics():
    snapshot = metrics.render()
    return Response(content=snapshot.content, media_type=snapshot.content_type)
