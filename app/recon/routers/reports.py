from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.recon.core.config import settings
from app.recon.core.deps import require_principal
from app.recon.db.session import get_db
from app.recon.schemas.reports import MetadataResponse, ReportDetail, ReportRow, StatsResponse
from app.recon.services.reports import (
    ReportFilter,
    compute_stats,
    get_report_detail,
    list_metadata,
    list_reports,
)

router = APIRouter(dependencies=[Depends(require_principal)])


def report_filter(
    date_from: date | None = Query(None, alias="dateFrom"),
    date_to: date | None = Query(None, alias="dateTo"),
    status: str | None = Query(None),
    branch_id: int | None = Query(None, alias="branchId"),
    cashier_id: int | None = Query(None, alias="cashierId"),
) -> ReportFilter:
    return ReportFilter(
        date_from=date_from,
        date_to=date_to,
        status=status or None,
        branch_id=branch_id,
        cashier_id=cashier_id,
    )


@router.get("/metadata", response_model=MetadataResponse, summary="Active branches and cashiers")
def metadata(db=Depends(get_db)):
    return list_metadata(db)


@router.get("/stats", response_model=StatsResponse, summary="Aggregate totals for matching reconciliations")
def stats(filters: ReportFilter = Depends(report_filter), db=Depends(get_db)):
    return StatsResponse(**compute_stats(db, filters))


@router.get("/reports", response_model=list[ReportRow], summary="List reconciliation reports")
def reports(filters: ReportFilter = Depends(report_filter), db=Depends(get_db)):
    return list_reports(db, filters, limit=settings.REPORTS_MAX_ROWS)


@router.get("/reports/{report_id}", response_model=ReportDetail, summary="Reconciliation report detail")
def report_detail(report_id: int, db=Depends(get_db)):
    return ReportDetail(**get_report_detail(db, report_id))
