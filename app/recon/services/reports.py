from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import Select, func, select

from app.recon.core.error_catalog import AppError, ErrorCatalog
from app.recon.db.models import Accountant, BankReceipt, Branch, CashReceipt, Cashier, Reconciliation

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class ReportFilter:
    date_from: date | None = None
    date_to: date | None = None
    status: str | None = None
    branch_id: int | None = None
    cashier_id: int | None = None


def validate_filter(filters: ReportFilter) -> None:
    if filters.date_from and filters.date_to and filters.date_to < filters.date_from:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "dateTo must not be before dateFrom"})


def reconciliation_conditions(filters: ReportFilter) -> list:
    conditions = []
    if filters.date_from is not None:
        conditions.append(Reconciliation.reconciliation_date >= datetime.combine(filters.date_from, time.min))
    if filters.date_to is not None:
        next_day = datetime.combine(filters.date_to + timedelta(days=1), time.min)
        conditions.append(Reconciliation.reconciliation_date < next_day)
    if filters.status:
        conditions.append(Reconciliation.status == filters.status)
    if filters.branch_id is not None:
        branch_cashiers = select(Cashier.id).where(Cashier.branch_id == filters.branch_id)
        conditions.append(Reconciliation.cashier_id.in_(branch_cashiers))
    if filters.cashier_id is not None:
        conditions.append(Reconciliation.cashier_id == filters.cashier_id)
    return conditions


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.01"))


def report_query() -> Select:
    return (
        select(
            Reconciliation,
            Cashier.name.label("cashier_name"),
            Cashier.cashier_number.label("cashier_number"),
            Accountant.name.label("accountant_name"),
            Branch.branch_name.label("branch_name"),
        )
        .join(Cashier, Cashier.id == Reconciliation.cashier_id)
        .join(Accountant, Accountant.id == Reconciliation.accountant_id)
        .outerjoin(Branch, Branch.id == Cashier.branch_id)
    )


def report_row(row) -> dict:
    reconciliation = row.Reconciliation
    return {
        "id": reconciliation.id,
        "reconciliation_number": reconciliation.reconciliation_number,
        "cashier_id": reconciliation.cashier_id,
        "accountant_id": reconciliation.accountant_id,
        "reconciliation_date": reconciliation.reconciliation_date,
        "system_sales": _money(reconciliation.system_sales),
        "total_receipts": _money(reconciliation.total_receipts),
        "surplus_deficit": _money(reconciliation.surplus_deficit),
        "status": reconciliation.status,
        "notes": reconciliation.notes,
        "cashier_name": row.cashier_name,
        "cashier_number": row.cashier_number,
        "accountant_name": row.accountant_name,
        "branch_name": row.branch_name,
    }


def list_reports(db, filters: ReportFilter, *, limit: int) -> list[dict]:
    validate_filter(filters)
    stmt = (
        report_query()
        .where(*reconciliation_conditions(filters))
        .order_by(Reconciliation.reconciliation_date.desc().nulls_last(), Reconciliation.id.desc())
        .limit(limit)
    )
    return [report_row(row) for row in db.execute(stmt).all()]


def compute_stats(db, filters: ReportFilter) -> dict:
    validate_filter(filters)
    conditions = reconciliation_conditions(filters)
    totals = db.execute(
        select(
            func.count(Reconciliation.id),
            func.sum(Reconciliation.total_receipts),
            func.sum(Reconciliation.system_sales),
        ).where(*conditions)
    ).one()
    matching_ids = select(Reconciliation.id).where(*conditions)
    total_cash = db.execute(
        select(func.sum(CashReceipt.amount)).where(CashReceipt.reconciliation_id.in_(matching_ids))
    ).scalar_one()
    return {
        "total_reconciliations": int(totals[0] or 0),
        "total_receipts": _money(totals[1]),
        "total_sales": _money(totals[2]),
        "total_cash": _money(total_cash),
    }


def get_report_detail(db, reconciliation_id: int) -> dict:
    row = db.execute(report_query().where(Reconciliation.id == reconciliation_id)).first()
    if row is None:
        raise AppError(ErrorCatalog.REPORT_NOT_FOUND, details={"id": reconciliation_id})
    detail = report_row(row)
    bank_receipts = db.execute(
        select(BankReceipt).where(BankReceipt.reconciliation_id == reconciliation_id).order_by(BankReceipt.id)
    ).scalars()
    cash_receipts = db.execute(
        select(CashReceipt).where(CashReceipt.reconciliation_id == reconciliation_id).order_by(CashReceipt.id)
    ).scalars()
    detail["bank_receipts"] = [
        {
            "id": receipt.id,
            "reconciliation_id": receipt.reconciliation_id,
            "operation_type": receipt.operation_type,
            "amount": _money(receipt.amount),
        }
        for receipt in bank_receipts
    ]
    detail["cash_receipts"] = [
        {
            "id": receipt.id,
            "reconciliation_id": receipt.reconciliation_id,
            "amount": _money(receipt.amount),
            "note": receipt.note,
        }
        for receipt in cash_receipts
    ]
    return detail


def list_metadata(db) -> dict:
    branches = db.execute(
        select(Branch.id, Branch.branch_name).where(Branch.is_active.is_(True)).order_by(Branch.id)
    ).all()
    cashiers = db.execute(
        select(Cashier.id, Cashier.name, Cashier.cashier_number).where(Cashier.active.is_(True)).order_by(Cashier.id)
    ).all()
    return {
        "branches": [{"id": row.id, "branch_name": row.branch_name} for row in branches],
        "cashiers": [
            {"id": row.id, "name": row.name, "cashier_number": row.cashier_number} for row in cashiers
        ],
    }
