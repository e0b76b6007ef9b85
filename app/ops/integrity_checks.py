from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import or_, select

from app.recon.core.metrics import metrics
from app.recon.db.models import Accountant, BankReceipt, CashReceipt, Cashier, Reconciliation


SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_WARN = "WARN"
SURPLUS_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class IntegrityFinding:
    check_id: str
    severity: str
    message: str
    entity: str
    entity_id: str | None
    details: dict


def check_orphan_receipts(db) -> list[IntegrityFinding]:
    findings = []
    for model, entity in ((BankReceipt, "bank_receipts"), (CashReceipt, "cash_receipts")):
        rows = db.execute(
            select(model.id, model.reconciliation_id)
            .outerjoin(Reconciliation, Reconciliation.id == model.reconciliation_id)
            .where(Reconciliation.id.is_(None))
        ).all()
        for row in rows:
            findings.append(
                IntegrityFinding(
                    check_id="orphan_receipt",
                    severity=SEVERITY_CRITICAL,
                    message="Receipt references a missing reconciliation.",
                    entity=entity,
                    entity_id=str(row.id),
                    details={"reconciliation_id": row.reconciliation_id},
                )
            )
    if findings:
        metrics.increment_invariant_violation("orphan_receipt", len(findings))
    return findings


def check_surplus_deficit(db) -> list[IntegrityFinding]:
    rows = db.execute(
        select(
            Reconciliation.id,
            Reconciliation.system_sales,
            Reconciliation.total_receipts,
            Reconciliation.surplus_deficit,
        )
    ).all()
    findings = []
    for row in rows:
        expected = Decimal(str(row.total_receipts or 0)) - Decimal(str(row.system_sales or 0))
        stored = Decimal(str(row.surplus_deficit or 0))
        if abs(expected - stored) > SURPLUS_TOLERANCE:
            findings.append(
                IntegrityFinding(
                    check_id="surplus_deficit_mismatch",
                    severity=SEVERITY_WARN,
                    message="Stored surplus/deficit differs from total_receipts - system_sales.",
                    entity="reconciliations",
                    entity_id=str(row.id),
                    details={"stored": format(stored, "f"), "expected": format(expected, "f")},
                )
            )
    if findings:
        metrics.increment_invariant_violation("surplus_deficit_mismatch", len(findings))
    return findings


def check_unresolved_parties(db) -> list[IntegrityFinding]:
    rows = db.execute(
        select(
            Reconciliation.id,
            Reconciliation.cashier_id,
            Reconciliation.accountant_id,
            Cashier.id.label("found_cashier"),
            Accountant.id.label("found_accountant"),
        )
        .outerjoin(Cashier, Cashier.id == Reconciliation.cashier_id)
        .outerjoin(Accountant, Accountant.id == Reconciliation.accountant_id)
        .where(or_(Cashier.id.is_(None), Accountant.id.is_(None)))
    ).all()
    findings = []
    for row in rows:
        findings.append(
            IntegrityFinding(
                check_id="reconciliation_hidden_from_reports",
                severity=SEVERITY_WARN,
                message="Reconciliation has no resolvable cashier or accountant and is excluded from reports.",
                entity="reconciliations",
                entity_id=str(row.id),
                details={
                    "cashier_id": row.cashier_id,
                    "accountant_id": row.accountant_id,
                    "cashier_missing": row.found_cashier is None,
                    "accountant_missing": row.found_accountant is None,
                },
            )
        )
    if findings:
        metrics.increment_invariant_violation("reconciliation_hidden_from_reports", len(findings))
    return findings


def run_integrity_checks(db) -> list[IntegrityFinding]:
    findings: list[IntegrityFinding] = []
    findings.extend(check_orphan_receipts(db))
    findings.extend(check_surplus_deficit(db))
    findings.extend(check_unresolved_parties(db))
    return findings
