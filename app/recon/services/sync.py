"""Sync push reconciliation.

A push carries the desktop's complete membership for every collection it
includes. Collections are applied in dependency order inside a single
transaction: admins, cashiers, branches, accountants, reconciliations, bank
receipts, cash receipts. Reconciliations and receipts are full-replace: stored
rows whose id is absent from the batch are deleted, and an empty list clears
the collection. Completion notifications are queued only after commit.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.recon.core.config import settings
from app.recon.core.error_catalog import AppError, ErrorCatalog
from app.recon.core.errors import validation_error_details
from app.recon.core.logging import log_json
from app.recon.core.metrics import metrics
from app.recon.core.security import get_password_hash, is_password_hash, verify_api_key
from app.recon.db.models import (
    STATUS_COMPLETED,
    Accountant,
    Admin,
    BankReceipt,
    Branch,
    CashReceipt,
    Cashier,
    Reconciliation,
)
from app.recon.repos.admins import AdminRepository
from app.recon.repos.sync import SyncRepository
from app.recon.schemas.sync import (
    AdminRecord,
    BankReceiptRecord,
    CashReceiptRecord,
    ReconciliationRecord,
    SyncBatch,
)
from app.recon.services.notifications import Notification

logger = logging.getLogger("recon.sync")

DEFAULT_BANK_LABEL = "Bank operation"
SURPLUS_TOLERANCE = Decimal("0.01")
SYNC_ADVISORY_LOCK_KEY = 7_410_221

CASHIER_UPDATE_FIELDS = ("name", "branch_id", "active")
BRANCH_UPDATE_FIELDS = ("branch_name", "is_active")
ACCOUNTANT_UPDATE_FIELDS = ("name",)


class SyncGate:
    """Serializes sync writers within the process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, timeout: float):
        if not self._lock.acquire(timeout=max(0.0, timeout)):
            metrics.increment_lock_wait_timeout()
            raise AppError(ErrorCatalog.LOCK_TIMEOUT, details={"message": "another sync is in progress"})
        try:
            yield
        finally:
            self._lock.release()


sync_gate = SyncGate()


@dataclass
class CollectionResult:
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class CompletedReconciliation:
    id: int
    reconciliation_number: int | None
    cashier_id: int | None


@dataclass
class SyncReport:
    collections: dict[str, CollectionResult] = field(default_factory=dict)
    newly_completed: list[CompletedReconciliation] = field(default_factory=list)

    def as_log_payload(self) -> dict:
        return {
            name: {
                "inserted": result.inserted,
                "updated": result.updated,
                "deleted": result.deleted,
                "skipped": result.skipped,
            }
            for name, result in self.collections.items()
        }


def parse_batch(data) -> SyncBatch:
    if not isinstance(data, dict):
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "data must be an object"})
    try:
        return SyncBatch.model_validate(data)
    except ValidationError as exc:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details=validation_error_details(exc.errors())) from exc


def _dedupe(records, key=lambda record: record.id) -> dict:
    # Last occurrence wins, matching sequential upsert semantics.
    result = {}
    for record in records:
        result[key(record)] = record
    return result


def bank_receipt_label(record: BankReceiptRecord) -> str:
    return record.operation_type or record.bank_name or DEFAULT_BANK_LABEL


def cash_receipt_amount(record: CashReceiptRecord) -> Decimal:
    # First non-zero value wins; a zero total falls through to amount.
    return record.total_amount or record.amount or Decimal("0")


def cash_receipt_note(record: CashReceiptRecord) -> str | None:
    if record.note:
        return record.note
    if record.denomination:
        return f"Denomination: {record.denomination}"
    return None


def surplus_deficit(record: ReconciliationRecord) -> Decimal:
    computed = record.total_receipts - record.system_sales
    if record.surplus_deficit is not None and abs(record.surplus_deficit - computed) > SURPLUS_TOLERANCE:
        log_json(
            logger,
            {
                "event": "surplus_deficit_mismatch",
                "reconciliation_id": record.id,
                "client_value": record.surplus_deficit,
                "server_value": computed,
            },
            level=logging.WARNING,
        )
    return computed


def is_newly_completed(new_status: str, previous_status: str | None) -> bool:
    return new_status == STATUS_COMPLETED and previous_status != STATUS_COMPLETED


def build_completion_notification(
    completed: list[CompletedReconciliation], cashier_names: dict[int, str]
) -> Notification | None:
    if not completed:
        return None
    if len(completed) > 1:
        return Notification(
            title="Reconciliations completed",
            message=f"{len(completed)} new reconciliations were completed",
        )
    item = completed[0]
    number = item.reconciliation_number if item.reconciliation_number is not None else item.id
    name = cashier_names.get(item.cashier_id) if item.cashier_id is not None else None
    cashier_label = f"cashier {name}" if name else "a cashier"
    return Notification(
        title="Reconciliation completed",
        message=f"Reconciliation #{number} for {cashier_label} was completed",
    )


class SyncService:
    def __init__(self, db, notifier=None):
        self.db = db
        self.repo = SyncRepository(db)
        self.admins = AdminRepository(db)
        self.notifier = notifier

    def push(self, api_key: str | None, data, *, trace_id: str | None = None) -> SyncReport:
        if not verify_api_key(api_key):
            metrics.record_sync_push("unauthorized")
            raise AppError(ErrorCatalog.INVALID_API_KEY)
        try:
            batch = parse_batch(data)
        except AppError:
            metrics.record_sync_push("rejected")
            raise

        with sync_gate.hold(settings.SYNC_LOCK_TIMEOUT_SEC):
            report = self._run_in_transaction(lambda: self._apply(batch), metrics.record_sync_push)

        metrics.record_sync_push("success")
        for name, result in report.collections.items():
            metrics.record_sync_records(name, "upsert", result.inserted + result.updated)
            metrics.record_sync_records(name, "delete", result.deleted)
        log_json(
            logger,
            {
                "event": "sync_push",
                "trace_id": trace_id,
                "collections": report.as_log_payload(),
                "newly_completed": [item.id for item in report.newly_completed],
            },
        )
        self._notify(report.newly_completed)
        return report

    def reset(self, api_key: str | None, *, trace_id: str | None = None) -> dict[str, int]:
        if not verify_api_key(api_key):
            metrics.record_sync_reset("unauthorized")
            raise AppError(ErrorCatalog.INVALID_API_KEY)

        def _clear() -> dict[str, int]:
            return {
                "cash_receipts": self.repo.delete_all(CashReceipt),
                "bank_receipts": self.repo.delete_all(BankReceipt),
                "reconciliations": self.repo.delete_all(Reconciliation),
            }

        with sync_gate.hold(settings.SYNC_LOCK_TIMEOUT_SEC):
            deleted = self._run_in_transaction(_clear, metrics.record_sync_reset)
        metrics.record_sync_reset("success")
        log_json(logger, {"event": "sync_reset", "trace_id": trace_id, "deleted": deleted})
        return deleted

    def _run_in_transaction(self, work, record_outcome):
        try:
            self._prepare_transaction()
            result = work()
            self.db.commit()
        except AppError:
            self.db.rollback()
            record_outcome("rejected")
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            record_outcome("failed")
            logger.exception("Sync transaction rolled back")
            cause = getattr(exc, "orig", None) or exc
            raise AppError(ErrorCatalog.SYNC_FAILED, details={"message": str(cause)}) from exc
        except Exception:
            self.db.rollback()
            record_outcome("failed")
            logger.exception("Sync transaction rolled back")
            raise
        return result

    def _prepare_transaction(self) -> None:
        if self.db.get_bind().dialect.name != "postgresql":
            return
        # Cross-process serialization plus a bound on the read-then-write window.
        timeout_ms = int(settings.SYNC_STATEMENT_TIMEOUT_MS)
        self.db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
        self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": SYNC_ADVISORY_LOCK_KEY})

    def _apply(self, batch: SyncBatch) -> SyncReport:
        self._check_receipt_references(batch)
        report = SyncReport()
        if batch.admins is not None:
            report.collections["admins"] = self._sync_admins(batch.admins)
        if batch.cashiers is not None:
            rows = {
                record.id: {
                    "name": record.name,
                    "cashier_number": record.cashier_number,
                    "branch_id": record.branch_id,
                    "active": record.active,
                }
                for record in _dedupe(batch.cashiers).values()
            }
            report.collections["cashiers"] = self._upsert(Cashier, rows, CASHIER_UPDATE_FIELDS)
        if batch.branches is not None:
            rows = {
                record.id: {"branch_name": record.branch_name, "is_active": record.is_active}
                for record in _dedupe(batch.branches).values()
            }
            report.collections["branches"] = self._upsert(Branch, rows, BRANCH_UPDATE_FIELDS)
        if batch.accountants is not None:
            rows = {
                record.id: {"name": record.name, "username": record.username}
                for record in _dedupe(batch.accountants).values()
            }
            report.collections["accountants"] = self._upsert(Accountant, rows, ACCOUNTANT_UPDATE_FIELDS)
        if batch.reconciliations is not None:
            result, completed = self._sync_reconciliations(batch.reconciliations)
            report.collections["reconciliations"] = result
            report.newly_completed = completed
        if batch.bank_receipts is not None:
            rows = {
                record.id: {
                    "reconciliation_id": record.reconciliation_id,
                    "operation_type": bank_receipt_label(record),
                    "amount": record.amount,
                }
                for record in _dedupe(batch.bank_receipts).values()
            }
            report.collections["bank_receipts"] = self._replace(BankReceipt, rows)
        if batch.cash_receipts is not None:
            rows = {
                record.id: {
                    "reconciliation_id": record.reconciliation_id,
                    "amount": cash_receipt_amount(record),
                    "note": cash_receipt_note(record),
                }
                for record in _dedupe(batch.cash_receipts).values()
            }
            report.collections["cash_receipts"] = self._replace(CashReceipt, rows)
        return report

    def _check_receipt_references(self, batch: SyncBatch) -> None:
        referenced: dict[str, set[int]] = {}
        if batch.bank_receipts:
            referenced["bankReceipts"] = {record.reconciliation_id for record in batch.bank_receipts}
        if batch.cash_receipts:
            referenced["cashReceipts"] = {record.reconciliation_id for record in batch.cash_receipts}
        if not referenced:
            return
        wanted = set().union(*referenced.values())
        if batch.reconciliations is not None:
            available = {record.id for record in batch.reconciliations}
        else:
            available = self.repo.existing_ids(Reconciliation, wanted)
        missing = {name: sorted(ids - available) for name, ids in referenced.items() if ids - available}
        if missing:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={
                    "message": "receipts reference unknown reconciliations",
                    "reason_code": "RECONCILIATION_REFERENCE_MISSING",
                    "missing": missing,
                },
            )

    def _sync_admins(self, records: list[AdminRecord]) -> CollectionResult:
        result = CollectionResult()
        by_username = _dedupe(records, key=lambda record: record.username)
        known = self.admins.existing_usernames(list(by_username))
        for username, record in by_username.items():
            # Existing cloud accounts keep their credentials.
            if username in known:
                result.skipped += 1
                continue
            password = record.password if is_password_hash(record.password) else get_password_hash(record.password)
            self.admins.add(Admin(username=username, password=password, name=record.name))
            result.inserted += 1
        self.db.flush()
        return result

    def _upsert(self, model, rows: dict[int, dict], update_fields: tuple[str, ...] | None = None) -> CollectionResult:
        inserted, updated = self.repo.upsert(model, rows, update_fields)
        return CollectionResult(inserted=inserted, updated=updated)

    def _replace(self, model, rows: dict[int, dict]) -> CollectionResult:
        result = self._upsert(model, rows)
        result.deleted = self.repo.delete_except(model, set(rows))
        return result

    def _sync_reconciliations(
        self, records: list[ReconciliationRecord]
    ) -> tuple[CollectionResult, list[CompletedReconciliation]]:
        by_id = _dedupe(records)
        previous = self.repo.reconciliation_statuses(by_id.keys())
        completed = [
            CompletedReconciliation(
                id=record.id,
                reconciliation_number=record.reconciliation_number,
                cashier_id=record.cashier_id,
            )
            for record in by_id.values()
            if is_newly_completed(record.status, previous.get(record.id))
        ]
        rows = {
            record.id: {
                "reconciliation_number": record.reconciliation_number,
                "cashier_id": record.cashier_id,
                "accountant_id": record.accountant_id,
                "reconciliation_date": record.reconciliation_date,
                "system_sales": record.system_sales,
                "total_receipts": record.total_receipts,
                "surplus_deficit": surplus_deficit(record),
                "status": record.status,
                "notes": record.notes,
            }
            for record in by_id.values()
        }
        result = self._upsert(Reconciliation, rows)
        if rows:
            doomed = sorted(self.repo.all_ids(Reconciliation) - set(rows))
            self.repo.delete_receipts_for(doomed)
            result.deleted = self.repo.delete_ids(Reconciliation, doomed)
        else:
            self.repo.delete_all(CashReceipt)
            self.repo.delete_all(BankReceipt)
            result.deleted = self.repo.delete_all(Reconciliation)
        return result, completed

    def _cashier_names(self, cashier_ids: set[int]) -> dict[int, str]:
        try:
            return self.repo.cashier_names(cashier_ids)
        except SQLAlchemyError:
            self.db.rollback()
            logger.warning("Cashier lookup for notification failed", exc_info=True)
            return {}

    def _notify(self, completed: list[CompletedReconciliation]) -> None:
        if not completed or self.notifier is None:
            return
        names = {}
        if len(completed) == 1:
            names = self._cashier_names({item.cashier_id for item in completed if item.cashier_id is not None})
        notification = build_completion_notification(completed, names)
        if notification is not None:
            self.notifier.enqueue(notification)
