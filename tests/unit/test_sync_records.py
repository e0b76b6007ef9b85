from datetime import datetime
from decimal import Decimal

import pytest

from app.recon.core.error_catalog import AppError
from app.recon.core.security import get_password_hash, is_password_hash, verify_password
from app.recon.schemas.sync import BankReceiptRecord, CashReceiptRecord, ReconciliationRecord
from app.recon.services.sync import (
    CompletedReconciliation,
    bank_receipt_label,
    build_completion_notification,
    cash_receipt_amount,
    cash_receipt_note,
    is_newly_completed,
    parse_batch,
    surplus_deficit,
)


def test_reconciliation_date_forms():
    assert ReconciliationRecord(id=1, reconciliation_date="2024-05-01").reconciliation_date == datetime(2024, 5, 1)
    assert ReconciliationRecord(id=1, reconciliation_date="2024-05-01T10:30:00Z").reconciliation_date == datetime(
        2024, 5, 1, 10, 30
    )
    assert ReconciliationRecord(
        id=1, reconciliation_date="2024-05-01T12:00:00+02:00"
    ).reconciliation_date == datetime(2024, 5, 1, 10, 0)
    assert ReconciliationRecord(id=1, reconciliation_date="").reconciliation_date is None


def test_reconciliation_status_is_normalized():
    assert ReconciliationRecord(id=1, status=" Completed ").status == "completed"
    assert ReconciliationRecord(id=1, status=None).status == "draft"


def test_bank_receipt_label_fallbacks():
    assert bank_receipt_label(BankReceiptRecord(id=1, reconciliation_id=1, operation_type="POS")) == "POS"
    assert bank_receipt_label(BankReceiptRecord(id=1, reconciliation_id=1, bank_name="Alpha Bank")) == "Alpha Bank"
    assert bank_receipt_label(BankReceiptRecord(id=1, reconciliation_id=1, operation_type="")) == "Bank operation"


def test_cash_receipt_amount_and_note_fallbacks():
    both = CashReceiptRecord(id=1, reconciliation_id=1, total_amount="50", amount="5", denomination=10)
    assert cash_receipt_amount(both) == Decimal("50")
    assert cash_receipt_note(both) == "Denomination: 10"

    amount_only = CashReceiptRecord(id=2, reconciliation_id=1, amount="5.25", note="drawer")
    assert cash_receipt_amount(amount_only) == Decimal("5.25")
    assert cash_receipt_note(amount_only) == "drawer"

    empty = CashReceiptRecord(id=3, reconciliation_id=1)
    assert cash_receipt_amount(empty) == Decimal("0")
    assert cash_receipt_note(empty) is None


def test_surplus_deficit_is_recomputed(caplog):
    record = ReconciliationRecord(id=4, system_sales="100.00", total_receipts="92.50", surplus_deficit="3")
    with caplog.at_level("WARNING", logger="recon.sync"):
        assert surplus_deficit(record) == Decimal("-7.50")
    assert "surplus_deficit_mismatch" in caplog.text


def test_completion_transition():
    assert is_newly_completed("completed", None) is True
    assert is_newly_completed("completed", "draft") is True
    assert is_newly_completed("completed", "completed") is False
    assert is_newly_completed("draft", None) is False


def test_completion_notification_messages():
    single = [CompletedReconciliation(id=1, reconciliation_number=7, cashier_id=2)]
    assert build_completion_notification(single, {2: "Sara"}).message == (
        "Reconciliation #7 for cashier Sara was completed"
    )
    assert build_completion_notification(single, {}).message == "Reconciliation #7 for a cashier was completed"

    many = single + [CompletedReconciliation(id=2, reconciliation_number=8, cashier_id=3)]
    assert build_completion_notification(many, {}).message == "2 new reconciliations were completed"
    assert build_completion_notification([], {}) is None


def test_parse_batch_rejects_non_object():
    with pytest.raises(AppError) as excinfo:
        parse_batch(["not", "an", "object"])
    assert excinfo.value.error.code == "VALIDATION_ERROR"


def test_parse_batch_accepts_desktop_aliases():
    batch = parse_batch({"bankReceipts": [{"id": 1, "reconciliation_id": 2}], "cashReceipts": []})
    assert [record.id for record in batch.bank_receipts] == [1]
    assert batch.cash_receipts == []
    assert batch.reconciliations is None


def test_verify_password_handles_hashes_and_plaintext():
    hashed = get_password_hash("secret")
    assert is_password_hash(hashed)
    assert verify_password("secret", hashed) == (True, None)
    assert verify_password("nope", hashed)[0] is False

    ok, replacement = verify_password("secret", "secret")
    assert ok is True
    assert is_password_hash(replacement)
    assert verify_password("nope", "secret") == (False, None)
    assert verify_password("secret", None) == (False, None)


def test_zero_cash_total_falls_through_to_amount():
    record = CashReceiptRecord(id=1, reconciliation_id=1, total_amount="0", amount="12.50")
    assert cash_receipt_amount(record) == Decimal("12.50")

    record = CashReceiptRecord(id=2, reconciliation_id=1, total_amount="0.00")
    assert cash_receipt_amount(record) == Decimal("0")


def test_money_fields_are_bounded_and_rounded():
    from pydantic import ValidationError

    assert ReconciliationRecord(id=1, system_sales="12.345").system_sales == Decimal("12.35")
    with pytest.raises(ValidationError):
        ReconciliationRecord(id=1, total_receipts="1e30")
    with pytest.raises(ValidationError):
        BankReceiptRecord(id=1, reconciliation_id=1, amount="Infinity")
    with pytest.raises(ValidationError):
        CashReceiptRecord(id=2**31, reconciliation_id=1)


def test_unconfigured_api_key_rejects_everything(monkeypatch):
    from app.recon.core.config import Settings, settings
    from app.recon.core.security import verify_api_key

    assert Settings.model_fields["SYNC_API_KEY"].default == ""

    monkeypatch.setattr(settings, "SYNC_API_KEY", "")
    assert verify_api_key("") is False
    assert verify_api_key("change-me") is False
    assert verify_api_key(None) is False
