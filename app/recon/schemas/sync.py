from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

# Ids are stored in INTEGER columns (32-bit on PostgreSQL).
MAX_RECORD_ID = 2_147_483_647
# Keeps amounts and their differences inside NUMERIC(15, 2).
MONEY_LIMIT = Decimal("1000000000000")
CENT = Decimal("0.01")


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _money(value: Decimal) -> Decimal:
    if not value.is_finite():
        raise ValueError("amount must be a finite number")
    if abs(value) >= MONEY_LIMIT:
        raise ValueError(f"amount must be below {MONEY_LIMIT} in absolute value")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


RecordId = Annotated[int, Field(ge=1, le=MAX_RECORD_ID)]
RecordNumber = Annotated[int, Field(ge=0, le=MAX_RECORD_ID)]
Money = Annotated[Decimal, AfterValidator(_money)]


class SyncRecord(BaseModel):
    # Desktop rows carry extra local columns (created_at, synced flags, ...).
    model_config = ConfigDict(extra="ignore")


class AdminRecord(SyncRecord):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: str | None = None


class CashierRecord(SyncRecord):
    id: RecordId
    name: str | None = None
    cashier_number: str | None = None
    branch_id: RecordId | None = None
    active: bool = True

    @field_validator("cashier_number", mode="before")
    @classmethod
    def _number_as_text(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)

    @field_validator("branch_id", mode="before")
    @classmethod
    def _branch_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("active", mode="before")
    @classmethod
    def _active_default(cls, value):
        return True if value is None else value


class BranchRecord(SyncRecord):
    id: RecordId
    branch_name: str | None = None
    is_active: bool = True

    @field_validator("is_active", mode="before")
    @classmethod
    def _active_default(cls, value):
        return True if value is None else value


class AccountantRecord(SyncRecord):
    id: RecordId
    name: str | None = None
    username: str | None = None


class ReconciliationRecord(SyncRecord):
    id: RecordId
    reconciliation_number: RecordNumber | None = None
    cashier_id: RecordId | None = None
    accountant_id: RecordId | None = None
    reconciliation_date: datetime | None = None
    system_sales: Money = Decimal("0")
    total_receipts: Money = Decimal("0")
    surplus_deficit: Money | None = None
    status: Literal["draft", "completed"] = "draft"
    notes: str | None = None

    @field_validator("reconciliation_number", "cashier_id", "accountant_id", mode="before")
    @classmethod
    def _ids_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("system_sales", "total_receipts", mode="before")
    @classmethod
    def _amount_default(cls, value):
        value = _blank_to_none(value)
        return Decimal("0") if value is None else value

    @field_validator("surplus_deficit", mode="before")
    @classmethod
    def _surplus_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status_normalized(cls, value):
        if value is None:
            return "draft"
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("reconciliation_date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        value = _blank_to_none(value)
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if isinstance(value, str):
            normalized = value.strip().replace("Z", "+00:00")
            try:
                parsed = datetime.fromisoformat(normalized)
            except ValueError as exc:
                raise ValueError("reconciliation_date must be an ISO date or datetime") from exc
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed
        return value


class BankReceiptRecord(SyncRecord):
    id: RecordId
    reconciliation_id: RecordId
    operation_type: str | None = None
    bank_name: str | None = None
    amount: Money = Decimal("0")

    @field_validator("operation_type", "bank_name", mode="before")
    @classmethod
    def _label_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_default(cls, value):
        value = _blank_to_none(value)
        return Decimal("0") if value is None else value


class CashReceiptRecord(SyncRecord):
    id: RecordId
    reconciliation_id: RecordId
    total_amount: Money | None = None
    amount: Money | None = None
    note: str | None = None
    denomination: str | None = None

    @field_validator("total_amount", "amount", "note", mode="before")
    @classmethod
    def _blank(cls, value):
        return _blank_to_none(value)

    @field_validator("denomination", mode="before")
    @classmethod
    def _denomination_text(cls, value):
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)


class SyncBatch(BaseModel):
    """Per-collection opt-in: ``None`` leaves a collection untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    admins: list[AdminRecord] | None = None
    cashiers: list[CashierRecord] | None = None
    branches: list[BranchRecord] | None = None
    accountants: list[AccountantRecord] | None = None
    reconciliations: list[ReconciliationRecord] | None = None
    bank_receipts: list[BankReceiptRecord] | None = Field(None, alias="bankReceipts")
    cash_receipts: list[CashReceiptRecord] | None = Field(None, alias="cashReceipts")


class SyncPushRequest(BaseModel):
    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "apiKey": "<sync-api-key>",
                "data": {
                    "reconciliations": [
                        {
                            "id": 1,
                            "reconciliation_number": 7,
                            "cashier_id": 2,
                            "accountant_id": 1,
                            "reconciliation_date": "2024-05-01",
                            "system_sales": 1000,
                            "total_receipts": 990,
                            "status": "completed",
                        }
                    ],
                    "cashReceipts": [{"id": 10, "reconciliation_id": 1, "amount": 990}],
                },
            }
        },
    }

    api_key: str | None = Field(None, alias="apiKey")
    data: dict | None = None


class ResetDataRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(None, alias="apiKey")


class SyncResponse(BaseModel):
    success: bool = True
    message: str
    trace_id: str | None = None
