from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ReportRow(BaseModel):
    id: int
    reconciliation_number: int | None
    cashier_id: int | None
    accountant_id: int | None
    reconciliation_date: datetime | None
    system_sales: Decimal
    total_receipts: Decimal
    surplus_deficit: Decimal
    status: str
    notes: str | None
    cashier_name: str | None
    cashier_number: str | None
    accountant_name: str | None
    branch_name: str | None


class BankReceiptRow(BaseModel):
    id: int
    reconciliation_id: int
    operation_type: str
    amount: Decimal


class CashReceiptRow(BaseModel):
    id: int
    reconciliation_id: int
    amount: Decimal
    note: str | None


class ReportDetail(ReportRow):
    model_config = ConfigDict(populate_by_name=True)

    bank_receipts: list[BankReceiptRow] = Field(default_factory=list, alias="bankReceipts")
    cash_receipts: list[CashReceiptRow] = Field(default_factory=list, alias="cashReceipts")


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_reconciliations: int = Field(alias="totalReconciliations")
    total_receipts: Decimal = Field(alias="totalReceipts")
    total_sales: Decimal = Field(alias="totalSales")
    total_cash: Decimal = Field(alias="totalCash")


class BranchOption(BaseModel):
    id: int
    branch_name: str | None


class CashierOption(BaseModel):
    id: int
    name: str | None
    cashier_number: str | None


class MetadataResponse(BaseModel):
    branches: list[BranchOption]
    cashiers: list[CashierOption]
