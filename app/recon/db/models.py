from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

MONEY = Numeric(15, 2)

STATUS_DRAFT = "draft"
STATUS_COMPLETED = "completed"


class Base(DeclarativeBase):
    pass


class Branch(Base):
    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    branch_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Cashier(Base):
    __tablename__ = "cashiers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cashier_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    branch_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Accountant(Base):
    __tablename__ = "accountants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    username: Mapped[str | None] = mapped_column(String(150), nullable=True)


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    sessions = relationship("AdminSession", back_populates="admin", cascade="all, delete-orphan")


class AdminSession(Base):
    __tablename__ = "admin_sessions"

    token_digest: Mapped[str] = mapped_column(String(64), primary_key=True)
    admin_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("admins.id", ondelete="CASCADE"), index=True, nullable=False
    )
    username: Mapped[str] = mapped_column(String(150), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)

    admin = relationship("Admin", back_populates="sessions")


class Reconciliation(Base):
    __tablename__ = "reconciliations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    reconciliation_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cashier_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    accountant_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    reconciliation_date: Mapped[datetime | None] = mapped_column(DateTime, index=True, nullable=True)
    system_sales: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)
    total_receipts: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)
    surplus_deficit: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_DRAFT, nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    bank_receipts = relationship("BankReceipt", back_populates="reconciliation", passive_deletes=True)
    cash_receipts = relationship("CashReceipt", back_populates="reconciliation", passive_deletes=True)


class BankReceipt(Base):
    __tablename__ = "bank_receipts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    reconciliation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reconciliations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    operation_type: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)

    reconciliation = relationship("Reconciliation", back_populates="bank_receipts")


class CashReceipt(Base):
    __tablename__ = "cash_receipts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    reconciliation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reconciliations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0.00"), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    reconciliation = relationship("Reconciliation", back_populates="cash_receipts")


Index("ix_reconciliations_date_id", Reconciliation.reconciliation_date, Reconciliation.id)
