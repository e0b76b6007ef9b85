"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2024-01-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("branch_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "cashiers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("cashier_number", sa.String(length=50), nullable=True),
        sa.Column("branch_id", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_cashiers_branch_id", "cashiers", ["branch_id"], unique=False)
    op.create_table(
        "accountants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("username", sa.String(length=150), nullable=True),
    )
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_admins_username", "admins", ["username"], unique=True)
    op.create_table(
        "admin_sessions",
        sa.Column("token_digest", sa.String(length=64), primary_key=True),
        sa.Column(
            "admin_id",
            sa.Integer(),
            sa.ForeignKey("admins.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_admin_sessions_admin_id", "admin_sessions", ["admin_id"], unique=False)
    op.create_index("ix_admin_sessions_expires_at", "admin_sessions", ["expires_at"], unique=False)
    op.create_table(
        "reconciliations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("reconciliation_number", sa.Integer(), nullable=True),
        sa.Column("cashier_id", sa.Integer(), nullable=True),
        sa.Column("accountant_id", sa.Integer(), nullable=True),
        sa.Column("reconciliation_date", sa.DateTime(), nullable=True),
        sa.Column("system_sales", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("total_receipts", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("surplus_deficit", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_reconciliations_cashier_id", "reconciliations", ["cashier_id"], unique=False)
    op.create_index("ix_reconciliations_accountant_id", "reconciliations", ["accountant_id"], unique=False)
    op.create_index(
        "ix_reconciliations_reconciliation_date", "reconciliations", ["reconciliation_date"], unique=False
    )
    op.create_index("ix_reconciliations_status", "reconciliations", ["status"], unique=False)
    op.create_index(
        "ix_reconciliations_date_id", "reconciliations", ["reconciliation_date", "id"], unique=False
    )
    op.create_table(
        "bank_receipts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column(
            "reconciliation_id",
            sa.Integer(),
            sa.ForeignKey("reconciliations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("operation_type", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
    )
    op.create_index("ix_bank_receipts_reconciliation_id", "bank_receipts", ["reconciliation_id"], unique=False)
    op.create_table(
        "cash_receipts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column(
            "reconciliation_id",
            sa.Integer(),
            sa.ForeignKey("reconciliations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("note", sa.Text(), nullable=True),
    )
    op.create_index("ix_cash_receipts_reconciliation_id", "cash_receipts", ["reconciliation_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_cash_receipts_reconciliation_id", table_name="cash_receipts")
    op.drop_table("cash_receipts")
    op.drop_index("ix_bank_receipts_reconciliation_id", table_name="bank_receipts")
    op.drop_table("bank_receipts")
    op.drop_index("ix_reconciliations_date_id", table_name="reconciliations")
    op.drop_index("ix_reconciliations_status", table_name="reconciliations")
    op.drop_index("ix_reconciliations_reconciliation_date", table_name="reconciliations")
    op.drop_index("ix_reconciliations_accountant_id", table_name="reconciliations")
    op.drop_index("ix_reconciliations_cashier_id", table_name="reconciliations")
    op.drop_table("reconciliations")
    op.drop_index("ix_admin_sessions_expires_at", table_name="admin_sessions")
    op.drop_index("ix_admin_sessions_admin_id", table_name="admin_sessions")
    op.drop_table("admin_sessions")
    op.drop_index("ix_admins_username", table_name="admins")
    op.drop_table("admins")
    op.drop_table("accountants")
    op.drop_index("ix_cashiers_branch_id", table_name="cashiers")
    op.drop_table("cashiers")
    op.drop_table("branches")
