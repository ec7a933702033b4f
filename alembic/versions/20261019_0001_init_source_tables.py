"""init source tables (companies, cash movements, fixed deposits, interest rates)

Revision ID: 20261019_0001_init_source_tables
Revises: None
Create Date: 2026-10-19
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001_init_source_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_code", sa.String(length=20), nullable=False),
        sa.Column("company_name", sa.String(length=100), nullable=False),
        sa.Column("parent_company_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["parent_company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_code"),
    )
    op.create_index("ix_companies_status", "companies", ["status"])

    op.create_table(
        "fund_transfers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transfer_code", sa.String(length=50), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("transfer_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("transfer_type", sa.String(length=8), nullable=False),
        sa.Column("transfer_date", sa.Date(), nullable=False),
        sa.Column("batch_no", sa.String(length=50), nullable=True),
        sa.Column("remark", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fund_transfers_transfer_code", "fund_transfers", ["transfer_code"])
    op.create_index("ix_fund_transfers_company_id", "fund_transfers", ["company_id"])
    op.create_index("ix_fund_transfers_transfer_date", "fund_transfers", ["transfer_date"])

    op.create_table(
        "payment_receipts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("receive_type", sa.String(length=8), nullable=False),
        sa.Column("receive_date", sa.Date(), nullable=False),
        sa.Column("bill_no", sa.String(length=50), nullable=True),
        sa.Column("bill_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("account_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("batch_no", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payment_receipts_company_id", "payment_receipts", ["company_id"])
    op.create_index("ix_payment_receipts_receive_date", "payment_receipts", ["receive_date"])

    op.create_table(
        "fixed_deposits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("deposit_code", sa.String(length=50), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("principal", sa.Numeric(18, 2), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("early_release", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("release_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("remaining_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("last_interest_date", sa.Date(), nullable=True),
        sa.Column("batch_no", sa.String(length=50), nullable=True),
        sa.Column("remark", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fixed_deposits_deposit_code", "fixed_deposits", ["deposit_code"], unique=True)
    op.create_index("ix_fixed_deposits_company_id", "fixed_deposits", ["company_id"])
    op.create_index("ix_fixed_deposits_status", "fixed_deposits", ["status"])
    op.create_index("ix_fixed_deposits_last_interest_date", "fixed_deposits", ["last_interest_date"])

    op.create_table(
        "interest_rates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("rate_type", sa.String(length=16), nullable=False),
        sa.Column("rate_code", sa.String(length=50), nullable=False),
        sa.Column("rate_value", sa.Numeric(10, 4), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=True),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="CNY"),
        sa.Column("term_months", sa.Integer(), nullable=True),
        sa.Column("remark", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_interest_rates_rate_type", "interest_rates", ["rate_type"])
    op.create_index("ix_interest_rates_status", "interest_rates", ["status"])


def downgrade() -> None:
    op.drop_index("ix_interest_rates_status", table_name="interest_rates")
    op.drop_index("ix_interest_rates_rate_type", table_name="interest_rates")
    op.drop_table("interest_rates")

    op.drop_index("ix_fixed_deposits_last_interest_date", table_name="fixed_deposits")
    op.drop_index("ix_fixed_deposits_status", table_name="fixed_deposits")
    op.drop_index("ix_fixed_deposits_company_id", table_name="fixed_deposits")
    op.drop_index("ix_fixed_deposits_deposit_code", table_name="fixed_deposits")
    op.drop_table("fixed_deposits")

    op.drop_index("ix_payment_receipts_receive_date", table_name="payment_receipts")
    op.drop_index("ix_payment_receipts_company_id", table_name="payment_receipts")
    op.drop_table("payment_receipts")

    op.drop_index("ix_fund_transfers_transfer_date", table_name="fund_transfers")
    op.drop_index("ix_fund_transfers_company_id", table_name="fund_transfers")
    op.drop_index("ix_fund_transfers_transfer_code", table_name="fund_transfers")
    op.drop_table("fund_transfers")

    op.drop_index("ix_companies_status", table_name="companies")
    op.drop_table("companies")
