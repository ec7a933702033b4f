"""add interest posting tables (current, fixed, early release)

Revision ID: 20261019_0002_add_interest_details
Revises: 20261019_0001_init_source_tables
Create Date: 2026-10-19
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0002_add_interest_details"
down_revision = "20261019_0001_init_source_tables"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "current_interest_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("interest_date", sa.Date(), nullable=False),
        sa.Column("current_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("daily_rate", sa.Numeric(18, 12), nullable=False),
        sa.Column("daily_interest", sa.Numeric(18, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "company_id",
            "interest_date",
            name="uq_current_interest_details_company_date",
        ),
    )
    op.create_index("ix_current_interest_details_company_id", "current_interest_details", ["company_id"])
    op.create_index(
        "ix_current_interest_details_interest_date", "current_interest_details", ["interest_date"]
    )

    op.create_table(
        "fixed_interest_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("deposit_code", sa.String(length=50), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("interest_date", sa.Date(), nullable=False),
        sa.Column("current_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("current_rate", sa.Numeric(10, 4), nullable=False),
        sa.Column("daily_rate", sa.Numeric(18, 12), nullable=False),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column("interest_days", sa.Integer(), nullable=False),
        sa.Column("interest_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("is_estimate", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "deposit_code",
            "interest_date",
            name="uq_fixed_interest_details_deposit_date",
        ),
    )
    op.create_index("ix_fixed_interest_details_deposit_code", "fixed_interest_details", ["deposit_code"])
    op.create_index("ix_fixed_interest_details_company_id", "fixed_interest_details", ["company_id"])
    op.create_index("ix_fixed_interest_details_interest_date", "fixed_interest_details", ["interest_date"])

    op.create_table(
        "early_release_interest_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("deposit_code", sa.String(length=50), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("interest_start_date", sa.Date(), nullable=False),
        sa.Column("interest_release_date", sa.Date(), nullable=False),
        sa.Column("release_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("daily_rate", sa.Numeric(18, 12), nullable=False),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column("interest_days", sa.Integer(), nullable=False),
        sa.Column("interest_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "deposit_code",
            "interest_start_date",
            name="uq_early_release_interest_details_deposit_start",
        ),
    )
    op.create_index(
        "ix_early_release_interest_details_deposit_code",
        "early_release_interest_details",
        ["deposit_code"],
    )
    op.create_index(
        "ix_early_release_interest_details_company_id",
        "early_release_interest_details",
        ["company_id"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_early_release_interest_details_company_id", table_name="early_release_interest_details"
    )
    op.drop_index(
        "ix_early_release_interest_details_deposit_code", table_name="early_release_interest_details"
    )
    op.drop_table("early_release_interest_details")

    op.drop_index("ix_fixed_interest_details_interest_date", table_name="fixed_interest_details")
    op.drop_index("ix_fixed_interest_details_company_id", table_name="fixed_interest_details")
    op.drop_index("ix_fixed_interest_details_deposit_code", table_name="fixed_interest_details")
    op.drop_table("fixed_interest_details")

    op.drop_index("ix_current_interest_details_interest_date", table_name="current_interest_details")
    op.drop_index("ix_current_interest_details_company_id", table_name="current_interest_details")
    op.drop_table("current_interest_details")
