from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from interest_accrual.database import Base


class CurrentInterestDetail(Base):
    """One demand-interest posting per company per day; recomputed runs overwrite it."""

    __tablename__ = "current_interest_details"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "interest_date",
            name="uq_current_interest_details_company_date",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False, index=True)
    interest_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(18, 12), nullable=False)
    daily_interest: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=func.now(),
    )


class FixedInterestDetail(Base):
    """Append-only snapshot written each time a fixed deposit reaches its scheduled posting date."""

    __tablename__ = "fixed_interest_details"
    __table_args__ = (
        UniqueConstraint(
            "deposit_code",
            "interest_date",
            name="uq_fixed_interest_details_deposit_date",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deposit_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False, index=True)
    interest_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Annual rate in percent, as configured on the rate record.
    current_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(18, 12), nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)
    interest_days: Mapped[int] = mapped_column(Integer, nullable=False)
    interest_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    is_estimate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class EarlyReleaseInterestDetail(Base):
    """One-time settlement for a fixed deposit released before maturity."""

    __tablename__ = "early_release_interest_details"
    __table_args__ = (
        UniqueConstraint(
            "deposit_code",
            "interest_start_date",
            name="uq_early_release_interest_details_deposit_start",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deposit_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False, index=True)
    interest_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    interest_release_date: Mapped[date] = mapped_column(Date, nullable=False)

    release_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(18, 12), nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)
    interest_days: Mapped[int] = mapped_column(Integer, nullable=False)
    interest_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
