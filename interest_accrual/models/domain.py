# ruff: noqa: E501
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from interest_accrual.database import Base


class CompanyStatus(PyEnum):
    active = "active"
    disabled = "disabled"


class TransferType(PyEnum):
    up = "up"  # sub-account -> pool, credits the demand balance
    down = "down"  # pool -> sub-account


class ReceiveType(PyEnum):
    bank = "bank"
    bill = "bill"


class FixedDepositStatus(PyEnum):
    pending_confirmation = "pending_confirmation"
    active = "active"
    deleted = "deleted"


class RateType(PyEnum):
    demand = "demand"
    fixed = "fixed"
    loan = "loan"


class RateStatus(PyEnum):
    active = "active"
    expired = "expired"


def _enum_value(enum_cls: type[PyEnum], value, *, field: str, default: PyEnum | None = None) -> str:
    if value is None:
        if default is None:
            raise ValueError(f"{field} is required")
        return default.value
    if isinstance(value, enum_cls):
        value = value.value
    allowed = {e.value for e in enum_cls}
    if value not in allowed:
        raise ValueError(f"Invalid {field}: {value}")
    return value


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    company_name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent_company_id: Mapped[int | None] = mapped_column(ForeignKey("companies.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=CompanyStatus.active.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @validates("status")
    def _validate_status(self, _key, value):
        return _enum_value(CompanyStatus, value, field="company status", default=CompanyStatus.active)


class FundTransfer(Base):
    __tablename__ = "fund_transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transfer_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False, index=True)
    transfer_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    transfer_type: Mapped[str] = mapped_column(String(8), nullable=False)
    transfer_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    batch_no: Mapped[str | None] = mapped_column(String(50))
    remark: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @validates("transfer_type")
    def _validate_transfer_type(self, _key, value):
        return _enum_value(TransferType, value, field="transfer type")


class PaymentReceipt(Base):
    __tablename__ = "payment_receipts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False, index=True)
    receive_type: Mapped[str] = mapped_column(String(8), nullable=False)
    receive_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    bill_no: Mapped[str | None] = mapped_column(String(50))
    bill_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    # Amount actually credited to the account (after discount fees for bills).
    account_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    batch_no: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @validates("receive_type")
    def _validate_receive_type(self, _key, value):
        return _enum_value(ReceiveType, value, field="receive type")


class FixedDeposit(Base):
    __tablename__ = "fixed_deposits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deposit_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False, index=True)
    principal: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), default=FixedDepositStatus.pending_confirmation.value, index=True
    )
    early_release: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    release_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    remaining_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    # Next scheduled posting date (NOT the date of the previous posting). NULL reads as start_date.
    last_interest_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    batch_no: Mapped[str | None] = mapped_column(String(50))
    remark: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    company = relationship("Company", viewonly=True)

    @validates("status")
    def _validate_status(self, _key, value):
        return _enum_value(
            FixedDepositStatus,
            value,
            field="fixed deposit status",
            default=FixedDepositStatus.pending_confirmation,
        )

    @property
    def scheduled_interest_date(self) -> date:
        return self.last_interest_date or self.start_date

    def _validate_invariants(self) -> None:
        if self.end_date is not None and self.start_date is not None and self.end_date < self.start_date:
            raise ValueError("FixedDeposit.end_date must not precede start_date")
        if self.term_months is not None and int(self.term_months) <= 0:
            raise ValueError("FixedDeposit.term_months must be > 0")
        if self.early_release and self.release_date is None:
            raise ValueError("FixedDeposit.release_date is required when early_release is set")


@event.listens_for(FixedDeposit, "before_insert")
def _fixed_deposit_before_insert(_mapper, _connection, target: FixedDeposit):
    target._validate_invariants()


@event.listens_for(FixedDeposit, "before_update")
def _fixed_deposit_before_update(_mapper, _connection, target: FixedDeposit):
    target._validate_invariants()


class InterestRate(Base):
    __tablename__ = "interest_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rate_type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    rate_code: Mapped[str] = mapped_column(String(50), nullable=False)
    # Annual rate in percent, e.g. 1.8 for 1.8 %/year.
    rate_value: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=RateStatus.active.value, index=True)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="CNY")
    term_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    remark: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @validates("rate_type")
    def _validate_rate_type(self, _key, value):
        return _enum_value(RateType, value, field="rate type")

    @validates("status")
    def _validate_status(self, _key, value):
        return _enum_value(RateStatus, value, field="rate status", default=RateStatus.active)
