from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterator, Literal

from sqlalchemy.orm import Session

from interest_accrual import models
from interest_accrual.services.entity_results import AccrualContext, EntityResult, PhaseResult, run_phase
from interest_accrual.services.interest_math import quantize_money, to_decimal

logger = logging.getLogger("interest_accrual.current_interest")

CashMovementSource = Literal["fund_transfer", "payment_receipt"]


@dataclass(frozen=True)
class CashMovement:
    source: CashMovementSource
    source_id: int
    company_id: int
    kind: str
    amount: Decimal
    effective_date: date


@dataclass(frozen=True)
class CurrentInterestPlan:
    as_of_date: date
    company_ids: list[int]


@dataclass(frozen=True)
class CurrentInterestPosting:
    detail: models.CurrentInterestDetail
    inserted: bool


def iter_qualifying_movements(db: Session, company_id: int, as_of_date: date) -> Iterator[CashMovement]:
    """All movements that credit the demand balance, from inception up to `as_of_date` inclusive.

    Only upward fund transfers and bank receipts qualify; downward transfers
    and bill receipts never touch the demand balance.
    """

    transfers = (
        db.query(models.FundTransfer)
        .filter(models.FundTransfer.company_id == int(company_id))
        .filter(models.FundTransfer.transfer_type == models.TransferType.up.value)
        .filter(models.FundTransfer.transfer_date <= as_of_date)
        .order_by(models.FundTransfer.transfer_date.asc(), models.FundTransfer.id.asc())
        .all()
    )
    for t in transfers:
        yield CashMovement(
            source="fund_transfer",
            source_id=int(t.id),
            company_id=int(t.company_id),
            kind=models.TransferType.up.value,
            amount=to_decimal(t.transfer_amount),
            effective_date=t.transfer_date,
        )

    receipts = (
        db.query(models.PaymentReceipt)
        .filter(models.PaymentReceipt.company_id == int(company_id))
        .filter(models.PaymentReceipt.receive_type == models.ReceiveType.bank.value)
        .filter(models.PaymentReceipt.receive_date <= as_of_date)
        .order_by(models.PaymentReceipt.receive_date.asc(), models.PaymentReceipt.id.asc())
        .all()
    )
    for p in receipts:
        yield CashMovement(
            source="payment_receipt",
            source_id=int(p.id),
            company_id=int(p.company_id),
            kind=models.ReceiveType.bank.value,
            amount=to_decimal(p.account_amount),
            effective_date=p.receive_date,
        )


def accumulate_current_balance(db: Session, company_id: int, as_of_date: date) -> Decimal:
    # Full recompute from inception, never an incremental delta.
    total = Decimal("0")
    for m in iter_qualifying_movements(db, company_id, as_of_date):
        total += m.amount
    return quantize_money(total)


def compute_daily_interest(balance: Decimal, daily_rate: Decimal) -> Decimal:
    return quantize_money(to_decimal(balance) * to_decimal(daily_rate))


def post_current_interest(
    db: Session,
    *,
    company_id: int,
    as_of_date: date,
    balance: Decimal,
    daily_rate: Decimal,
) -> CurrentInterestPosting:
    """Upsert the (company, date) posting. Reruns for the same date are last-write-wins."""

    daily_interest = compute_daily_interest(balance, daily_rate)

    existing = (
        db.query(models.CurrentInterestDetail)
        .filter(models.CurrentInterestDetail.company_id == int(company_id))
        .filter(models.CurrentInterestDetail.interest_date == as_of_date)
        .first()
    )
    if existing is not None:
        existing.current_balance = balance
        existing.daily_rate = daily_rate
        existing.daily_interest = daily_interest
        db.flush()
        return CurrentInterestPosting(detail=existing, inserted=False)

    detail = models.CurrentInterestDetail(
        company_id=int(company_id),
        interest_date=as_of_date,
        current_balance=balance,
        daily_rate=daily_rate,
        daily_interest=daily_interest,
    )
    db.add(detail)
    db.flush()
    return CurrentInterestPosting(detail=detail, inserted=True)


def build_current_interest_plan(db: Session, *, as_of_date: date) -> CurrentInterestPlan:
    rows = (
        db.query(models.Company.id)
        .filter(models.Company.status == models.CompanyStatus.active.value)
        .order_by(models.Company.id.asc())
        .all()
    )
    return CurrentInterestPlan(as_of_date=as_of_date, company_ids=[int(r[0]) for r in rows])


def _post_company(ctx: AccrualContext, company_id: int) -> EntityResult:
    balance = accumulate_current_balance(ctx.db, company_id, ctx.as_of_date)
    posting = post_current_interest(
        ctx.db,
        company_id=company_id,
        as_of_date=ctx.as_of_date,
        balance=balance,
        daily_rate=ctx.rate.daily_rate,
    )
    interest = to_decimal(posting.detail.daily_interest)
    logger.info(
        "current_interest_%s company_id=%s date=%s balance=%s daily_rate=%s interest=%s",
        "inserted" if posting.inserted else "updated",
        company_id,
        ctx.as_of_date.isoformat(),
        balance,
        ctx.rate.daily_rate,
        interest,
    )
    return EntityResult(
        entity_type="company",
        entity_id=str(company_id),
        outcome="posted" if posting.inserted else "updated",
        detail={"balance": str(balance), "daily_interest": str(interest)},
    )


def execute_current_interest_phase(ctx: AccrualContext) -> PhaseResult:
    plan = build_current_interest_plan(ctx.db, as_of_date=ctx.as_of_date)
    logger.info(
        "current_interest_started date=%s companies=%s",
        ctx.as_of_date.isoformat(),
        len(plan.company_ids),
    )
    return run_phase(
        ctx,
        phase="current_interest",
        entity_type="company",
        entity_ids=plan.company_ids,
        work=_post_company,
    )
