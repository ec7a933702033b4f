"""Fixed-deposit accrual scheduler.

`FixedDeposit.last_interest_date` is the *next* scheduled posting date: a
deposit is posted only on the day that equals it, and every estimate
posting moves it forward by ~90 days (snapping to maturity when the
remaining stub is short). The posting dated on `end_date` is final and
leaves the schedule where it is.

The snapshot insert and the schedule advance happen in one transaction,
and snapshots are keyed by (deposit_code, interest_date), so a retried run
never double-posts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from interest_accrual import models
from interest_accrual.services.entity_results import AccrualContext, EntityResult, PhaseResult, run_phase
from interest_accrual.services.interest_math import (
    next_interest_date,
    nominal_term_days,
    simple_interest,
    to_decimal,
)
from interest_accrual.services.rate_resolver import RateQuote

logger = logging.getLogger("interest_accrual.fixed_interest")


class ScheduleAdvanceConflict(RuntimeError):
    """The deposit's schedule moved underneath us; the snapshot is rolled back with it."""


@dataclass(frozen=True)
class FixedInterestPlan:
    as_of_date: date
    deposit_codes: list[str]


@dataclass(frozen=True)
class FixedInterestPosting:
    deposit_code: str
    interest_date: date
    interest_days: int
    interest_amount: Decimal
    is_estimate: bool
    next_interest_date: date | None
    inserted: bool


def is_due(deposit: models.FixedDeposit, as_of_date: date) -> bool:
    return deposit.scheduled_interest_date == as_of_date


def build_fixed_interest_plan(db: Session, *, as_of_date: date) -> FixedInterestPlan:
    rows = (
        db.query(models.FixedDeposit.deposit_code)
        .filter(models.FixedDeposit.status == models.FixedDepositStatus.active.value)
        .filter(models.FixedDeposit.early_release.is_(False))
        .order_by(models.FixedDeposit.id.asc())
        .all()
    )
    return FixedInterestPlan(as_of_date=as_of_date, deposit_codes=[str(r[0]) for r in rows])


def _advance_schedule(
    db: Session,
    *,
    deposit: models.FixedDeposit,
    scheduled: date,
    new_date: date,
) -> None:
    # Guarded UPDATE: only move the schedule if it still points at the date we just posted.
    rowcount = (
        db.query(models.FixedDeposit)
        .filter(models.FixedDeposit.id == int(deposit.id))
        .filter(
            or_(
                models.FixedDeposit.last_interest_date == scheduled,
                and_(
                    models.FixedDeposit.last_interest_date.is_(None),
                    models.FixedDeposit.start_date == scheduled,
                ),
            )
        )
        .update({"last_interest_date": new_date}, synchronize_session=False)
    )
    if not rowcount:
        raise ScheduleAdvanceConflict(
            f"Fixed deposit {deposit.deposit_code} is no longer scheduled for {scheduled.isoformat()}"
        )


def post_fixed_interest(
    db: Session,
    *,
    deposit: models.FixedDeposit,
    as_of_date: date,
    rate: RateQuote,
) -> FixedInterestPosting | None:
    """Post the scheduled snapshot for `deposit` if it is due on `as_of_date`.

    Returns None (and writes nothing) when the deposit is not due.
    """

    if not is_due(deposit, as_of_date):
        return None

    scheduled = deposit.scheduled_interest_date
    is_estimate = deposit.end_date != as_of_date
    days = nominal_term_days(deposit.term_months)
    principal = to_decimal(deposit.principal)
    amount = simple_interest(principal, rate.daily_rate, days)

    existing = (
        db.query(models.FixedInterestDetail)
        .filter(models.FixedInterestDetail.deposit_code == deposit.deposit_code)
        .filter(models.FixedInterestDetail.interest_date == as_of_date)
        .first()
    )
    inserted = existing is None
    if inserted:
        db.add(
            models.FixedInterestDetail(
                deposit_code=deposit.deposit_code,
                company_id=int(deposit.company_id),
                interest_date=as_of_date,
                current_balance=principal,
                current_rate=rate.annual_rate_pct,
                daily_rate=rate.daily_rate,
                term_months=int(deposit.term_months),
                interest_days=days,
                interest_amount=amount,
                is_estimate=is_estimate,
            )
        )
    else:
        amount = to_decimal(existing.interest_amount)

    nxt: date | None = None
    if is_estimate:
        nxt = next_interest_date(scheduled, deposit.end_date)
        _advance_schedule(db, deposit=deposit, scheduled=scheduled, new_date=nxt)

    db.flush()

    return FixedInterestPosting(
        deposit_code=deposit.deposit_code,
        interest_date=as_of_date,
        interest_days=days,
        interest_amount=amount,
        is_estimate=is_estimate,
        next_interest_date=nxt,
        inserted=inserted,
    )


def load_deposit(db: Session, deposit_code: str) -> models.FixedDeposit | None:
    return (
        db.query(models.FixedDeposit)
        .filter(models.FixedDeposit.deposit_code == str(deposit_code))
        .first()
    )


def _post_deposit(ctx: AccrualContext, deposit_code: str) -> EntityResult:
    deposit = load_deposit(ctx.db, deposit_code)
    if deposit is None:
        return EntityResult(entity_type="fixed_deposit", entity_id=str(deposit_code), outcome="skipped")

    posting = post_fixed_interest(ctx.db, deposit=deposit, as_of_date=ctx.as_of_date, rate=ctx.rate)
    if posting is None:
        logger.debug(
            "fixed_interest_not_due deposit_code=%s scheduled=%s",
            deposit.deposit_code,
            deposit.scheduled_interest_date.isoformat(),
        )
        return EntityResult(
            entity_type="fixed_deposit",
            entity_id=deposit.deposit_code,
            outcome="skipped",
            detail={"reason": "not_due"},
        )

    logger.info(
        "fixed_interest_%s deposit_code=%s principal=%s term_months=%s days=%s interest=%s estimate=%s next=%s",
        "posted" if posting.inserted else "already_posted",
        posting.deposit_code,
        deposit.principal,
        deposit.term_months,
        posting.interest_days,
        posting.interest_amount,
        posting.is_estimate,
        posting.next_interest_date.isoformat() if posting.next_interest_date else "-",
    )
    return EntityResult(
        entity_type="fixed_deposit",
        entity_id=posting.deposit_code,
        outcome="posted" if posting.inserted else "skipped",
        detail={
            "interest_amount": str(posting.interest_amount),
            "is_estimate": posting.is_estimate,
            "next_interest_date": posting.next_interest_date.isoformat()
            if posting.next_interest_date
            else None,
        },
    )


def execute_fixed_interest_phase(ctx: AccrualContext) -> PhaseResult:
    plan = build_fixed_interest_plan(ctx.db, as_of_date=ctx.as_of_date)
    logger.info(
        "fixed_interest_started date=%s deposits=%s annual_pct=%s",
        ctx.as_of_date.isoformat(),
        len(plan.deposit_codes),
        ctx.rate.annual_rate_pct,
    )
    return run_phase(
        ctx,
        phase="fixed_interest",
        entity_type="fixed_deposit",
        entity_ids=plan.deposit_codes,
        work=_post_deposit,
    )
