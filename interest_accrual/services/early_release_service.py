from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from interest_accrual import models
from interest_accrual.services.entity_results import AccrualContext, EntityResult, PhaseResult, run_phase
from interest_accrual.services.fixed_interest_service import load_deposit
from interest_accrual.services.interest_math import actual_days_between, simple_interest, to_decimal
from interest_accrual.services.rate_resolver import RateQuote

logger = logging.getLogger("interest_accrual.early_release")


@dataclass(frozen=True)
class EarlyReleasePlan:
    as_of_date: date
    deposit_codes: list[str]


@dataclass(frozen=True)
class EarlyReleaseSettlement:
    deposit_code: str
    interest_start_date: date
    interest_release_date: date
    release_amount: Decimal
    interest_days: int
    interest_amount: Decimal


def build_early_release_plan(db: Session, *, as_of_date: date) -> EarlyReleasePlan:
    rows = (
        db.query(models.FixedDeposit.deposit_code)
        .filter(models.FixedDeposit.early_release.is_(True))
        .filter(models.FixedDeposit.release_date.is_not(None))
        .filter(models.FixedDeposit.release_date <= as_of_date)
        .filter(models.FixedDeposit.status == models.FixedDepositStatus.active.value)
        .order_by(models.FixedDeposit.id.asc())
        .all()
    )
    return EarlyReleasePlan(as_of_date=as_of_date, deposit_codes=[str(r[0]) for r in rows])


def settlement_exists(db: Session, *, deposit_code: str, interest_start_date: date) -> bool:
    return (
        db.query(models.EarlyReleaseInterestDetail.id)
        .filter(models.EarlyReleaseInterestDetail.deposit_code == deposit_code)
        .filter(models.EarlyReleaseInterestDetail.interest_start_date == interest_start_date)
        .first()
        is not None
    )


def settle_early_release(
    db: Session,
    *,
    deposit: models.FixedDeposit,
    as_of_date: date,
    rate: RateQuote,
) -> EarlyReleaseSettlement | None:
    """Write the one-time settlement for an early-released deposit.

    Returns None when a settlement for (deposit_code, start_date) already
    exists. Uses the rate active today for the whole holding period.
    """

    if settlement_exists(db, deposit_code=deposit.deposit_code, interest_start_date=deposit.start_date):
        return None

    release_date = deposit.release_date
    if release_date is None:
        raise ValueError(f"Fixed deposit {deposit.deposit_code} is released early without a release date")

    interest_days = actual_days_between(deposit.start_date, release_date)
    if interest_days < 0:
        raise ValueError(
            f"Fixed deposit {deposit.deposit_code} release date {release_date.isoformat()} "
            f"precedes start date {deposit.start_date.isoformat()}"
        )

    release_amount = to_decimal(deposit.release_amount)
    amount = simple_interest(release_amount, rate.daily_rate, interest_days)

    db.add(
        models.EarlyReleaseInterestDetail(
            deposit_code=deposit.deposit_code,
            company_id=int(deposit.company_id),
            interest_start_date=deposit.start_date,
            interest_release_date=release_date,
            release_amount=release_amount,
            daily_rate=rate.daily_rate,
            term_months=int(deposit.term_months),
            interest_days=interest_days,
            interest_amount=amount,
        )
    )
    # Closes the accrual obligation; committed together with the settlement row.
    deposit.last_interest_date = as_of_date
    db.flush()

    return EarlyReleaseSettlement(
        deposit_code=deposit.deposit_code,
        interest_start_date=deposit.start_date,
        interest_release_date=release_date,
        release_amount=release_amount,
        interest_days=interest_days,
        interest_amount=amount,
    )


def _settle_deposit(ctx: AccrualContext, deposit_code: str) -> EntityResult:
    deposit = load_deposit(ctx.db, deposit_code)
    if deposit is None:
        return EntityResult(entity_type="fixed_deposit", entity_id=str(deposit_code), outcome="skipped")

    settlement = settle_early_release(ctx.db, deposit=deposit, as_of_date=ctx.as_of_date, rate=ctx.rate)
    if settlement is None:
        logger.info("early_release_already_settled deposit_code=%s", deposit_code)
        return EntityResult(
            entity_type="fixed_deposit",
            entity_id=str(deposit_code),
            outcome="skipped",
            detail={"reason": "already_settled"},
        )

    logger.info(
        "early_release_settled deposit_code=%s release_amount=%s days=%s interest=%s",
        settlement.deposit_code,
        settlement.release_amount,
        settlement.interest_days,
        settlement.interest_amount,
    )
    return EntityResult(
        entity_type="fixed_deposit",
        entity_id=settlement.deposit_code,
        outcome="posted",
        detail={
            "interest_days": settlement.interest_days,
            "interest_amount": str(settlement.interest_amount),
        },
    )


def execute_early_release_phase(ctx: AccrualContext) -> PhaseResult:
    plan = build_early_release_plan(ctx.db, as_of_date=ctx.as_of_date)
    logger.info(
        "early_release_started date=%s deposits=%s",
        ctx.as_of_date.isoformat(),
        len(plan.deposit_codes),
    )
    return run_phase(
        ctx,
        phase="early_release",
        entity_type="fixed_deposit",
        entity_ids=plan.deposit_codes,
        work=_settle_deposit,
    )
