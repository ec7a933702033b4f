from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from interest_accrual import models
from interest_accrual.services.interest_math import daily_rate_from_annual_pct, to_decimal

logger = logging.getLogger("interest_accrual.rate_resolver")


class NoActiveRateError(RuntimeError):
    """No active demand-rate record exists; nothing can be accrued."""


@dataclass(frozen=True)
class RateQuote:
    rate_id: int
    rate_code: str
    annual_rate_pct: Decimal
    daily_rate: Decimal


def resolve_active_demand_rate(db: Session) -> RateQuote:
    rate = (
        db.query(models.InterestRate)
        .filter(models.InterestRate.rate_type == models.RateType.demand.value)
        .filter(models.InterestRate.status == models.RateStatus.active.value)
        .order_by(models.InterestRate.created_at.desc(), models.InterestRate.id.desc())
        .first()
    )
    if rate is None:
        raise NoActiveRateError("No active demand interest rate is configured")

    annual = to_decimal(rate.rate_value)
    quote = RateQuote(
        rate_id=int(rate.id),
        rate_code=str(rate.rate_code),
        annual_rate_pct=annual,
        daily_rate=daily_rate_from_annual_pct(annual),
    )
    logger.info(
        "demand_rate_resolved rate_id=%s rate_code=%s annual_pct=%s daily_rate=%s",
        quote.rate_id,
        quote.rate_code,
        quote.annual_rate_pct,
        quote.daily_rate,
    )
    return quote


def current_daily_rate(db: Session) -> Decimal:
    return resolve_active_demand_rate(db).daily_rate
