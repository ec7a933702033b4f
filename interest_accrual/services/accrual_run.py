from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Literal

from sqlalchemy.orm import Session

from interest_accrual.services.current_interest_service import execute_current_interest_phase
from interest_accrual.services.early_release_service import execute_early_release_phase
from interest_accrual.services.entity_results import AccrualContext, PhaseResult
from interest_accrual.services.fixed_interest_service import execute_fixed_interest_phase
from interest_accrual.services.rate_resolver import RateQuote, resolve_active_demand_rate

logger = logging.getLogger("interest_accrual.run")

AccrualPhaseName = Literal["current_interest", "early_release", "fixed_interest"]

ORDERED_PHASES: list[AccrualPhaseName] = [
    "current_interest",
    "early_release",
    "fixed_interest",
]

PhaseImpl = Callable[[AccrualContext], PhaseResult]

_DEFAULT_PHASE_IMPLS: dict[str, PhaseImpl] = {
    "current_interest": execute_current_interest_phase,
    "early_release": execute_early_release_phase,
    "fixed_interest": execute_fixed_interest_phase,
}


@dataclass
class AccrualRunResult:
    as_of_date: date
    dry_run: bool
    rate: RateQuote
    phases: list[PhaseResult] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return sum(p.count("failed") for p in self.phases)

    @property
    def failed_entities(self) -> dict[str, list[str]]:
        return {p.phase: p.failed_ids for p in self.phases if p.failed_ids}

    @property
    def ok(self) -> bool:
        return self.failed_count == 0

    def summary(self) -> dict[str, Any]:
        return {
            "as_of_date": self.as_of_date.isoformat(),
            "dry_run": self.dry_run,
            "rate": {
                "rate_id": self.rate.rate_id,
                "rate_code": self.rate.rate_code,
                "annual_rate_pct": str(self.rate.annual_rate_pct),
                "daily_rate": str(self.rate.daily_rate),
            },
            "phases": [p.summary() for p in self.phases],
            "failed_count": self.failed_count,
        }


def execute_interest_accrual_run(
    db: Session,
    *,
    as_of_date: date,
    dry_run: bool = False,
    phase_impls: dict[str, PhaseImpl] | None = None,
) -> AccrualRunResult:
    """Run every posting phase for `as_of_date`, in order.

    The demand rate is resolved once up front; `NoActiveRateError` escapes
    before anything is written. Per-entity failures are collected in the
    result, database connectivity errors propagate.
    """

    rate = resolve_active_demand_rate(db)
    ctx = AccrualContext(db=db, as_of_date=as_of_date, rate=rate, dry_run=dry_run)
    result = AccrualRunResult(as_of_date=as_of_date, dry_run=dry_run, rate=rate)

    impls = dict(_DEFAULT_PHASE_IMPLS)
    impls.update(phase_impls or {})

    logger.info(
        "accrual_run_started date=%s dry_run=%s daily_rate=%s",
        as_of_date.isoformat(),
        dry_run,
        rate.daily_rate,
    )
    for phase in ORDERED_PHASES:
        result.phases.append(impls[phase](ctx))

    if result.ok:
        logger.info("accrual_run_done date=%s", as_of_date.isoformat())
    else:
        logger.warning(
            "accrual_run_done_with_failures date=%s failed=%s entities=%s",
            as_of_date.isoformat(),
            result.failed_count,
            result.failed_entities,
        )
    return result
