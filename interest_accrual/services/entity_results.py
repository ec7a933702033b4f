from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Iterator, Literal

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from interest_accrual.services.rate_resolver import RateQuote

logger = logging.getLogger("interest_accrual.entities")

EntityOutcome = Literal["posted", "updated", "skipped", "failed"]


@dataclass(frozen=True)
class AccrualContext:
    """Everything a posting phase needs for one run; passed explicitly to each phase."""

    db: Session
    as_of_date: date
    rate: RateQuote
    dry_run: bool = False


@dataclass(frozen=True)
class EntityResult:
    entity_type: str
    entity_id: str
    outcome: EntityOutcome
    detail: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@dataclass
class PhaseResult:
    phase: str
    results: list[EntityResult] = field(default_factory=list)

    def count(self, outcome: EntityOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def failed_ids(self) -> list[str]:
        return [r.entity_id for r in self.results if r.outcome == "failed"]

    def summary(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "processed": len(self.results),
            "posted": self.count("posted"),
            "updated": self.count("updated"),
            "skipped": self.count("skipped"),
            "failed": self.count("failed"),
            "failed_ids": self.failed_ids,
        }


EntityWork = Callable[[AccrualContext, Any], EntityResult]


def iter_entity_results(
    ctx: AccrualContext,
    *,
    entity_type: str,
    entity_ids: Iterable[Any],
    work: EntityWork,
) -> Iterator[EntityResult]:
    """Run `work` once per entity, each inside its own transaction.

    Success commits (or rolls back in dry-run mode); any failure rolls back
    only that entity and is yielded as a `failed` result so the batch can go
    on. Losing the database connection is not an entity problem and is
    re-raised.
    """

    db = ctx.db
    for entity_id in entity_ids:
        try:
            result = work(ctx, entity_id)
            if ctx.dry_run:
                db.rollback()
            else:
                db.commit()
        except OperationalError:
            db.rollback()
            raise
        except Exception as exc:  # noqa: BLE001
            db.rollback()
            logger.exception(
                "entity_failed entity_type=%s entity_id=%s error=%s",
                entity_type,
                entity_id,
                exc,
            )
            result = EntityResult(
                entity_type=entity_type,
                entity_id=str(entity_id),
                outcome="failed",
                error=f"{type(exc).__name__}: {exc}",
            )
        yield result


def run_phase(
    ctx: AccrualContext,
    *,
    phase: str,
    entity_type: str,
    entity_ids: Iterable[Any],
    work: EntityWork,
) -> PhaseResult:
    res = PhaseResult(phase=phase)
    for r in iter_entity_results(ctx, entity_type=entity_type, entity_ids=entity_ids, work=work):
        res.results.append(r)
    logger.info(
        "phase_done phase=%s processed=%s posted=%s updated=%s skipped=%s failed=%s",
        phase,
        len(res.results),
        res.count("posted"),
        res.count("updated"),
        res.count("skipped"),
        res.count("failed"),
    )
    return res
