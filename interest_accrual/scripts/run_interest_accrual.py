from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from typing import Callable

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from interest_accrual.config import settings
from interest_accrual.database import SessionLocal
from interest_accrual.services.accrual_run import execute_interest_accrual_run
from interest_accrual.services.rate_resolver import NoActiveRateError
from interest_accrual.services.watchdog import RunWatchdog

logger = logging.getLogger("interest_accrual")

EXIT_OK = 0
EXIT_FAILED = 1


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Invalid date, expected YYYY-MM-DD") from exc


def _parse_timeout(value: str) -> float:
    try:
        v = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--timeout-seconds must be a number") from exc
    if v <= 0:
        raise argparse.ArgumentTypeError("--timeout-seconds must be positive")
    return v


def run_accrual_job(
    *,
    as_of_date: date,
    dry_run: bool = False,
    session_factory: Callable[[], Session] = SessionLocal,
    fail_on_entity_errors: bool | None = None,
) -> int:
    """Run one accrual pass and map the outcome onto a process exit code."""

    if fail_on_entity_errors is None:
        fail_on_entity_errors = bool(settings.fail_on_entity_errors)

    db = session_factory()
    try:
        result = execute_interest_accrual_run(db, as_of_date=as_of_date, dry_run=dry_run)
    except NoActiveRateError as exc:
        logger.error("accrual_run_aborted reason=no_active_rate error=%s", exc)
        return EXIT_FAILED
    except OperationalError as exc:
        logger.error("accrual_run_aborted reason=store_unreachable error=%s", exc)
        return EXIT_FAILED
    except Exception as exc:  # noqa: BLE001
        logger.exception("accrual_run_failed error=%s", exc)
        return EXIT_FAILED
    finally:
        db.close()

    print(json.dumps(result.summary(), ensure_ascii=False, indent=2, default=str))

    if result.failed_count and fail_on_entity_errors:
        logger.error(
            "accrual_run_exit_failed failed=%s entities=%s",
            result.failed_count,
            result.failed_entities,
        )
        return EXIT_FAILED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Daily interest accrual: current interest, early-release settlements, fixed-deposit postings."
    )
    parser.add_argument("--as-of", type=_parse_iso_date, default=None, help="Defaults to today")
    parser.add_argument("--dry-run", action="store_true", help="Compute and log, write nothing")
    parser.add_argument(
        "--timeout-seconds",
        type=_parse_timeout,
        default=settings.watchdog_timeout_seconds,
        help="Hard wall-clock limit for the whole run",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    as_of_date: date = args.as_of or date.today()

    with RunWatchdog(args.timeout_seconds):
        return run_accrual_job(as_of_date=as_of_date, dry_run=bool(args.dry_run))


if __name__ == "__main__":
    raise SystemExit(main())
