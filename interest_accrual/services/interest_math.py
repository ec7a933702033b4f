"""Day-count conventions and money arithmetic shared by every posting phase.

All amounts are `Decimal`. Rates are carried at full precision and only the
resulting interest amounts are rounded (half-up, 2 places) before they are
written.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

BANKING_YEAR_DAYS = 360
NOMINAL_MONTH_DAYS = 30
FIXED_POSTING_INTERVAL_DAYS = 90
MATURITY_SNAP_DAYS = 15

_CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so floats coming back from SQLite keep their printed value.
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def daily_rate_from_annual_pct(annual_rate_pct) -> Decimal:
    """1.8 (%/year) -> 0.00005 per day on a 360-day banking year."""

    return to_decimal(annual_rate_pct) / Decimal(100) / Decimal(BANKING_YEAR_DAYS)


def simple_interest(principal, daily_rate: Decimal, days: int) -> Decimal:
    return quantize_money(to_decimal(principal) * to_decimal(daily_rate) * Decimal(int(days)))


def nominal_term_days(term_months: int) -> int:
    return int(term_months) * NOMINAL_MONTH_DAYS


def actual_days_between(start: date, end: date) -> int:
    return (end - start).days


def next_interest_date(last_interest_date: date, end_date: date) -> date:
    """Next fixed-deposit posting date after `last_interest_date`.

    A trailing stub of MATURITY_SNAP_DAYS or less is folded into a single
    final posting on the maturity date.
    """

    nxt = last_interest_date + timedelta(days=FIXED_POSTING_INTERVAL_DAYS)
    if (end_date - nxt).days <= MATURITY_SNAP_DAYS:
        return end_date
    return nxt
