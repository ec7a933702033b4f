from interest_accrual.services.accrual_run import (
    ORDERED_PHASES,
    AccrualRunResult,
    execute_interest_accrual_run,
)
from interest_accrual.services.rate_resolver import (
    NoActiveRateError,
    RateQuote,
    current_daily_rate,
    resolve_active_demand_rate,
)

__all__ = [
    "ORDERED_PHASES",
    "AccrualRunResult",
    "NoActiveRateError",
    "RateQuote",
    "current_daily_rate",
    "execute_interest_accrual_run",
    "resolve_active_demand_rate",
]
