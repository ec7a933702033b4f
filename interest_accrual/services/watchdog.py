from __future__ import annotations

import logging
import os
import threading
from typing import Callable

logger = logging.getLogger("interest_accrual.watchdog")

WATCHDOG_EXIT_CODE = 1


def _hard_exit() -> None:
    # Skips atexit handlers and finally blocks; the main thread may be stuck on I/O.
    os._exit(WATCHDOG_EXIT_CODE)


class RunWatchdog:
    """Kill the process if a run overruns its wall-clock budget.

    Keeps an unattended daily scheduler from stacking overlapping runs. Use as
    a context manager around the run; leaving the block disarms it.
    """

    def __init__(
        self,
        timeout_seconds: float,
        on_timeout: Callable[[], None] | None = None,
    ) -> None:
        self.timeout_seconds = float(timeout_seconds)
        self._on_timeout = on_timeout or _hard_exit
        self._timer: threading.Timer | None = None
        self.fired = threading.Event()

    def _fire(self) -> None:
        self.fired.set()
        logger.error("accrual_run_timeout timeout_seconds=%s", self.timeout_seconds)
        self._on_timeout()

    def start(self) -> None:
        if self._timer is not None:
            return
        self._timer = threading.Timer(self.timeout_seconds, self._fire)
        self._timer.name = "accrual-watchdog"
        self._timer.daemon = True
        self._timer.start()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __enter__(self) -> "RunWatchdog":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()
