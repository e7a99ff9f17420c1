"""Deadline-based timeout warning for wrapped handlers.

The warning is purely diagnostic: it reports that a handler is running
long, it never interrupts the handler.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from .invocation import remaining_time_ms

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


def daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class TimeoutWarning:
    """Fires a callback if a handler is still running near its deadline.

    When the Lambda context reports more remaining time than the limit,
    the warning fires ``limit_ms`` before the invocation deadline.
    Otherwise it fires once ``limit_ms`` have elapsed.
    """

    def __init__(
        self,
        on_timeout: Callable[[float], None],
        limit_ms: int,
        context: Any = None,
        timer_factory: TimerFactory = daemon_timer,
    ):
        """Initialize an unarmed warning.

        Args:
            on_timeout: Called from the timer thread with the elapsed
                milliseconds since arming.
            limit_ms: Warning threshold in milliseconds.
            context: Lambda context object (optional).
            timer_factory: Builds a startable, cancellable timer.
        """
        self.on_timeout = on_timeout
        self.limit_ms = limit_ms
        self.context = context
        self._timer_factory = timer_factory
        self._timer: Any = None
        self._started_at: float | None = None
        self.fired = False

    def delay_seconds(self) -> float:
        """Seconds from arming until the warning fires."""
        remaining = remaining_time_ms(self.context)
        if remaining is not None and remaining > self.limit_ms:
            return (remaining - self.limit_ms) / 1000.0
        return self.limit_ms / 1000.0

    def arm(self) -> None:
        if self._timer is not None:
            return
        self._started_at = time.monotonic()
        self._timer = self._timer_factory(self.delay_seconds(), self._fire)
        self._timer.start()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _fire(self) -> None:
        self.fired = True
        started_at = self._started_at if self._started_at is not None else time.monotonic()
        elapsed_ms = (time.monotonic() - started_at) * 1000.0
        try:
            self.on_timeout(elapsed_ms)
        except Exception as e:
            logger.error(f"Error reporting timeout warning: {e}", exc_info=True)
