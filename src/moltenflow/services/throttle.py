"""Post-transaction balance refresh throttling.

Not a queue: refreshes requested inside the window are dropped, and the
first request after the window triggers immediately.
"""

import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

REFRESH_THROTTLE_MS = 3000


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class RefreshThrottler:
    """Minimum interval between balance refreshes for one consumer.

    Holds the throttle state (last refresh timestamp). The timestamp is
    only written after a refresh has actually completed.
    """

    def __init__(
        self,
        interval_ms: int = REFRESH_THROTTLE_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.interval_ms = interval_ms
        self.clock = clock or monotonic_ms
        self.last_refresh: Optional[float] = None
        self._in_flight = False

    def should_refresh(self, now: Optional[float] = None) -> bool:
        """True when no refresh has completed within the last interval."""
        if now is None:
            now = self.clock()
        if self.last_refresh is None:
            return True
        return now - self.last_refresh >= self.interval_ms

    def mark_refreshed(self, now: Optional[float] = None) -> None:
        self.last_refresh = self.clock() if now is None else now

    async def run(
        self,
        refresh: Callable[[], Awaitable[object]],
        now: Optional[float] = None,
    ) -> bool:
        """Run `refresh` unless throttled or already running.

        Returns:
            True if the refresh ran, False if it was dropped

        Exceptions from `refresh` propagate and leave the state unmarked.
        """
        if self._in_flight or not self.should_refresh(now):
            logger.debug("Balance refresh throttled")
            return False

        self._in_flight = True
        try:
            await refresh()
        finally:
            self._in_flight = False

        self.mark_refreshed(now)
        return True
