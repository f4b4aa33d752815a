"""
Single-slot trailing-edge scheduler.

CoalescingScheduler delays an async action by a quiet period. Scheduling
while a run is pending cancels the pending timer and starts a new one, so a
burst of N schedule() calls inside one window produces exactly one run.

Invariants:
    - At most one timer is pending at any moment
    - cancel() and schedule() only touch the timer; a run that already
      started is never cancelled
    - The action decides what to send when it runs, not when it was scheduled

How to change safely:
    - Runs are tracked so shutdown can drain them (wait_idle)
    - Exceptions from the action are logged, never propagated to the loop
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class CoalescingScheduler:
    """Debounce an async action on a single pending slot.

    Attributes:
        delay_seconds: Quiet period before the action runs
        name: Label used in log records

    Example:
        >>> scheduler = CoalescingScheduler(push, delay_seconds=2.0, name="push")
        >>> scheduler.schedule()
        >>> scheduler.schedule()  # replaces the first timer
    """

    def __init__(
        self,
        action: Callable[[], Awaitable[None]],
        delay_seconds: float,
        name: str = "coalesced",
    ) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self._action = action
        self.delay_seconds = delay_seconds
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None
        self._in_flight: Set[asyncio.Task] = set()
        self.run_count = 0

    @property
    def pending(self) -> bool:
        """True while a timer is waiting to fire."""
        return self._handle is not None

    @property
    def running(self) -> bool:
        """True while a started run has not finished."""
        return bool(self._in_flight)

    def schedule(self) -> None:
        """(Re)start the quiet period.

        Must be called from the event loop thread.
        """
        loop = asyncio.get_running_loop()
        replaced = self._handle is not None
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay_seconds, self._fire)
        logger.debug(
            "Scheduled coalesced run",
            extra={"scheduler": self.name, "delay_seconds": self.delay_seconds, "replaced": replaced},
        )

    def cancel(self) -> bool:
        """Drop the pending timer, if any.

        Returns:
            True if a pending run was cancelled
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        logger.debug("Cancelled pending run", extra={"scheduler": self.name})
        return True

    async def flush(self) -> None:
        """Run the pending action now instead of waiting for the timer."""
        if self.cancel():
            await self._run()

    async def wait_idle(self) -> None:
        """Wait until no run is in flight. Does not fire a pending timer."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.get_running_loop().create_task(self._run())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(self) -> None:
        self.run_count += 1
        try:
            await self._action()
        except Exception:
            logger.error(
                "Coalesced run failed",
                extra={"scheduler": self.name},
                exc_info=True,
            )
