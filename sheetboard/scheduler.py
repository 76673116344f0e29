"""Periodic re-acquisition driver.

Runs the refresh callable once on start and then every ``interval`` seconds on
the running asyncio loop. A tick is skipped while the policy forbids refresh,
while ``is_paused()`` is true (an edit session is open), or while the previous
refresh is still in flight. ``teardown()`` cancels the recurring timer for
good; nothing can restart it afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sheetboard.models import RefreshPolicy

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 15.0


class RefreshScheduler:
    """Owns the recurring refresh timer and the in-flight refresh task."""

    def __init__(
        self,
        refresh: Callable[[], Awaitable[None]],
        policy: RefreshPolicy,
        *,
        interval: float = DEFAULT_INTERVAL,
        is_paused: Optional[Callable[[], bool]] = None,
    ) -> None:
        self._refresh = refresh
        self._policy = policy
        self.interval = interval
        self._is_paused = is_paused or (lambda: False)
        self._timer_task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._torn_down = False
        self.ticks_run = 0
        self.ticks_skipped = 0

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def should_tick(self) -> bool:
        return (
            not self._torn_down
            and self._policy.refresh_allowed
            and not self._is_paused()
        )

    def start(self) -> None:
        """Refresh now and every ``interval`` seconds. Must be called inside a running loop."""
        if self._torn_down:
            logger.info("Refresh scheduler was torn down; not starting")
            return
        if self.running:
            return
        logger.info("Starting refresh every %.1fs", self.interval)
        self._timer_task = asyncio.create_task(self._run())

    async def tick(self) -> bool:
        """Run one refresh now if allowed; return whether it ran."""
        if not self.should_tick():
            self.ticks_skipped += 1
            return False
        await self._guarded_refresh()
        return True

    def stop(self) -> None:
        """Cancel the recurring timer and any in-flight refresh (process shutdown)."""
        self._cancel_timer()
        if self.in_flight:
            self._in_flight.cancel()
        self._in_flight = None

    def teardown(self) -> None:
        """Stop the recurring timer permanently.

        An in-flight request is left to finish; its result is dropped by the
        caller since refresh is no longer allowed.
        """
        if not self._torn_down:
            logger.info("Refresh scheduler torn down permanently")
        self._torn_down = True
        self._cancel_timer()

    async def wait_idle(self) -> None:
        """Wait for the in-flight refresh, if any, to finish."""
        if self._in_flight is not None:
            await asyncio.gather(self._in_flight, return_exceptions=True)

    async def _run(self) -> None:
        self._launch()
        while not self._torn_down:
            await asyncio.sleep(self.interval)
            if self._torn_down:
                break
            self._launch()

    def _launch(self) -> None:
        if not self.should_tick():
            self.ticks_skipped += 1
            logger.debug("Refresh tick skipped (paused or disabled)")
            return
        if self.in_flight:
            self.ticks_skipped += 1
            logger.debug("Refresh tick skipped; previous refresh still in flight")
            return
        self._in_flight = asyncio.create_task(self._guarded_refresh())

    async def _guarded_refresh(self) -> None:
        self.ticks_run += 1
        try:
            await self._refresh()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Refresh failed unexpectedly: %s", exc, exc_info=True)

    def _cancel_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
