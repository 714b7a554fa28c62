"""Repeating timers running on the event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

TickCallback = Callable[[], Awaitable[None]]


class RepeatingTimer:
    """Runs ``callback`` every ``interval_seconds`` until stopped.

    Ticks never overlap: the next sleep starts only once the previous tick has
    finished. An exception escaping a tick is logged and the timer keeps going.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: TickCallback,
        *,
        run_immediately: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Timer interval must be positive")
        self.name = name
        self._interval_seconds = interval_seconds
        self._callback = callback
        self._run_immediately = run_immediately
        self._logger = logger or logging.getLogger("paynow_link.scheduler")
        self._task: asyncio.Task[None] | None = None
        self._ticking = False
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @interval_seconds.setter
    def interval_seconds(self, value: float) -> None:
        if self.running:
            raise RuntimeError(f"Stop timer {self.name!r} before changing its interval")
        if value <= 0:
            raise ValueError("Timer interval must be positive")
        self._interval_seconds = value

    def start(self) -> None:
        """Start ticking; a no-op while already running."""
        if self.running:
            return

        self._task = asyncio.create_task(self._loop(), name=f"timer-{self.name}")
        self._logger.info("timer_started", extra={"timer": self.name, "interval_seconds": self._interval_seconds})

    async def stop(self) -> None:
        """Stop ticking; a tick already in progress is allowed to finish first."""
        if not self._task:
            return

        self._stopping = True
        if not self._ticking:
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
            self._stopping = False

        self._logger.info("timer_stopped", extra={"timer": self.name})

    async def _loop(self) -> None:
        if self._run_immediately:
            await self._tick()
        while not self._stopping:
            await asyncio.sleep(self._interval_seconds)
            await self._tick()

    async def _tick(self) -> None:
        if self._stopping:
            return
        self._ticking = True
        try:
            await self._callback()
        except Exception:  # noqa: BLE001 - a failing tick must not kill the timer.
            self._logger.exception("timer_tick_failed", extra={"timer": self.name})
        finally:
            self._ticking = False
