"""Buffered upload of player_join events."""

from __future__ import annotations

import logging

from paynow_link.api import BackendApi
from paynow_link.models import PendingEvent, utc_timestamp
from paynow_link.scheduler import RepeatingTimer

DEFAULT_EVENT_FLUSH_INTERVAL_SECONDS = 60.0


class EventBatcher:
    """Collects events as they happen and flushes them on a fixed interval.

    The buffer is cleared only after the backend confirms the upload. It has no
    cap, so a long backend outage grows it without bound.
    """

    def __init__(
        self,
        api: BackendApi,
        *,
        interval_seconds: float = DEFAULT_EVENT_FLUSH_INTERVAL_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api = api
        self._pending: set[PendingEvent] = set()
        self._logger = logger or logging.getLogger("paynow_link.events")
        self._timer = RepeatingTimer("event-batcher", interval_seconds, self.flush, logger=self._logger)

    @property
    def pending(self) -> frozenset[PendingEvent]:
        return frozenset(self._pending)

    @property
    def running(self) -> bool:
        return self._timer.running

    def start(self) -> None:
        self._timer.start()

    async def stop(self) -> None:
        await self._timer.stop()

    def record(self, event: PendingEvent) -> None:
        self._pending.add(event)

    def record_player_join(self, steam_id: str, ip_address: str, timestamp: str | None = None) -> PendingEvent:
        event = PendingEvent(ip_address=ip_address, steam_id=steam_id, timestamp=timestamp or utc_timestamp())
        self.record(event)
        return event

    async def flush(self) -> bool:
        """Upload everything buffered; returns whether the buffer was cleared."""
        if not self._api.token or not self._pending:
            return False

        batch = set(self._pending)
        response = await self._api.send_events(batch)
        if not response.ok:
            self._logger.warning(
                "event_flush_failed",
                extra={
                    "status_code": response.status_code,
                    "error": response.error,
                    "pending": len(self._pending),
                },
            )
            return False

        # Events recorded while the request was in flight stay buffered.
        self._pending -= batch
        self._logger.debug("events_flushed", extra={"count": len(batch)})
        return True
