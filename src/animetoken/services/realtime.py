"""In-process row-change broker for realtime subscriptions.

The unit of work collects inserted, updated and deleted rows for the watched
tables while a transaction is open and hands them to ``ChangeBroker.publish``
only after the commit succeeds. Subscribers receive events on their own bounded
asyncio queue, filtered by column equality (``wallet_address=...``,
``mint_job_id=...``).
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

logger = structlog.get_logger()

REALTIME_TABLES = frozenset(
    {"mint_jobs", "mint_job_items", "nft_likes", "collection_likes", "creator_follows"}
)


@dataclass
class ChangeEvent:
    """A committed row change on a watched table.

    Attributes:
        table: Table name (e.g. "mint_jobs")
        event_type: "INSERT", "UPDATE" or "DELETE"
        record: JSON-safe row snapshot (the deleted row for DELETE)
        commit_timestamp: ISO timestamp assigned when the event was published
    """

    table: str
    event_type: str
    record: dict[str, Any]
    commit_timestamp: str = field(default="")

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "eventType": self.event_type,
            "record": self.record,
            "commit_timestamp": self.commit_timestamp,
        }


class Subscription:
    """A single subscriber's filtered view of one table."""

    def __init__(self, table: str, filters: dict[str, str], maxsize: int):
        self.table = table
        self.filters = filters
        self.queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        for column, expected in self.filters.items():
            if str(event.record.get(column)) != expected:
                return False
        return True

    async def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Wait for the next event, or return None once ``timeout`` elapses."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class ChangeBroker:
    """Fan-out of committed change events to in-process subscribers."""

    def __init__(self, queue_size: int = 256):
        self.queue_size = queue_size
        self._subscriptions: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, table: str, filters: dict[str, str] | None = None) -> Subscription:
        """Register a subscriber for ``table``.

        Raises:
            ValueError: If the table is not published on the realtime channel
        """
        if table not in REALTIME_TABLES:
            raise ValueError(f"Table '{table}' is not available for realtime subscriptions")
        subscription = Subscription(table, dict(filters or {}), self.queue_size)
        self._subscriptions.append(subscription)
        logger.debug("realtime.subscribed", table=table, filters=subscription.filters)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug("realtime.unsubscribed", table=subscription.table)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every matching subscriber.

        A subscriber whose queue is full misses the event; clients recover by
        re-reading the authoritative rows.

        Returns:
            Number of subscribers the event was delivered to
        """
        if not event.commit_timestamp:
            event.commit_timestamp = datetime.now(timezone.utc).isoformat()

        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.matches(event):
                continue
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                subscription.dropped += 1
                logger.warning(
                    "realtime.subscriber_lagging",
                    table=event.table,
                    dropped=subscription.dropped,
                )
        return delivered
