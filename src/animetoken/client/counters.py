"""Optimistic like/follower counters with event-sourced reconciliation.

The displayed value of a counter is its last authoritative count plus every
optimistic delta still awaiting the server. A delta is applied the moment the
user acts, then either confirmed (the server's count replaces the base and the
delta is dropped) or reverted (the delta is dropped). Changes made by other
clients arrive through realtime events and move the base directly.

Example:
    >>> store = OptimisticCounterStore()
    >>> store.set("nft:42", 3)
    >>> token = store.apply("nft:42", +1)   # UI shows 4 immediately
    >>> store.confirm(token, count=4)       # server agreed
    >>> store.get("nft:42")
    4
"""

import uuid
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

logger = structlog.get_logger()

CounterListener = Callable[[str, int], None]


@dataclass
class PendingDelta:
    token: str
    key: str
    delta: int


class OptimisticCounterStore:
    """In-process counter cache shared by every view showing the same count."""

    def __init__(self):
        self._base: dict[str, int] = {}
        self._pending: dict[str, PendingDelta] = {}
        self._listeners: list[CounterListener] = []

    def subscribe(self, listener: CounterListener) -> Callable[[], None]:
        """Register ``listener(key, value)``; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str) -> None:
        value = self.get(key)
        for listener in list(self._listeners):
            listener(key, value)

    def get(self, key: str) -> int:
        pending = sum(p.delta for p in self._pending.values() if p.key == key)
        return max(0, self._base.get(key, 0) + pending)

    def pending_count(self, key: Optional[str] = None) -> int:
        return sum(1 for p in self._pending.values() if key is None or p.key == key)

    def set(self, key: str, count: int) -> None:
        """Replace the authoritative count (initial load or refetch)."""
        self._base[key] = max(0, count)
        self._notify(key)

    def apply(self, key: str, delta: int) -> str:
        """Apply an optimistic delta and return its token."""
        token = uuid.uuid4().hex
        self._pending[token] = PendingDelta(token=token, key=key, delta=delta)
        self._notify(key)
        return token

    def confirm(self, token: str, count: Optional[int] = None) -> None:
        """Settle a delta; ``count`` is the server's authoritative value after it."""
        pending = self._pending.pop(token, None)
        if pending is None:
            return
        if count is not None:
            self._base[pending.key] = max(0, count)
        else:
            self._base[pending.key] = max(0, self._base.get(pending.key, 0) + pending.delta)
        self._notify(pending.key)

    def revert(self, token: str) -> None:
        """Drop a delta whose request failed."""
        pending = self._pending.pop(token, None)
        if pending is None:
            return
        logger.debug("counter.reverted", key=pending.key, delta=pending.delta)
        self._notify(pending.key)

    def observe(self, key: str, delta: int) -> None:
        """Apply a change committed by another client (realtime INSERT/DELETE)."""
        self._base[key] = max(0, self._base.get(key, 0) + delta)
        self._notify(key)
