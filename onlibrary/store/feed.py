"""Push subscriptions over a document collection.

A subscriber registers a callback for a key (``("books", owner_id)`` and
similar); the store publishes the full current collection for that key after
every committed write. Delivery happens synchronously on the publishing
thread. Snapshots loaded through ``refresh`` (and the initial one handed to a new
subscriber) are delivered in the order they were taken, so the last callback a
subscriber sees always carries the newest state.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

Callback = Callable[[list[Any]], None]
Loader = Callable[[], list[Any]]


class Subscription:
    """Handle returned by ``subscribe_*``; call ``close()`` to stop delivery."""

    def __init__(self, feed: "ChangeFeed", key: Hashable, callback: Callback):
        self._feed = feed
        self.key = key
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            self._feed._remove(self)
            self.closed = True

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._delivery_lock = threading.RLock()
        self._subscribers: dict[Hashable, list[Subscription]] = defaultdict(list)

    def subscribe(self, key: Hashable, callback: Callback, initial: Loader | None = None) -> Subscription:
        subscription = Subscription(self, key, callback)
        with self._delivery_lock:
            with self._lock:
                self._subscribers[key].append(subscription)
            if initial is not None:
                callback(initial())
        return subscription

    def has_subscribers(self, key: Hashable) -> bool:
        with self._lock:
            return bool(self._subscribers.get(key))

    def publish(self, key: Hashable, snapshot: list[Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(key, ()))
        for subscription in subscribers:
            try:
                subscription.callback(snapshot)
            except Exception:
                # A failing subscriber must not break the write that triggered it.
                logger.exception("Subscriber for %r raised", key)

    def refresh(self, key: Hashable, load: Loader) -> None:
        """Load the current collection for ``key`` and deliver it to every subscriber."""
        with self._delivery_lock:
            if self.has_subscribers(key):
                self.publish(key, load())

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.key)
            if subscribers and subscription in subscribers:
                subscribers.remove(subscription)
                if not subscribers:
                    del self._subscribers[subscription.key]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(subs) for subs in self._subscribers.values())
