"""Retained publish/subscribe for one compile pass.

Content compiled in one directory (a blog's post list) can expose data to
content compiled elsewhere (a "latest posts" widget) without caring which
of the two the compiler reaches first.

Delivery contract:
    - Before ``ready()``: ``publish`` only retains the latest value per key.
    - ``ready()``: delivers the retained value (or ``None``) once to every
      subscriber of every key, then drops the retained values.
    - After ``ready()``: ``publish`` delivers synchronously to the key's
      subscribers in registration order and retains nothing.

Thread safety:
    One ``RLock`` guards both maps and the ready flag. Callbacks run while
    the lock is held, so they may publish or subscribe themselves but must
    not block on other threads that use the same broker.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("arbor.broker")

Subscriber = Callable[[Any], None]


class Broker:
    """Process-local retained publish/subscribe, keyed by URL path."""

    __slots__ = ("_lock", "_published", "_ready", "_subscribers")

    def __init__(self) -> None:
        self._published: dict[str, Any] = {}
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._ready = False
        self._lock = threading.RLock()

    @property
    def is_ready(self) -> bool:
        with self._lock:
            return self._ready

    def subscribe(self, key: str, callback: Subscriber) -> None:
        """Register *callback* for *key*. Never delivers by itself."""
        with self._lock:
            self._subscribers.setdefault(key, []).append(callback)

    def publish(self, key: str, data: Any) -> None:
        """Retain *data* before ``ready()``, deliver it immediately afterwards."""
        with self._lock:
            if not self._ready:
                self._published[key] = data
                return
            callbacks = list(self._subscribers.get(key, ()))
            for callback in callbacks:
                callback(data)

    def ready(self) -> None:
        """Drain retained values to all subscribers. Idempotent."""
        with self._lock:
            if self._ready:
                return
            self._ready = True
            retained = self._published
            self._published = {}
            subscribers = {key: list(fns) for key, fns in self._subscribers.items()}
            for key, callbacks in subscribers.items():
                data = retained.get(key)
                for callback in callbacks:
                    callback(data)
            unclaimed = set(retained) - set(subscribers)
            if unclaimed:
                logger.debug("published without subscribers: %s", ", ".join(sorted(unclaimed)))
