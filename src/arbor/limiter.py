"""Token-bucket rate limiting for reload triggers.

``RateLimiter`` runs a function at most ``capacity`` times per interval.
Calls beyond that are coalesced into a single deferred execution that
happens on the next ``tick()``. The tick itself is driven by a ``Ticker``
owned by the application lifecycle, so tests can call ``tick()`` directly
instead of waiting for wall-clock time.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("arbor.reload")


@dataclass(frozen=True, slots=True)
class LimitResult:
    """Outcome of one trigger call.

    ``executed`` is True when the function ran synchronously during the
    call. ``error`` is the exception raised by the most recent execution
    (this one, or an earlier one when the call was deferred).
    """

    executed: bool
    error: Exception | None = None


class RateLimiter:
    """Execute ``fn`` up to ``capacity`` times per tick interval.

    Executions are serialized by a single lock. Exceptions raised by
    ``fn`` are logged and reported through ``LimitResult.error``.

    Usage::

        limited = RateLimiter(2, site.reload)
        ticker = Ticker(60.0, limited.tick)
        ticker.start()

        result = limited()
        if not result.executed:
            ...  # scheduled for the next tick
    """

    __slots__ = ("_capacity", "_error", "_fn", "_lock", "_pending", "_tokens")

    def __init__(self, capacity: int, fn: Callable[[], Any]) -> None:
        if capacity < 1:
            msg = f"capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._fn = fn
        self._tokens = capacity
        self._pending = False
        self._error: Exception | None = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    def __call__(self) -> LimitResult:
        with self._lock:
            if self._tokens > 0:
                self._tokens -= 1
                self._run()
                return LimitResult(executed=True, error=self._error)
            self._pending = True
            return LimitResult(executed=False, error=self._error)

    def tick(self) -> None:
        """Refill the tokens and run one coalesced deferred call, if any."""
        with self._lock:
            self._tokens = self._capacity
            if self._pending:
                self._pending = False
                self._tokens -= 1
                self._run()

    def _run(self) -> None:
        """Run fn and remember its error. Caller holds the lock."""
        try:
            self._fn()
        except Exception as exc:
            logger.exception("rate-limited call failed")
            self._error = exc
        else:
            self._error = None


class Ticker:
    """Daemon thread that calls ``callback`` every ``interval`` seconds.

    ``start()`` and ``stop()`` are idempotent. ``stop()`` waits for the
    thread to finish its current callback.
    """

    __slots__ = ("_callback", "_interval", "_stop", "_thread")

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self._interval = interval
        self._callback = callback
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="arbor-ticker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("ticker callback failed")


def limit(interval: float, capacity: int, fn: Callable[[], Any]) -> tuple[RateLimiter, Ticker]:
    """Build a limiter for *fn* and the ticker that refills it every *interval*.

    The ticker is returned unstarted; its owner decides when it runs.
    """
    limiter = RateLimiter(capacity, fn)
    return limiter, Ticker(interval, limiter.tick)
