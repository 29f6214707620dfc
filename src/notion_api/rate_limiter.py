"""Rate-limited scheduler for Notion API calls.

This module serialises work per resource key (a Notion block or page id)
while bounding how many calls run at once and how many may start within a
trailing time window. It is the only mutual-exclusion primitive of the
migrator: two writes against the same destination id never interleave,
writes against different ids may overlap up to the global caps.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Starts older than this are forgotten even when the window is shorter,
# so throughput() can look back further than the admission window.
THROUGHPUT_HISTORY_SECONDS = 60.0


@dataclass
class _PendingUnit:
    """A submitted unit of work waiting for admission."""
    key: str
    work: Callable[[], Awaitable[Any]]
    future: 'asyncio.Future[Any]'


class RateLimiter:
    """Admission-controlled scheduler keyed by resource id.

    Admission policy:
        1. At most one in-flight unit per resource key; same-key units run
           strictly in submission order.
        2. At most ``max_concurrent`` in-flight units globally.
        3. Optionally, at most ``max_starts_per_window`` starts within the
           trailing ``window_ms`` milliseconds.

    On every completion or timer tick the pending queue is rescanned for the
    first admissible entry, so ties break by FIFO submission order. A failing
    unit's exception is delivered only to its own caller.

    Example:
        >>> limiter = RateLimiter(max_concurrent=3, max_starts_per_window=10)
        >>> page = await limiter.submit(parent_id, lambda: client.pages.create(...))
    """

    def __init__(
        self,
        max_concurrent: int = 3,
        max_starts_per_window: Optional[int] = 10,
        window_ms: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the scheduler.

        Args:
            max_concurrent: Global cap on in-flight units
            max_starts_per_window: Cap on starts per trailing window (None disables it)
            window_ms: Length of the trailing window in milliseconds
            clock: Monotonic clock returning seconds

        Raises:
            ValueError: If a cap or the window is not positive
        """
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")
        if max_starts_per_window is not None and max_starts_per_window < 1:
            raise ValueError(
                f"max_starts_per_window must be at least 1, got {max_starts_per_window}"
            )
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")

        self._max_concurrent = max_concurrent
        self._max_starts = max_starts_per_window
        self._window = window_ms / 1000.0
        self._clock = clock

        self._pending: List[_PendingUnit] = []
        self._active_keys: Set[str] = set()
        self._running: Set['asyncio.Task[None]'] = set()
        self._starts: Deque[float] = deque()
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def active_count(self) -> int:
        """Number of units currently in flight."""
        return len(self._active_keys)

    @property
    def pending_count(self) -> int:
        """Number of units waiting for admission."""
        return sum(1 for unit in self._pending if not unit.future.done())

    async def submit(self, resource_key: str, work: Callable[[], Awaitable[T]]) -> T:
        """Run ``work`` once admitted and return its result.

        Args:
            resource_key: Key serialising this unit against same-key units
            work: Zero-argument callable returning an awaitable

        Returns:
            Whatever the awaited work returns

        Raises:
            Exception: Whatever the work raised, unmodified
        """
        loop = asyncio.get_running_loop()
        future: 'asyncio.Future[T]' = loop.create_future()
        self._pending.append(_PendingUnit(key=resource_key, work=work, future=future))
        self._dispatch()
        return await future

    def throughput(self, period_seconds: float = 10.0) -> float:
        """Estimate starts per second over the trailing period.

        Args:
            period_seconds: Look-back period (capped by the kept history)

        Returns:
            Average number of unit starts per second
        """
        if period_seconds <= 0:
            return 0.0
        cutoff = self._clock() - period_seconds
        recent = sum(1 for started in self._starts if started > cutoff)
        return recent / period_seconds

    def _dispatch(self) -> None:
        """Start as many admissible pending units as the caps allow."""
        while self._pending:
            now = self._clock()
            self._prune(now)

            if len(self._active_keys) >= self._max_concurrent:
                return

            wait = self._window_wait(now)
            if wait > 0:
                self._schedule_tick(wait)
                return

            unit = self._pop_admissible()
            if unit is None:
                return
            self._start(unit, now)

    def _pop_admissible(self) -> Optional[_PendingUnit]:
        """Remove and return the first unit whose key is idle."""
        admitted: Optional[_PendingUnit] = None
        remaining: List[_PendingUnit] = []
        for unit in self._pending:
            # Callers that gave up leave a cancelled future behind
            if unit.future.done():
                continue
            if admitted is None and unit.key not in self._active_keys:
                admitted = unit
            else:
                remaining.append(unit)
        self._pending = remaining
        return admitted

    def _window_wait(self, now: float) -> float:
        """Seconds until the sliding window admits another start (0 if it does)."""
        if self._max_starts is None:
            return 0.0
        in_window = [started for started in self._starts if started > now - self._window]
        if len(in_window) < self._max_starts:
            return 0.0
        return max(in_window[0] + self._window - now, 0.001)

    def _prune(self, now: float) -> None:
        """Discard start timestamps older than the kept history."""
        horizon = now - max(self._window, THROUGHPUT_HISTORY_SECONDS)
        while self._starts and self._starts[0] <= horizon:
            self._starts.popleft()

    def _schedule_tick(self, delay: float) -> None:
        """Arrange a rescan once the window frees a slot."""
        if self._timer is not None:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_tick)

    def _on_tick(self) -> None:
        self._timer = None
        self._dispatch()

    def _start(self, unit: _PendingUnit, now: float) -> None:
        self._active_keys.add(unit.key)
        self._starts.append(now)
        logger.debug(
            f"Starting unit for {unit.key} "
            f"(active: {len(self._active_keys)}, pending: {self.pending_count})"
        )
        task = asyncio.get_running_loop().create_task(self._run(unit))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run(self, unit: _PendingUnit) -> None:
        try:
            result = await unit.work()
        except asyncio.CancelledError:
            unit.future.cancel()
            raise
        except Exception as e:
            if not unit.future.done():
                unit.future.set_exception(e)
        else:
            if not unit.future.done():
                unit.future.set_result(result)
        finally:
            self._active_keys.discard(unit.key)
            self._dispatch()
