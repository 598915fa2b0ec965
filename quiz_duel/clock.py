from __future__ import annotations

import heapq
import itertools
import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class ScheduledCall:
    """Handle for a callback registered with a Scheduler."""

    __slots__ = ("deadline_s", "_callback", "_cancelled", "_fired")

    def __init__(self, deadline_s: float, callback: Callable[[], None]) -> None:
        self.deadline_s = float(deadline_s)
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def fire(self) -> bool:
        if not self.pending:
            return False
        self._fired = True
        self._callback()
        return True


class Scheduler:
    """Cooperative one-shot callback scheduler driven by an injected Clock.

    Nothing runs on its own: the owner polls ``run_due()`` (once per frame in the
    UI, explicitly in tests). Due callbacks fire in deadline order; callbacks
    sharing a deadline fire in the order they were scheduled.

    While a callback runs, ``now()`` reports that callback's deadline rather than
    the wall clock, so a callback that schedules a follow-up lands on the same
    timeline even when the poll happens late. A caller that polls after a long
    stall therefore sees exactly the sequence it would have seen polling every
    millisecond.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, ScheduledCall]] = []
        self._seq = itertools.count()
        self._dispatch_time_s: float | None = None

    def now(self) -> float:
        if self._dispatch_time_s is not None:
            return self._dispatch_time_s
        return self._clock.now()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledCall:
        if delay_s < 0.0:
            raise ValueError("delay_s must be >= 0")
        call = ScheduledCall(self.now() + float(delay_s), callback)
        heapq.heappush(self._queue, (call.deadline_s, next(self._seq), call))
        return call

    def pending_count(self) -> int:
        return sum(1 for _, _, call in self._queue if call.pending)

    def cancel_all(self) -> None:
        for _, _, call in self._queue:
            call.cancel()
        self._queue.clear()

    def run_due(self) -> int:
        """Fire every callback whose deadline has passed. Returns how many fired."""

        if self._dispatch_time_s is not None:
            # Re-entrant poll from inside a callback; the outer loop drains the queue.
            return 0

        now = self._clock.now()
        fired = 0
        while self._queue and self._queue[0][0] <= now:
            deadline_s, _, call = heapq.heappop(self._queue)
            if not call.pending:
                continue
            self._dispatch_time_s = deadline_s
            try:
                if call.fire():
                    fired += 1
            finally:
                self._dispatch_time_s = None
        return fired
