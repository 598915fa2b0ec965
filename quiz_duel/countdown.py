from __future__ import annotations

from collections.abc import Callable

from .clock import ScheduledCall, Scheduler


class CountdownTimer:
    """Whole-second countdown on top of a Scheduler.

    ``on_tick(remaining)`` is called after every elapsed second, including the
    final one that reaches 0; ``on_expired()`` follows that last tick exactly once.
    After ``cancel()`` neither callback is invoked again until the next ``start()``,
    even when the cancel happens from inside ``on_tick``.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        on_tick: Callable[[int], None] | None = None,
        on_expired: Callable[[], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_expired = on_expired
        self._remaining_s = 0
        self._handle: ScheduledCall | None = None
        self._generation = 0

    @property
    def remaining_s(self) -> int:
        return self._remaining_s

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.pending

    def start(self, duration_s: int) -> None:
        if duration_s <= 0:
            raise ValueError("duration_s must be > 0")
        self.cancel()
        self._remaining_s = int(duration_s)
        self._handle = self._scheduler.call_later(1.0, self._tick)

    def cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        generation = self._generation
        self._handle = None
        self._remaining_s -= 1
        if self._remaining_s > 0:
            self._handle = self._scheduler.call_later(1.0, self._tick)

        if self._on_tick is not None:
            self._on_tick(self._remaining_s)
        if generation != self._generation:
            return
        if self._remaining_s == 0 and self._on_expired is not None:
            self._on_expired()
