from __future__ import annotations

from dataclasses import dataclass

from .clock import Clock


@dataclass(frozen=True, slots=True)
class ThrottleDecision:
    allowed: bool
    remaining: int
    reset_at_s: float


@dataclass(slots=True)
class _Window:
    count: int
    started_at_s: float


class RequestThrottle:
    """Fixed-window request quota keyed by client address.

    Every call counts, including rejected ones, so a client hammering the
    endpoint stays blocked until its window rolls over. State is in-memory and
    per-process.
    """

    def __init__(self, *, clock: Clock, limit: int = 3, window_s: float = 60.0) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        if window_s <= 0.0:
            raise ValueError("window_s must be > 0")
        self._clock = clock
        self._limit = int(limit)
        self._window_s = float(window_s)
        self._windows: dict[str, _Window] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def check(self, key: str) -> ThrottleDecision:
        now = self._clock.now()
        window = self._windows.get(key)
        if window is None or now - window.started_at_s > self._window_s:
            window = _Window(count=1, started_at_s=now)
            self._windows[key] = window
        else:
            window.count += 1

        return ThrottleDecision(
            allowed=window.count <= self._limit,
            remaining=max(0, self._limit - window.count),
            reset_at_s=window.started_at_s + self._window_s,
        )

    def prune(self) -> int:
        """Forget windows that have fully expired. Returns how many were dropped."""

        now = self._clock.now()
        stale = [k for k, w in self._windows.items() if now - w.started_at_s > self._window_s]
        for k in stale:
            del self._windows[k]
        return len(stale)
