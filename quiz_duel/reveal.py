from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from .clock import ScheduledCall, Scheduler


class RevealTrigger(str, Enum):
    BOTH_ANSWERED = "both_answered"
    TIMER_EXPIRED = "timer_expired"


class RevealPolicy:
    """Collecting -> Revealed decision for a single question.

    Both players answering arms a grace delay that later input cannot shorten;
    timer expiry reveals at once. Whichever trigger lands first is the only one
    delivered to ``on_reveal``; the other is cancelled or ignored.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        grace_s: float,
        on_reveal: Callable[[RevealTrigger], None],
    ) -> None:
        if grace_s < 0.0:
            raise ValueError("grace_s must be >= 0")
        self._scheduler = scheduler
        self._grace_s = float(grace_s)
        self._on_reveal = on_reveal
        self._grace: ScheduledCall | None = None
        self._revealed = True

    @property
    def revealed(self) -> bool:
        return self._revealed

    @property
    def grace_pending(self) -> bool:
        return self._grace is not None and self._grace.pending

    def arm(self) -> None:
        """Start collecting for a new question."""

        self.cancel()
        self._revealed = False

    def cancel(self) -> None:
        if self._grace is not None:
            self._grace.cancel()
            self._grace = None

    def both_answered(self) -> None:
        if self._revealed or self._grace is not None:
            return
        self._grace = self._scheduler.call_later(
            self._grace_s, lambda: self._reveal(RevealTrigger.BOTH_ANSWERED)
        )

    def timer_expired(self) -> None:
        self._reveal(RevealTrigger.TIMER_EXPIRED)

    def _reveal(self, trigger: RevealTrigger) -> None:
        if self._revealed:
            return
        self._revealed = True
        self.cancel()
        self._on_reveal(trigger)
