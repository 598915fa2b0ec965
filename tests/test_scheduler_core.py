"""Tests for the cooperative scheduler and the whole-second countdown.

A ``FakeClock`` stands in for real time; nothing here sleeps or needs pygame.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from quiz_duel.clock import Scheduler
from quiz_duel.countdown import CountdownTimer


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_callbacks_fire_in_deadline_then_schedule_order() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[str] = []

    sched.call_later(2.0, lambda: fired.append("late"))
    sched.call_later(1.0, lambda: fired.append("first"))
    sched.call_later(1.0, lambda: fired.append("second"))

    clock.advance(0.5)
    assert sched.run_due() == 0

    clock.advance(5.0)
    assert sched.run_due() == 3
    assert fired == ["first", "second", "late"]


def test_cancelled_call_never_fires() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[int] = []

    handle = sched.call_later(1.0, lambda: fired.append(1))
    handle.cancel()
    clock.advance(2.0)
    sched.run_due()

    assert fired == []
    assert handle.pending is False
    assert sched.pending_count() == 0


def test_handle_fires_at_most_once() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[int] = []

    handle = sched.call_later(1.0, lambda: fired.append(1))
    assert handle.fire() is True
    assert handle.fire() is False

    clock.advance(2.0)
    assert sched.run_due() == 0
    assert fired == [1]


def test_chained_calls_use_the_deadline_as_now() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    seen: list[float] = []

    def step() -> None:
        seen.append(sched.now())
        if len(seen) < 3:
            sched.call_later(1.0, step)

    sched.call_later(1.0, step)
    # One late poll still replays the whole chain on its own timeline.
    clock.advance(10.0)
    sched.run_due()

    assert seen == [1.0, 2.0, 3.0]


def test_cancel_all_drops_everything() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[int] = []
    for i in range(3):
        sched.call_later(float(i), lambda i=i: fired.append(i))

    sched.cancel_all()
    clock.advance(5.0)

    assert sched.run_due() == 0
    assert fired == []


def test_negative_delay_rejected() -> None:
    with pytest.raises(ValueError):
        Scheduler(FakeClock()).call_later(-0.1, lambda: None)


def test_countdown_ticks_each_second_and_expires_once() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    ticks: list[int] = []
    expired: list[bool] = []
    timer = CountdownTimer(sched, on_tick=ticks.append, on_expired=lambda: expired.append(True))

    timer.start(3)
    clock.advance(1.0)
    sched.run_due()
    assert ticks == [2]
    assert timer.remaining_s == 2

    clock.advance(5.0)
    sched.run_due()
    assert ticks == [2, 1, 0]
    assert expired == [True]
    assert timer.running is False

    clock.advance(5.0)
    sched.run_due()
    assert expired == [True]


def test_countdown_cancel_wins_over_pending_expiry() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    ticks: list[int] = []
    expired: list[bool] = []
    timer = CountdownTimer(sched, on_tick=ticks.append, on_expired=lambda: expired.append(True))

    timer.start(2)
    clock.advance(1.5)
    sched.run_due()
    timer.cancel()
    clock.advance(10.0)
    sched.run_due()

    assert ticks == [1]
    assert expired == []


def test_countdown_cancel_from_last_tick_suppresses_expiry() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    expired: list[bool] = []
    timer: CountdownTimer

    def on_tick(remaining: int) -> None:
        if remaining == 0:
            timer.cancel()

    timer = CountdownTimer(sched, on_tick=on_tick, on_expired=lambda: expired.append(True))
    timer.start(1)
    clock.advance(1.0)
    sched.run_due()

    assert expired == []


def test_countdown_rejects_non_positive_duration() -> None:
    timer = CountdownTimer(Scheduler(FakeClock()))
    with pytest.raises(ValueError):
        timer.start(0)
