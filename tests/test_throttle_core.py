from __future__ import annotations

from dataclasses import dataclass

import pytest

from quiz_duel.throttle import RequestThrottle


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_limit_per_window_then_reset() -> None:
    clock = FakeClock(100.0)
    throttle = RequestThrottle(clock=clock, limit=3, window_s=60.0)

    decisions = [throttle.check("1.2.3.4") for _ in range(3)]
    assert [d.allowed for d in decisions] == [True, True, True]
    assert [d.remaining for d in decisions] == [2, 1, 0]
    assert decisions[0].reset_at_s == 160.0

    blocked = throttle.check("1.2.3.4")
    assert blocked.allowed is False
    assert blocked.remaining == 0

    clock.advance(60.5)
    assert throttle.check("1.2.3.4").allowed is True


def test_rejected_calls_still_count_within_window() -> None:
    clock = FakeClock()
    throttle = RequestThrottle(clock=clock, limit=1, window_s=10.0)

    assert throttle.check("a").allowed is True
    clock.advance(5.0)
    assert throttle.check("a").allowed is False
    clock.advance(4.0)
    assert throttle.check("a").allowed is False


def test_clients_are_independent() -> None:
    throttle = RequestThrottle(clock=FakeClock(), limit=1)
    assert throttle.check("a").allowed is True
    assert throttle.check("b").allowed is True
    assert throttle.check("a").allowed is False


def test_prune_drops_expired_windows() -> None:
    clock = FakeClock()
    throttle = RequestThrottle(clock=clock, limit=2, window_s=10.0)
    throttle.check("a")
    clock.advance(5.0)
    throttle.check("b")

    clock.advance(6.0)
    assert throttle.prune() == 1
    clock.advance(5.0)
    assert throttle.prune() == 1


def test_invalid_configuration_rejected() -> None:
    with pytest.raises(ValueError):
        RequestThrottle(clock=FakeClock(), limit=0)
    with pytest.raises(ValueError):
        RequestThrottle(clock=FakeClock(), window_s=0.0)
