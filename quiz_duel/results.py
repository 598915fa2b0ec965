from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .duel_core import GameMode, OutcomeRecord, Player, SpeedWinner


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Final tally of a completed run.

    Normal and odd-one-out award a point per correct answer; speed awards the
    point only to the question's speed winner.
    """

    mode: GameMode
    question_count: int
    p1_score: int
    p2_score: int
    outcomes: tuple[OutcomeRecord, ...]

    @property
    def winner(self) -> Player | None:
        if self.p1_score > self.p2_score:
            return Player.P1
        if self.p2_score > self.p1_score:
            return Player.P2
        return None

    @property
    def is_tie(self) -> bool:
        return self.p1_score == self.p2_score


def match_result_from_outcomes(outcomes: Sequence[OutcomeRecord], *, mode: GameMode) -> MatchResult:
    """Build a MatchResult from the outcomes emitted by a finished QuizRun."""

    mode = GameMode(mode)
    if mode is GameMode.SPEED:
        p1 = sum(1 for o in outcomes if o.speed_winner is SpeedWinner.P1)
        p2 = sum(1 for o in outcomes if o.speed_winner is SpeedWinner.P2)
    else:
        p1 = sum(1 for o in outcomes if o.p1_correct)
        p2 = sum(1 for o in outcomes if o.p2_correct)

    return MatchResult(
        mode=mode,
        question_count=len(outcomes),
        p1_score=int(p1),
        p2_score=int(p2),
        outcomes=tuple(outcomes),
    )
