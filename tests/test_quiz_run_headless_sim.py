"""Headless full-match simulations.

Each test plays a ten-question match at a fixed frame rate with scripted key
presses, the way the UI would drive the run, and checks the final tally.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from quiz_duel.duel_core import GameMode, OutcomeRecord, Player, RunPhase, SpeedWinner
from quiz_duel.quiz_run import QuizRun
from quiz_duel.results import match_result_from_outcomes
from quiz_duel.sample_bank import SampleQuestionSource

FRAME_S = 1.0 / 60.0


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _play(mode: GameMode, *, p1_delay_s: float, p2_delay_s: float | None) -> tuple[QuizRun, list[OutcomeRecord]]:
    """P1 always answers correctly; P2 always picks slot 0 (or never answers)."""

    clock = FakeClock()
    questions = SampleQuestionSource(seed=7).generate("anything", mode)
    answers = {q.text: q.answer_index for q in questions}
    done: list[list[OutcomeRecord]] = []
    run = QuizRun(questions=questions, mode=mode, clock=clock, on_complete=done.append)
    run.start()

    p1_keys = run.zones.labels(Player.P1)
    p2_keys = run.zones.labels(Player.P2)
    question_started_at = clock.now()
    seen_index = -1

    for _ in range(60 * 60 * 10):
        if run.is_over():
            break
        if run.question_index != seen_index and run.phase is RunPhase.COLLECTING:
            seen_index = run.question_index
            question_started_at = clock.now()

        elapsed = clock.now() - question_started_at
        if run.phase is RunPhase.COLLECTING:
            snap = run.snapshot()
            if elapsed >= p1_delay_s and run.choice(Player.P1) is None:
                run.press(p1_keys[answers[snap.question_text]])
            if p2_delay_s is not None and elapsed >= p2_delay_s and snap.p2_choice is None:
                run.press(p2_keys[0])

        clock.advance(FRAME_S)
        run.update()

    assert run.phase is RunPhase.COMPLETED
    assert len(done) == 1
    return run, done[0]


@pytest.mark.parametrize("mode", [GameMode.NORMAL, GameMode.ODD_ONE_OUT])
def test_scored_modes_count_correct_answers(mode: GameMode) -> None:
    run, outcomes = _play(mode, p1_delay_s=0.5, p2_delay_s=1.0)
    assert len(outcomes) == run.question_count == 10

    result = match_result_from_outcomes(outcomes, mode=mode)
    assert result.p1_score == 10
    expected_p2 = sum(1 for o in outcomes if o.answer_index == 0)
    assert result.p2_score == expected_p2
    assert all(o.speed_winner is SpeedWinner.NONE for o in outcomes)


def test_speed_mode_counts_speed_wins_only() -> None:
    _, outcomes = _play(GameMode.SPEED, p1_delay_s=1.0, p2_delay_s=0.25)
    result = match_result_from_outcomes(outcomes, mode=GameMode.SPEED)

    p2_fast_correct = sum(1 for o in outcomes if o.answer_index == 0)
    assert result.p2_score == p2_fast_correct
    assert result.p1_score == 10 - p2_fast_correct


def test_silent_player_times_out_every_question() -> None:
    _, outcomes = _play(GameMode.SPEED, p1_delay_s=0.5, p2_delay_s=None)
    assert all(o.p2_choice is None for o in outcomes)
    result = match_result_from_outcomes(outcomes, mode=GameMode.SPEED)
    assert result.p1_score == 10
    assert result.p2_score == 0
    assert result.winner is Player.P1
