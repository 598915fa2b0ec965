from __future__ import annotations

from collections.abc import Callable, Sequence

from .clock import ScheduledCall, Scheduler
from .duel_core import GameMode, OutcomeRecord, Player, Question, SpeedWinner


def speed_winner(
    *,
    answer_index: int,
    p1_choice: int | None,
    p2_choice: int | None,
    first_responder: Player | None,
) -> SpeedWinner:
    p1_ok = p1_choice == answer_index
    p2_ok = p2_choice == answer_index
    if p1_ok and p2_ok:
        if first_responder is None:
            return SpeedWinner.NONE
        return SpeedWinner(first_responder.value)
    if p1_ok:
        return SpeedWinner.P1
    if p2_ok:
        return SpeedWinner.P2
    return SpeedWinner.NONE


def build_outcome(
    question: Question,
    *,
    mode: GameMode,
    p1_choice: int | None,
    p2_choice: int | None,
    first_responder: Player | None,
) -> OutcomeRecord:
    winner = SpeedWinner.NONE
    if mode is GameMode.SPEED:
        winner = speed_winner(
            answer_index=question.answer_index,
            p1_choice=p1_choice,
            p2_choice=p2_choice,
            first_responder=first_responder,
        )
    return OutcomeRecord(
        question_text=question.text,
        answer_index=question.answer_index,
        p1_choice=p1_choice,
        p2_choice=p2_choice,
        speed_winner=winner,
    )


class QuestionSequencer:
    """Walks the question list and collects one outcome per revealed question.

    After each reveal the hold delay is scheduled; when it elapses the sequencer
    either calls ``on_next(index)`` for the following question or, past the last
    one, ``on_complete(outcomes)``. Completion is one-shot.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        questions: Sequence[Question],
        *,
        hold_s: float,
        on_next: Callable[[int], None],
        on_complete: Callable[[list[OutcomeRecord]], None],
    ) -> None:
        if not questions:
            raise ValueError("questions must not be empty")
        if hold_s < 0.0:
            raise ValueError("hold_s must be >= 0")
        self._scheduler = scheduler
        self._questions = tuple(questions)
        self._hold_s = float(hold_s)
        self._on_next = on_next
        self._on_complete = on_complete
        self._index = 0
        self._outcomes: list[OutcomeRecord] = []
        self._hold: ScheduledCall | None = None
        self._finished = False

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Question:
        return self._questions[self._index]

    @property
    def count(self) -> int:
        return len(self._questions)

    @property
    def finished(self) -> bool:
        return self._finished

    def outcomes(self) -> list[OutcomeRecord]:
        return list(self._outcomes)

    def record(self, outcome: OutcomeRecord) -> None:
        """Store the outcome for the current question and schedule the hold."""

        if self._finished or self._hold is not None:
            return
        self._outcomes.append(outcome)
        self._hold = self._scheduler.call_later(self._hold_s, self._after_hold)

    def cancel(self) -> None:
        if self._hold is not None:
            self._hold.cancel()
            self._hold = None

    def _after_hold(self) -> None:
        self._hold = None
        if self._index + 1 >= len(self._questions):
            self._finished = True
            self._on_complete(list(self._outcomes))
            return
        self._index += 1
        self._on_next(self._index)
