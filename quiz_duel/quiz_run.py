from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from .clock import Clock, Scheduler
from .countdown import CountdownTimer
from .duel_core import (
    GameMode,
    OutcomeRecord,
    Player,
    Question,
    RunPhase,
    RunSnapshot,
    rules_for,
)
from .input_arbiter import InputArbiter, KeyPress, KeyZones
from .reveal import RevealPolicy, RevealTrigger
from .sequencer import QuestionSequencer, build_outcome

logger = logging.getLogger(__name__)


def playable_questions(questions: Sequence[Question], mode: GameMode) -> list[Question]:
    """Drop questions the run cannot present in ``mode``."""

    kept: list[Question] = []
    for i, q in enumerate(questions):
        if q.is_playable(mode):
            kept.append(q)
        else:
            logger.warning(
                "Skipping unplayable question #%d (%d options, answer_index=%d, mode=%s)",
                i,
                len(q.options),
                q.answer_index,
                mode.value,
            )
    return kept


class QuizRun:
    """Two-player simultaneous-answer quiz run.

    INITIALIZING -> COLLECTING(i) -> REVEALED(i) -> COLLECTING(i+1) | COMPLETED,
    with QUIT reachable from any non-terminal phase.

    All waiting (per-second ticks, grace delay, hold delay) goes through one
    Scheduler, so ``update()`` must be called regularly (once per frame). Key
    events go through ``press()`` in arrival order. The UI reads ``snapshot()``
    and never mutates run state.

    ``on_complete(outcomes)`` fires once on natural completion; ``on_quit()`` fires
    once on abandonment; never both.
    """

    def __init__(
        self,
        *,
        questions: Sequence[Question],
        mode: GameMode,
        clock: Clock,
        player1: str = "Player 1",
        player2: str = "Player 2",
        on_complete: Callable[[list[OutcomeRecord]], None] | None = None,
        on_quit: Callable[[], None] | None = None,
        zones: KeyZones | None = None,
    ) -> None:
        self._mode = GameMode(mode)
        self._rules = rules_for(self._mode)
        self._questions = playable_questions(questions, self._mode)
        if not self._questions:
            raise ValueError("no playable questions")

        self._player1 = str(player1)
        self._player2 = str(player2)
        self._on_complete = on_complete
        self._on_quit = on_quit

        self._scheduler = Scheduler(clock)
        self._timer = CountdownTimer(
            self._scheduler,
            on_tick=self._on_tick,
            on_expired=self._on_timer_expired,
        )
        self._arbiter = InputArbiter(zones, track_first_responder=self._mode is GameMode.SPEED)
        self._reveal = RevealPolicy(
            self._scheduler,
            grace_s=self._rules.grace_s,
            on_reveal=self._on_reveal,
        )
        self._sequencer = QuestionSequencer(
            self._scheduler,
            self._questions,
            hold_s=self._rules.hold_s,
            on_next=self._begin_question,
            on_complete=self._finish,
        )

        self._phase = RunPhase.INITIALIZING
        self._time_remaining_s = self._rules.timer_s

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def mode(self) -> GameMode:
        return self._mode

    @property
    def zones(self) -> KeyZones:
        return self._arbiter.zones

    @property
    def question_count(self) -> int:
        return len(self._questions)

    @property
    def question_index(self) -> int:
        return self._sequencer.index

    @property
    def revealed(self) -> bool:
        return self._phase is RunPhase.REVEALED

    @property
    def time_remaining_s(self) -> int:
        return self._time_remaining_s

    @property
    def first_responder(self) -> Player | None:
        return self._arbiter.first_responder

    def choice(self, player: Player) -> int | None:
        return self._arbiter.choice(player)

    def outcomes(self) -> list[OutcomeRecord]:
        return self._sequencer.outcomes()

    def is_over(self) -> bool:
        return self._phase in (RunPhase.COMPLETED, RunPhase.QUIT)

    def pending_callbacks(self) -> int:
        return self._scheduler.pending_count()

    def start(self) -> None:
        if self._phase is not RunPhase.INITIALIZING:
            return
        logger.info(
            "Quiz run started: mode=%s questions=%d (%s vs %s)",
            self._mode.value,
            len(self._questions),
            self._player1,
            self._player2,
        )
        self._begin_question(0)

    def update(self) -> None:
        if self.is_over():
            return
        self._scheduler.run_due()

    def press(self, key: str) -> bool:
        """Feed one raw key. Returns True when it recorded a choice."""

        if self._phase is not RunPhase.COLLECTING:
            return False
        # Fire anything already due first so a late key cannot beat an expired timer.
        self._scheduler.run_due()
        if self._phase is not RunPhase.COLLECTING:
            return False

        accepted: KeyPress | None = self._arbiter.accept(key)
        if accepted is None:
            return False
        logger.debug(
            "Q%d: %s chose slot %d", self._sequencer.index + 1, accepted.player.value, accepted.slot
        )
        if self._arbiter.both_answered():
            # The countdown keeps running through the grace delay; expiry still wins.
            self._reveal.both_answered()
        return True

    def quit(self) -> None:
        if self.is_over():
            return
        self._teardown()
        self._phase = RunPhase.QUIT
        logger.info("Quiz run quit at question %d/%d", self._sequencer.index + 1, len(self._questions))
        if self._on_quit is not None:
            self._on_quit()

    def snapshot(self) -> RunSnapshot:
        q = self._sequencer.current
        revealed = self._phase in (RunPhase.REVEALED, RunPhase.COMPLETED)
        return RunSnapshot(
            phase=self._phase,
            mode=self._mode,
            player1=self._player1,
            player2=self._player2,
            question_index=self._sequencer.index,
            question_count=len(self._questions),
            question_text=q.text,
            options=q.options,
            answer_index=q.answer_index if revealed else None,
            p1_choice=self._arbiter.choice(Player.P1),
            p2_choice=self._arbiter.choice(Player.P2),
            revealed=revealed,
            time_remaining_s=self._time_remaining_s,
            timer_s=self._rules.timer_s,
            first_responder=self._arbiter.first_responder,
            outcomes_recorded=len(self._sequencer.outcomes()),
        )

    def _begin_question(self, index: int) -> None:
        q = self._questions[index]
        self._phase = RunPhase.COLLECTING
        self._time_remaining_s = self._rules.timer_s
        self._arbiter.reset(option_count=len(q.options))
        self._reveal.arm()
        self._timer.start(self._rules.timer_s)

    def _on_tick(self, remaining_s: int) -> None:
        if self._phase is not RunPhase.COLLECTING:
            return
        self._time_remaining_s = remaining_s

    def _on_timer_expired(self) -> None:
        if self._phase is not RunPhase.COLLECTING:
            return
        self._reveal.timer_expired()

    def _on_reveal(self, trigger: RevealTrigger) -> None:
        if self._phase is not RunPhase.COLLECTING:
            return
        self._timer.cancel()
        self._arbiter.lock()
        self._phase = RunPhase.REVEALED

        outcome = build_outcome(
            self._sequencer.current,
            mode=self._mode,
            p1_choice=self._arbiter.choice(Player.P1),
            p2_choice=self._arbiter.choice(Player.P2),
            first_responder=self._arbiter.first_responder,
        )
        logger.debug(
            "Q%d revealed (%s): p1=%s p2=%s speed_winner=%s",
            self._sequencer.index + 1,
            trigger.value,
            outcome.p1_choice,
            outcome.p2_choice,
            outcome.speed_winner.value,
        )
        self._sequencer.record(outcome)

    def _finish(self, outcomes: list[OutcomeRecord]) -> None:
        self._teardown()
        self._phase = RunPhase.COMPLETED
        logger.info("Quiz run completed: %d outcomes", len(outcomes))
        if self._on_complete is not None:
            self._on_complete(list(outcomes))

    def _teardown(self) -> None:
        self._timer.cancel()
        self._reveal.cancel()
        self._sequencer.cancel()
        self._arbiter.lock()
        self._scheduler.cancel_all()
