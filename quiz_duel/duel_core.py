from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GameMode(str, Enum):
    NORMAL = "normal"
    SPEED = "speed"
    ODD_ONE_OUT = "odd_one_out"


class Player(str, Enum):
    P1 = "p1"
    P2 = "p2"


class SpeedWinner(str, Enum):
    P1 = "p1"
    P2 = "p2"
    NONE = "none"


class RunPhase(str, Enum):
    INITIALIZING = "initializing"
    COLLECTING = "collecting"
    REVEALED = "revealed"
    COMPLETED = "completed"
    QUIT = "quit"


@dataclass(frozen=True, slots=True)
class ModeRules:
    timer_s: int
    hold_s: float
    grace_s: float = 0.6


MODE_RULES: dict[GameMode, ModeRules] = {
    GameMode.NORMAL: ModeRules(timer_s=30, hold_s=2.2),
    GameMode.SPEED: ModeRules(timer_s=15, hold_s=2.2),
    GameMode.ODD_ONE_OUT: ModeRules(timer_s=20, hold_s=4.0),
}


def rules_for(mode: GameMode) -> ModeRules:
    return MODE_RULES[GameMode(mode)]


MIN_OPTIONS = 2
MAX_OPTIONS = 4
ODD_ONE_OUT_OPTIONS = 4


@dataclass(frozen=True, slots=True)
class Question:
    text: str
    options: tuple[str, ...]
    answer_index: int  # correct option, or the odd one in ODD_ONE_OUT

    def is_playable(self, mode: GameMode) -> bool:
        n = len(self.options)
        if mode is GameMode.ODD_ONE_OUT and n != ODD_ONE_OUT_OPTIONS:
            return False
        if not (MIN_OPTIONS <= n <= MAX_OPTIONS):
            return False
        return 0 <= self.answer_index < n


@dataclass(frozen=True, slots=True)
class OutcomeRecord:
    question_text: str
    answer_index: int
    p1_choice: int | None
    p2_choice: int | None
    speed_winner: SpeedWinner = SpeedWinner.NONE

    @property
    def p1_correct(self) -> bool:
        return self.p1_choice == self.answer_index

    @property
    def p2_correct(self) -> bool:
        return self.p2_choice == self.answer_index


@dataclass(frozen=True, slots=True)
class RunSnapshot:
    """View model for the UI (pure data)."""

    phase: RunPhase
    mode: GameMode
    player1: str
    player2: str
    question_index: int
    question_count: int
    question_text: str
    options: tuple[str, ...]
    answer_index: int | None  # only disclosed once revealed
    p1_choice: int | None
    p2_choice: int | None
    revealed: bool
    time_remaining_s: int
    timer_s: int
    first_responder: Player | None
    outcomes_recorded: int
