from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .duel_core import GameMode, Player
from .results import MatchResult

logger = logging.getLogger(__name__)

DEFAULT_P1_NAME = "Player 1"
DEFAULT_P2_NAME = "Player 2"


@dataclass(frozen=True, slots=True)
class ScoreHistory:
    p1_wins: int = 0
    p2_wins: int = 0
    ties: int = 0
    p1_name: str = DEFAULT_P1_NAME
    p2_name: str = DEFAULT_P2_NAME

    @property
    def games_played(self) -> int:
        return self.p1_wins + self.p2_wins + self.ties

    def to_dict(self) -> dict[str, Any]:
        return {
            "p1_wins": int(self.p1_wins),
            "p2_wins": int(self.p2_wins),
            "ties": int(self.ties),
            "p1_name": self.p1_name,
            "p2_name": self.p2_name,
        }

    @classmethod
    def from_dict(cls, data: object) -> "ScoreHistory":
        if not isinstance(data, dict):
            return cls()
        return cls(
            p1_wins=_as_count(data.get("p1_wins")),
            p2_wins=_as_count(data.get("p2_wins")),
            ties=_as_count(data.get("ties")),
            p1_name=str(data.get("p1_name") or DEFAULT_P1_NAME),
            p2_name=str(data.get("p2_name") or DEFAULT_P2_NAME),
        )


@dataclass(frozen=True, slots=True)
class SetupPreferences:
    """Last values entered on the setup screen."""

    player1: str = DEFAULT_P1_NAME
    player2: str = DEFAULT_P2_NAME
    mode: GameMode = GameMode.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {"player1": self.player1, "player2": self.player2, "mode": self.mode.value}

    @classmethod
    def from_dict(cls, data: object) -> "SetupPreferences":
        if not isinstance(data, dict):
            return cls()
        try:
            mode = GameMode(str(data.get("mode", GameMode.NORMAL.value)))
        except ValueError:
            mode = GameMode.NORMAL
        return cls(
            player1=str(data.get("player1") or DEFAULT_P1_NAME),
            player2=str(data.get("player2") or DEFAULT_P2_NAME),
            mode=mode,
        )


def _as_count(value: object) -> int:
    try:
        return max(0, int(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


class ScoreHistoryStore:
    """Cumulative win/loss/tie record plus remembered setup values, kept in one JSON file.

    Read and write failures are logged and otherwise ignored: a broken history
    file must never stop a game.
    """

    _version = 1

    def __init__(self, path: Path) -> None:
        self._path = path
        self._history = ScoreHistory()
        self._preferences = SetupPreferences()
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def history(self) -> ScoreHistory:
        return self._history

    def preferences(self) -> SetupPreferences:
        return self._preferences

    def save_preferences(self, preferences: SetupPreferences) -> None:
        self._preferences = preferences
        self.save()

    def record(self, result: MatchResult, *, p1_name: str, p2_name: str) -> ScoreHistory:
        h = self._history
        winner = result.winner
        self._history = ScoreHistory(
            p1_wins=h.p1_wins + (1 if winner is Player.P1 else 0),
            p2_wins=h.p2_wins + (1 if winner is Player.P2 else 0),
            ties=h.ties + (1 if winner is None else 0),
            p1_name=p1_name,
            p2_name=p2_name,
        )
        self.save()
        return self._history

    def reset(self) -> None:
        self._history = ScoreHistory(p1_name=self._history.p1_name, p2_name=self._history.p2_name)
        self.save()

    def save(self) -> None:
        payload = {
            "version": self._version,
            "history": self._history.to_dict(),
            "preferences": self._preferences.to_dict(),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("Could not write score history to %s: %s", self._path, exc)

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable score history %s: %s", self._path, exc)
            return
        if not isinstance(payload, dict):
            return
        self._history = ScoreHistory.from_dict(payload.get("history"))
        self._preferences = SetupPreferences.from_dict(payload.get("preferences"))
