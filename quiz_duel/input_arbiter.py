from __future__ import annotations

from dataclasses import dataclass

from .duel_core import Player

# Slot order matters: the n-th key of a zone picks option n.
P1_KEYS: tuple[str, ...] = ("a", "z", "e", "r")
P2_KEYS: tuple[str, ...] = ("u", "i", "o", "p")
P2_ALT_KEYS: tuple[str, ...] = ("1", "2", "3", "4")


@dataclass(frozen=True, slots=True)
class KeyPress:
    player: Player
    slot: int


class KeyZones:
    """Two disjoint four-key zones, one per player."""

    def __init__(
        self,
        *,
        p1: tuple[str, ...] = P1_KEYS,
        p2: tuple[str, ...] = P2_KEYS,
        p2_alt: tuple[str, ...] = P2_ALT_KEYS,
    ) -> None:
        table: dict[str, KeyPress] = {}
        for player, keys in ((Player.P1, p1), (Player.P2, p2), (Player.P2, p2_alt)):
            for slot, key in enumerate(keys):
                norm = str(key).lower()
                if norm in table:
                    raise ValueError(f"key {key!r} is bound twice")
                table[norm] = KeyPress(player=player, slot=slot)
        self._table = table
        self._labels = {Player.P1: tuple(p1), Player.P2: tuple(p2)}

    def resolve(self, key: str) -> KeyPress | None:
        return self._table.get(str(key).lower())

    def labels(self, player: Player) -> tuple[str, ...]:
        return self._labels[player]


class InputArbiter:
    """Per-question answer capture for both players.

    A player's first in-range key wins; anything after that is ignored until
    ``reset()``. In speed mode the first accepted key also claims the
    first-responder slot, which is never reassigned within a question.
    """

    def __init__(self, zones: KeyZones | None = None, *, track_first_responder: bool = False) -> None:
        self._zones = zones or KeyZones()
        self._track_first = bool(track_first_responder)
        self._choices: dict[Player, int | None] = {Player.P1: None, Player.P2: None}
        self._first: Player | None = None
        self._option_count = 0
        self._locked = True

    @property
    def zones(self) -> KeyZones:
        return self._zones

    @property
    def first_responder(self) -> Player | None:
        return self._first

    def choice(self, player: Player) -> int | None:
        return self._choices[player]

    def both_answered(self) -> bool:
        return all(c is not None for c in self._choices.values())

    def reset(self, *, option_count: int) -> None:
        self._choices = {Player.P1: None, Player.P2: None}
        self._first = None
        self._option_count = int(option_count)
        self._locked = False

    def lock(self) -> None:
        self._locked = True

    def accept(self, key: str) -> KeyPress | None:
        """Apply a raw key. Returns the accepted press, or None when ignored."""

        if self._locked:
            return None
        press = self._zones.resolve(key)
        if press is None:
            return None
        if press.slot >= self._option_count:
            return None
        if self._choices[press.player] is not None:
            return None

        self._choices[press.player] = press.slot
        if self._track_first and self._first is None:
            self._first = press.player
        return press
