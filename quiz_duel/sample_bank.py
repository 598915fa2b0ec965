from __future__ import annotations

import logging
import random

from .config import QUESTIONS_PER_QUIZ
from .duel_core import GameMode, Question

logger = logging.getLogger(__name__)

_GENERAL: tuple[Question, ...] = (
    Question("What is the capital of France?", ("Paris", "Lyon", "Nice"), 0),
    Question("How many continents are there?", ("5", "6", "7", "8"), 2),
    Question("Which planet is known as the Red Planet?", ("Venus", "Mars", "Jupiter", "Mercury"), 1),
    Question("What is the chemical symbol for gold?", ("Ag", "Au", "Gd", "Go"), 1),
    Question("Which ocean is the largest?", ("Atlantic", "Indian", "Pacific", "Arctic"), 2),
    Question("Who painted the Mona Lisa?", ("Michelangelo", "Leonardo da Vinci", "Raphael"), 1),
    Question("How many legs does a spider have?", ("6", "8", "10", "12"), 1),
    Question("What is the boiling point of water at sea level in Celsius?", ("90", "100", "110"), 1),
    Question("Which gas do plants absorb from the air?", ("Oxygen", "Nitrogen", "Carbon dioxide"), 2),
    Question("Is the Sun a star?", ("Yes", "No"), 0),
    Question("Which is the longest river in the world?", ("Amazon", "Nile", "Yangtze", "Danube"), 1),
    Question("How many minutes are in two hours?", ("100", "120", "140", "160"), 1),
)

_ODD_ONE_OUT: tuple[Question, ...] = (
    Question("Planets of the solar system", ("Mars", "Venus", "Sirius", "Saturn"), 2),
    Question("Primary colours of paint", ("Red", "Blue", "Green", "Yellow"), 2),
    Question("Mammals", ("Whale", "Bat", "Shark", "Dolphin"), 2),
    Question("Capital cities", ("Madrid", "Rome", "Barcelona", "Berlin"), 2),
    Question("String instruments", ("Violin", "Cello", "Flute", "Harp"), 2),
    Question("Prime numbers", ("7", "11", "15", "13"), 2),
    Question("Citrus fruits", ("Lemon", "Lime", "Orange", "Apple"), 3),
    Question("Programming languages", ("Python", "Cobra", "Rust", "Go"), 1),
    Question("Noble gases", ("Neon", "Argon", "Helium", "Oxygen"), 3),
    Question("Shakespeare plays", ("Hamlet", "Macbeth", "Othello", "Faust"), 3),
    Question("Olympic sports", ("Rowing", "Fencing", "Chess", "Judo"), 2),
)


class SampleQuestionSource:
    """Offline question bank, used when no model is configured.

    The topic is not used; questions are drawn from a small built-in pool.
    """

    def __init__(self, *, seed: int | None = None, count: int = QUESTIONS_PER_QUIZ) -> None:
        if count <= 0:
            raise ValueError("count must be > 0")
        self._rng = random.Random(seed)
        self._count = int(count)

    def generate(self, topic: str, mode: GameMode) -> list[Question]:
        pool = _ODD_ONE_OUT if GameMode(mode) is GameMode.ODD_ONE_OUT else _GENERAL
        logger.info("Serving %d sample questions (topic %r not used offline)", min(self._count, len(pool)), topic)
        picked = list(pool)
        self._rng.shuffle(picked)
        return picked[: self._count]
