"""Question sources: LLM-backed generation and an offline sample bank.

The LLM is asked for a bare JSON array of ``{question, answers, correctIndex}``
records. Replies are cleaned of markdown fences, validated record by record
with pydantic, filtered to what the requested mode can actually play, and
truncated to the quiz size. A reply with fewer usable records than the
configured minimum is rejected as a whole.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_ai import Agent

from .config import DEFAULT_MODEL, QUESTIONS_PER_QUIZ
from .duel_core import GameMode, Question
from .errors import GenerationError, SourceNotConfiguredError

logger = logging.getLogger(__name__)


class QuestionSource(Protocol):
    def generate(self, topic: str, mode: GameMode) -> list[Question]:
        ...


class QuestionRecord(BaseModel):
    """One question as the model returns it."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(min_length=1)
    answers: list[str]
    correct_index: int = Field(alias="correctIndex")

    def to_question(self) -> Question:
        return Question(
            text=self.question.strip(),
            options=tuple(str(a).strip() for a in self.answers),
            answer_index=int(self.correct_index),
        )


SYSTEM_PROMPT = (
    "You are an expert quiz author. You always answer with valid JSON only, "
    "without any markdown or code fences."
)

_RECORD_SHAPE = '{"question": "...", "answers": ["...", "..."], "correctIndex": 0}'


def build_prompt(topic: str, mode: GameMode, count: int = QUESTIONS_PER_QUIZ) -> str:
    mode = GameMode(mode)
    if mode is GameMode.ODD_ONE_OUT:
        rules = [
            f"Write exactly {count} odd-one-out puzzles about: \"{topic}\".",
            "Reply ONLY with a raw JSON array. Each element has this exact shape:",
            _RECORD_SHAPE,
            "Rules:",
            "- Every puzzle has EXACTLY 4 answers.",
            "- 3 answers share a common theme; 1 answer is the odd one out.",
            "- correctIndex is the 0-based index of the odd one out in answers.",
            "- \"question\" names the common theme of the other 3 (it is revealed afterwards).",
        ]
    else:
        rules = [
            f"Write exactly {count} quiz questions about: \"{topic}\".",
            "Reply ONLY with a raw JSON array. Each element has this exact shape:",
            _RECORD_SHAPE,
            "Rules:",
            "- Between 2 and 4 answers per question.",
            "- correctIndex is the 0-based index of the correct answer in answers.",
            "- Questions should be varied and interesting.",
        ]
        if mode is GameMode.SPEED:
            rules.append(
                "- Speed mode: keep questions SHORT and intuitive general knowledge that can be "
                "answered instantly. Avoid technical, precise or obscure questions."
            )
    rules.append("- Write everything in English.")
    return "\n".join(rules)


_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$")


def strip_code_fences(text: str) -> str:
    cleaned = str(text).strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_questions(
    text: str,
    *,
    mode: GameMode,
    count: int = QUESTIONS_PER_QUIZ,
    min_questions: int = 5,
) -> list[Question]:
    """Turn a raw model reply into at most ``count`` playable questions."""

    if count <= 0:
        raise ValueError("count must be > 0")
    if min_questions <= 0:
        raise ValueError("min_questions must be > 0")

    mode = GameMode(mode)
    try:
        payload: Any = json.loads(strip_code_fences(text))
    except ValueError as exc:
        raise GenerationError("The model reply is not valid JSON.") from exc
    if isinstance(payload, dict) and isinstance(payload.get("questions"), list):
        payload = payload["questions"]
    if not isinstance(payload, list):
        raise GenerationError("The model reply is not a list of questions.")

    questions: list[Question] = []
    for i, item in enumerate(payload):
        try:
            q = QuestionRecord.model_validate(item).to_question()
        except ValidationError as exc:
            logger.warning("Dropping malformed question #%d: %s", i, exc.errors()[:1])
            continue
        if not q.is_playable(mode):
            logger.warning("Dropping question #%d unusable in %s mode", i, mode.value)
            continue
        questions.append(q)
        if len(questions) >= count:
            break

    if len(questions) < min(min_questions, count):
        raise GenerationError(
            f"The model returned {len(questions)} usable questions; at least {min_questions} are needed."
        )
    return questions


def _build_google_model(api_key: str, model_name: str):
    """Build a Google Gemini model for pydantic-ai (lazy import)."""
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    return GoogleModel(model_name, provider=GoogleProvider(api_key=api_key))


class LlmQuestionSource:
    """Generates questions with a pydantic-ai Agent (Gemini unless a model is injected)."""

    def __init__(
        self,
        *,
        model: Any = None,
        api_key: str | None = None,
        model_name: str = DEFAULT_MODEL,
        count: int = QUESTIONS_PER_QUIZ,
        min_questions: int = 5,
    ) -> None:
        if model is None:
            if not api_key:
                raise SourceNotConfiguredError("GEMINI_API_KEY is not set.")
            model = _build_google_model(api_key, model_name)
        self._agent: Agent[None, str] = Agent(model, system_prompt=SYSTEM_PROMPT)
        self._count = int(count)
        self._min_questions = int(min_questions)

    def generate(self, topic: str, mode: GameMode) -> list[Question]:
        prompt = build_prompt(topic, mode, self._count)
        try:
            result = self._agent.run_sync(prompt)
        except Exception as exc:
            logger.exception("Question generation failed for topic %r", topic)
            raise GenerationError("Question generation failed.") from exc
        return parse_questions(
            str(result.output),
            mode=mode,
            count=self._count,
            min_questions=self._min_questions,
        )
