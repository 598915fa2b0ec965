from __future__ import annotations

import logging

from .clock import Clock, RealClock
from .config import Settings
from .duel_core import GameMode, Question
from .errors import InvalidTopicError, RateLimitedError, SourceNotConfiguredError
from .question_source import LlmQuestionSource, QuestionSource
from .sample_bank import SampleQuestionSource
from .throttle import RequestThrottle

logger = logging.getLogger(__name__)

MAX_TOPIC_LENGTH = 200


class QuizService:
    """Throttled front door to a QuestionSource.

    Shared by the HTTP endpoint (keyed by client address) and the desktop game
    (keyed by a fixed local id). Checks run in this order: quota, source
    availability, topic.
    """

    def __init__(self, *, source: QuestionSource | None, throttle: RequestThrottle) -> None:
        self._source = source
        self._throttle = throttle

    @property
    def configured(self) -> bool:
        return self._source is not None

    def generate(self, topic: str, mode: GameMode, *, client: str = "local") -> list[Question]:
        decision = self._throttle.check(client)
        if not decision.allowed:
            logger.info("Rate limited client %s", client)
            raise RateLimitedError(
                "Too many requests. Please wait a minute.",
                remaining=decision.remaining,
                reset_at_s=decision.reset_at_s,
            )
        if self._source is None:
            raise SourceNotConfiguredError("No question source configured (set GEMINI_API_KEY).")

        cleaned = str(topic or "").strip()
        if cleaned == "":
            raise InvalidTopicError("Please enter a topic.")
        cleaned = cleaned[:MAX_TOPIC_LENGTH]

        mode = GameMode(mode)
        logger.info("Generating %s quiz on %r for %s", mode.value, cleaned, client)
        questions = self._source.generate(cleaned, mode)
        logger.info("Generated %d questions", len(questions))
        return questions


def build_question_source(settings: Settings) -> QuestionSource | None:
    if settings.offline:
        return SampleQuestionSource(count=settings.question_count)
    if not settings.gemini_api_key:
        return None
    return LlmQuestionSource(
        api_key=settings.gemini_api_key,
        model_name=settings.model_name,
        count=settings.question_count,
        min_questions=settings.min_questions,
    )


def build_quiz_service(settings: Settings, *, clock: Clock | None = None) -> QuizService:
    throttle = RequestThrottle(
        clock=clock or RealClock(),
        limit=settings.rate_limit,
        window_s=settings.rate_window_s,
    )
    return QuizService(source=build_question_source(settings), throttle=throttle)
