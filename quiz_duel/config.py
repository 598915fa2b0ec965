from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "gemini-2.5-flash"
QUESTIONS_PER_QUIZ = 10


def default_history_path() -> Path:
    return Path.home() / ".quiz_duel_history.json"


class Settings(BaseSettings):
    """Runtime settings, read from the environment (and a local ``.env``).

    Malformed values fail validation at startup instead of being replaced
    by defaults; out-of-range numbers are clamped.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
    )

    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    model_name: str = Field(default=DEFAULT_MODEL, alias="QUIZ_DUEL_MODEL")
    question_count: int = Field(default=QUESTIONS_PER_QUIZ, alias="QUIZ_DUEL_QUESTION_COUNT")
    # Smallest generated quiz still accepted.
    min_questions: int = Field(default=5, alias="QUIZ_DUEL_MIN_QUESTIONS")
    rate_limit: int = Field(default=3, alias="QUIZ_DUEL_RATE_LIMIT")
    rate_window_s: float = Field(default=60.0, alias="QUIZ_DUEL_RATE_WINDOW_S")
    history_path: Path = Field(default_factory=default_history_path, alias="QUIZ_DUEL_HISTORY_PATH")
    log_level: str = Field(default="INFO", alias="QUIZ_DUEL_LOG_LEVEL")
    offline: bool = Field(default=False, alias="QUIZ_DUEL_OFFLINE")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls()

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("model_name", mode="before")
    @classmethod
    def _model_or_default(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or DEFAULT_MODEL
        return value

    @field_validator("question_count", "rate_limit")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        return max(1, value)

    @field_validator("min_questions")
    @classmethod
    def _clamp_min_questions(cls, value: int, info: ValidationInfo) -> int:
        count = info.data.get("question_count", QUESTIONS_PER_QUIZ)
        return max(1, min(value, count))

    @field_validator("rate_window_s")
    @classmethod
    def _at_least_one_second(cls, value: float) -> float:
        return max(1.0, value)

    @field_validator("history_path")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value
