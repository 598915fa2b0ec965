from __future__ import annotations


class QuizServiceError(Exception):
    """Base class for failures while preparing a quiz; carries the HTTP status to report."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTopicError(QuizServiceError):
    status_code = 400


class RateLimitedError(QuizServiceError):
    status_code = 429

    def __init__(self, message: str, *, remaining: int = 0, reset_at_s: float = 0.0) -> None:
        super().__init__(message)
        self.remaining = int(remaining)
        self.reset_at_s = float(reset_at_s)


class SourceNotConfiguredError(QuizServiceError):
    status_code = 500


class GenerationError(QuizServiceError):
    """The model call failed or its answer could not be turned into a usable quiz."""

    status_code = 500
