from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import Settings
from .duel_core import GameMode, Question
from .errors import QuizServiceError, RateLimitedError
from .quiz_service import QuizService, build_quiz_service

logger = logging.getLogger(__name__)


class GenerateQuizRequest(BaseModel):
    topic: str = ""
    mode: GameMode = GameMode.NORMAL


class QuestionOut(BaseModel):
    question: str
    answers: list[str]
    correct_index: int = Field(serialization_alias="correctIndex")

    @classmethod
    def from_question(cls, q: Question) -> "QuestionOut":
        return cls(question=q.text, answers=list(q.options), correct_index=q.answer_index)


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client is not None and request.client.host:
        return request.client.host
    return "anonymous"


def create_app(service: QuizService | None = None) -> FastAPI:
    app = FastAPI(title="Quiz Duel")
    app.state.quiz_service = service or build_quiz_service(Settings.from_env())

    # Sync handler: the model call blocks, so FastAPI runs it in its threadpool.
    @app.post("/api/generate-quiz")
    def generate_quiz(body: GenerateQuizRequest, request: Request):
        quiz_service: QuizService = request.app.state.quiz_service
        client = client_address(request)
        try:
            questions = quiz_service.generate(body.topic, body.mode, client=client)
        except RateLimitedError as exc:
            return JSONResponse(
                {"error": exc.message},
                status_code=exc.status_code,
                headers={"X-RateLimit-Remaining": str(exc.remaining)},
            )
        except QuizServiceError as exc:
            if exc.status_code >= 500:
                logger.error("generate-quiz failed for %s: %s", client, exc.message)
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)

        return {
            "questions": [QuestionOut.from_question(q).model_dump(by_alias=True) for q in questions],
        }

    return app


def serve(*, host: str = "127.0.0.1", port: int = 8000) -> int:
    uvicorn.run(create_app(), host=host, port=port)
    return 0
