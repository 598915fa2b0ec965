from __future__ import annotations

import json

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from quiz_duel.duel_core import GameMode
from quiz_duel.errors import GenerationError, SourceNotConfiguredError
from quiz_duel.question_source import (
    LlmQuestionSource,
    build_prompt,
    parse_questions,
    strip_code_fences,
)
from quiz_duel.sample_bank import SampleQuestionSource


def _records(n: int, *, answers: int = 4) -> list[dict]:
    return [
        {
            "question": f"Question {i}?",
            "answers": [f"opt{j}" for j in range(answers)],
            "correctIndex": i % answers,
        }
        for i in range(n)
    ]


def test_strip_code_fences() -> None:
    assert strip_code_fences('```json\n[1, 2]\n```') == "[1, 2]"
    assert strip_code_fences("```\n[]\n```  ") == "[]"
    assert strip_code_fences("  [3]  ") == "[3]"


def test_parse_accepts_fenced_reply_and_maps_fields() -> None:
    text = "```json\n" + json.dumps(_records(6)) + "\n```"
    questions = parse_questions(text, mode=GameMode.NORMAL)

    assert len(questions) == 6
    assert questions[0].text == "Question 0?"
    assert questions[0].options == ("opt0", "opt1", "opt2", "opt3")
    assert questions[1].answer_index == 1


def test_parse_truncates_to_count() -> None:
    questions = parse_questions(json.dumps(_records(14)), mode=GameMode.SPEED, count=10)
    assert len(questions) == 10


def test_parse_accepts_wrapped_object() -> None:
    questions = parse_questions(json.dumps({"questions": _records(5)}), mode=GameMode.NORMAL)
    assert len(questions) == 5


def test_parse_drops_malformed_and_unplayable_records() -> None:
    records = _records(5)
    records.append({"question": "missing answers", "correctIndex": 0})
    records.append({"question": "one answer", "answers": ["x"], "correctIndex": 0})
    records.append({"question": "bad index", "answers": ["x", "y"], "correctIndex": 9})
    records.append("not even an object")

    questions = parse_questions(json.dumps(records), mode=GameMode.NORMAL)
    assert [q.text for q in questions] == [f"Question {i}?" for i in range(5)]


def test_odd_one_out_requires_four_answers() -> None:
    records = _records(5, answers=4) + _records(3, answers=3)
    questions = parse_questions(json.dumps(records), mode=GameMode.ODD_ONE_OUT)
    assert len(questions) == 5
    assert all(len(q.options) == 4 for q in questions)


def test_too_few_usable_questions_rejected() -> None:
    with pytest.raises(GenerationError):
        parse_questions(json.dumps(_records(4)), mode=GameMode.NORMAL, min_questions=5)


def test_invalid_json_and_non_list_rejected() -> None:
    with pytest.raises(GenerationError):
        parse_questions("Sure! Here are your questions:", mode=GameMode.NORMAL)
    with pytest.raises(GenerationError):
        parse_questions('{"question": "x"}', mode=GameMode.NORMAL)


def test_prompt_mentions_topic_and_mode_rules() -> None:
    normal = build_prompt("Volcanoes", GameMode.NORMAL, 10)
    odd = build_prompt("Volcanoes", GameMode.ODD_ONE_OUT, 10)
    speed = build_prompt("Volcanoes", GameMode.SPEED, 10)

    assert '"Volcanoes"' in normal
    assert "exactly 10" in normal
    assert "EXACTLY 4 answers" in odd
    assert "Speed mode" in speed
    assert "Speed mode" not in normal


def test_llm_source_parses_model_reply() -> None:
    prompts: list[str] = []

    def reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        prompts.append(str(messages[-1]))
        return ModelResponse(parts=[TextPart(content="```json\n" + json.dumps(_records(12)) + "\n```")])

    source = LlmQuestionSource(model=FunctionModel(reply), count=10)
    questions = source.generate("Rivers", GameMode.NORMAL)

    assert len(questions) == 10
    assert len(prompts) == 1
    assert "Rivers" in prompts[0]


def test_llm_source_wraps_model_failures() -> None:
    def boom(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise RuntimeError("upstream down")

    source = LlmQuestionSource(model=FunctionModel(boom))
    with pytest.raises(GenerationError):
        source.generate("Rivers", GameMode.NORMAL)


def test_llm_source_needs_key_or_model() -> None:
    with pytest.raises(SourceNotConfiguredError):
        LlmQuestionSource(api_key=None)


def test_sample_source_is_seeded_and_mode_aware() -> None:
    a = SampleQuestionSource(seed=3).generate("x", GameMode.NORMAL)
    b = SampleQuestionSource(seed=3).generate("y", GameMode.NORMAL)
    odd = SampleQuestionSource(seed=3).generate("x", GameMode.ODD_ONE_OUT)

    assert a == b
    assert len(a) == 10
    assert all(q.is_playable(GameMode.NORMAL) for q in a)
    assert all(q.is_playable(GameMode.ODD_ONE_OUT) for q in odd)
