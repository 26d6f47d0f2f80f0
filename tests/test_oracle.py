# tests/test_oracle.py

from __future__ import annotations

from timepilot.llm.offline import OfflineLLMClient
from timepilot.llm.oracle import (
    CLASSIFY_SYSTEM_PROMPT,
    PHRASE_SYSTEM_PROMPT,
    LLMClassificationOracle,
    extract_json_object,
    parse_verdict,
)

from .fakes import FakeLLMClient, past


def test_parse_verdict_strict_json() -> None:
    v = parse_verdict(
        '{"family": "grocery", "similar_indices": [0, 2], "avg_actual": 95,'
        ' "suggested_duration": 95, "message": "Takes longer than you think."}'
    )
    assert v is not None
    assert v.family == "grocery"
    assert v.similar_indices == [0, 2]
    assert v.suggested_minutes == 95
    assert v.message == "Takes longer than you think."


def test_parse_verdict_json_wrapped_in_prose() -> None:
    v = parse_verdict('Here you go:\n```json\n{"family": "workout", "similarIndices": [1]}\n```')
    assert v is not None
    assert v.family == "workout"
    assert v.similar_indices == [1]
    assert v.suggested_minutes is None
    assert v.message is None


def test_parse_verdict_rejects_garbage() -> None:
    assert parse_verdict(None) is None
    assert parse_verdict("") is None
    assert parse_verdict("no json here") is None
    assert parse_verdict("{broken") is None
    assert parse_verdict("[1, 2, 3]") is None


def test_parse_verdict_coerces_indices_and_minutes() -> None:
    v = parse_verdict(
        '{"family": "  ", "similar_indices": [1, "2", 3.0, 4.5, -1, true, "x"],'
        ' "suggested_duration": "47.6", "message": "   "}'
    )
    assert v is not None
    assert v.family is None
    assert v.similar_indices == [1, 2, 3]
    assert v.suggested_minutes == 48
    assert v.message is None


def test_parse_verdict_ignores_non_positive_suggestion() -> None:
    v = parse_verdict('{"family": null, "similar_indices": "0", "suggested_minutes": 0}')
    assert v is not None
    assert v.similar_indices == []
    assert v.suggested_minutes is None


def test_extract_json_object() -> None:
    assert extract_json_object('{"a": 1}') == '{"a": 1}'
    assert extract_json_object('x {"a": {"b": 2}} y') == '{"a": {"b": 2}}'
    assert extract_json_object("plain") == "plain"


def test_classify_sends_indexed_history() -> None:
    llm = FakeLLMClient('{"family": "grocery", "similar_indices": [1]}')
    oracle = LLMClassificationOracle(llm)

    v = oracle.classify("Grocery run", 30, [past("Gym", 45), past("Groceries", 80, estimated=None)])

    assert v is not None
    assert v.similar_indices == [1]
    messages, system_prompt = llm.calls[0]
    assert system_prompt == CLASSIFY_SYSTEM_PROMPT
    content = messages[0]["content"]
    assert "Title: Grocery run" in content
    assert "Estimated: 30 minutes" in content
    assert "0: Gym - estimated 30m, actual 45m" in content
    assert "1: Groceries - estimated N/A, actual 80m" in content


def test_classify_without_history_skips_the_call() -> None:
    llm = FakeLLMClient("{}")
    assert LLMClassificationOracle(llm).classify("x", 10, []) is None
    assert llm.calls == []


def test_classify_swallows_client_errors() -> None:
    class Boom:
        def stream_chat(self, messages, system_prompt):
            raise RuntimeError("network down")
            yield ""  # pragma: no cover

    assert LLMClassificationOracle(Boom()).classify("x", 10, [past("x", 20)]) is None


def test_phrase_returns_text_or_none() -> None:
    llm = FakeLLMClient("  Give it about 90 minutes.  ")
    oracle = LLMClassificationOracle(llm)
    text = oracle.phrase("Grocery", 30, 90, [past("Groceries", 90)])
    assert text == "Give it about 90 minutes."
    assert llm.calls[0][1] == PHRASE_SYSTEM_PROMPT
    assert "Typical actual duration of similar tasks: 90 minutes" in llm.calls[0][0][0]["content"]

    assert LLMClassificationOracle(FakeLLMClient("")).phrase("Grocery", 30, 90, []) is None


def test_offline_client_has_no_opinion() -> None:
    oracle = LLMClassificationOracle(OfflineLLMClient())
    v = oracle.classify("Grocery", 30, [past("Groceries", 90)])
    assert v is not None
    assert v.family is None
    assert v.similar_indices == []
    assert oracle.phrase("Grocery", 30, 90, [past("Groceries", 90)]) is None
