"""Response parsing against SDK-shaped stand-ins (no network)."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from analyst.llm.base import PART_CODE, PART_IMAGE, PART_RESULT, PART_TEXT, ImageData
from analyst.llm.gemini_adapter import (
    GeminiAdapter,
    _parse_chunk,
    _parse_grounding,
    _parse_part,
    _parse_response,
)


def _raw(parts, grounding_metadata=None, usage=None):
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=parts),
        grounding_metadata=grounding_metadata,
    )
    return SimpleNamespace(candidates=[candidate], usage_metadata=usage)


def test_parse_function_call_strips_prefix_and_skips_thoughts() -> None:
    raw = _raw(
        [
            SimpleNamespace(thought=True, text="thinking..."),
            SimpleNamespace(function_call=SimpleNamespace(
                name="default_api:compute_stats", args={"field": "viewCount"}, id="c1",
            )),
        ],
        usage=SimpleNamespace(prompt_token_count=12, candidates_token_count=3),
    )

    response = _parse_response(raw)

    assert response.text == ""
    [fc] = response.function_calls
    assert fc.name == "compute_stats"
    assert fc.args == {"field": "viewCount"}
    assert fc.id == "c1"
    assert response.usage.input_tokens == 12
    assert response.usage.output_tokens == 3


def test_parse_text_response() -> None:
    response = _parse_response(_raw([SimpleNamespace(text="Hello "), SimpleNamespace(text="there")]))

    assert response.text == "Hello there"
    assert response.function_calls == []


def test_empty_candidates() -> None:
    response = _parse_response(SimpleNamespace(candidates=None, usage_metadata=None))

    assert response.text == ""
    assert response.function_calls == []


def test_parse_parts() -> None:
    code = _parse_part(SimpleNamespace(executable_code=SimpleNamespace(code="print(2)", language="PYTHON")))
    result = _parse_part(SimpleNamespace(code_execution_result=SimpleNamespace(output="2\n", outcome="OUTCOME_OK")))
    image = _parse_part(SimpleNamespace(inline_data=SimpleNamespace(data=b"\x89PNG", mime_type="image/png")))
    text = _parse_part(SimpleNamespace(text="hi"))

    assert (code.type, code.text, code.language) == (PART_CODE, "print(2)", "PYTHON")
    assert (result.type, result.text, result.outcome) == (PART_RESULT, "2\n", "OUTCOME_OK")
    assert image.type == PART_IMAGE
    assert image.image == ImageData(b"\x89PNG", "image/png")
    assert (text.type, text.text) == (PART_TEXT, "hi")
    assert _parse_part(SimpleNamespace(thought=True, text="hidden")) is None
    assert _parse_part(SimpleNamespace(inline_data=SimpleNamespace(data=b"x", mime_type="text/csv"))) is None


def test_parse_grounding() -> None:
    meta = SimpleNamespace(
        grounding_chunks=[
            SimpleNamespace(web=SimpleNamespace(uri="https://a.example", title="A")),
            SimpleNamespace(web=None),
        ],
        web_search_queries=["query one"],
    )

    grounding = _parse_grounding(_raw([], grounding_metadata=meta))

    assert [s.uri for s in grounding.sources] == ["https://a.example"]
    assert grounding.queries == ("query one",)
    empty = SimpleNamespace(grounding_chunks=[], web_search_queries=None)
    assert _parse_grounding(_raw([], grounding_metadata=empty)) is None


def test_parse_chunk() -> None:
    chunk = _parse_chunk(_raw([SimpleNamespace(text="partial"), SimpleNamespace(thought=True, text="x")]))

    assert [p.text for p in chunk.parts] == ["partial"]
    assert chunk.grounding is None


@pytest.fixture
def adapter():
    return GeminiAdapter(api_key="test-key")


def test_user_message_shapes(adapter) -> None:
    assert adapter.make_user_message("hi") == "hi"

    parts = adapter.make_user_message("describe", [ImageData(b"img", "image/jpeg")])

    assert parts[0].text == "describe"
    assert parts[1].inline_data.data == b"img"
    assert parts[1].inline_data.mime_type == "image/jpeg"


def test_tool_result_message(adapter) -> None:
    part = adapter.make_tool_result_message("compute_stats", {"mean": 1.5})

    assert part.function_response.name == "compute_stats"
    assert part.function_response.response == {"result": {"mean": 1.5}}


def test_quota_detection(adapter) -> None:
    from google.genai import errors as genai_errors

    quota = genai_errors.ClientError(
        429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}
    )

    assert adapter.is_quota_error(quota)
    assert not adapter.is_quota_error(RuntimeError("429"))
