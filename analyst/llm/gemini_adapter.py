"""Gemini adapter - wraps all google-genai SDK calls.

This is the **only** module in the project that imports ``google.genai``.
All other code talks to Gemini through the :class:`GeminiAdapter` and
:class:`GeminiChatSession` interfaces defined here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any

from google import genai
from google.genai import errors as genai_errors, types

from .base import (
    PART_CODE,
    PART_IMAGE,
    PART_RESULT,
    PART_TEXT,
    Capability,
    ChatSession,
    FunctionCall,
    FunctionSchema,
    Grounding,
    GroundingSource,
    ImageData,
    LLMAdapter,
    LLMResponse,
    ResponsePart,
    StreamChunk,
    UsageMetadata,
)
from ..logging import LOGGER_NAME, tagged

logger = logging.getLogger(LOGGER_NAME)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _build_function_declarations(
    tools: list[FunctionSchema] | None,
) -> list[types.FunctionDeclaration] | None:
    """Convert our FunctionSchema list to Gemini FunctionDeclaration list."""
    if not tools:
        return None
    return [
        types.FunctionDeclaration(
            name=t.name,
            description=t.description,
            parameters=t.parameters,
        )
        for t in tools
    ]


def _capability_tool(capability: Capability) -> types.Tool:
    if capability is Capability.CODE_EXECUTION:
        return types.Tool(code_execution=types.ToolCodeExecution())
    return types.Tool(google_search=types.GoogleSearch())


def _enum_str(value: Any) -> str:
    """SDK enums are str-valued; fall back to str() for anything else."""
    if value is None:
        return ""
    return str(getattr(value, "value", value))


def _first_candidate(raw):
    candidates = getattr(raw, "candidates", None) or []
    return candidates[0] if candidates else None


def _candidate_parts(raw) -> list:
    candidate = _first_candidate(raw)
    content = getattr(candidate, "content", None) if candidate else None
    return list(getattr(content, "parts", None) or [])


def _parse_response(raw) -> LLMResponse:
    """Parse a raw Gemini response into a provider-agnostic LLMResponse."""
    text_parts: list[str] = []
    function_calls: list[FunctionCall] = []

    for part in _candidate_parts(raw):
        if getattr(part, "thought", False):
            continue
        fc = getattr(part, "function_call", None)
        if fc and fc.name:
            function_calls.append(FunctionCall(
                name=fc.name.removeprefix("default_api:"),
                args=dict(fc.args) if fc.args else {},
                id=getattr(fc, "id", None),
            ))
        elif getattr(part, "text", None):
            text_parts.append(part.text)

    meta = getattr(raw, "usage_metadata", None)
    usage = UsageMetadata(
        input_tokens=getattr(meta, "prompt_token_count", 0) or 0,
        output_tokens=getattr(meta, "candidates_token_count", 0) or 0,
    ) if meta else UsageMetadata()

    return LLMResponse(
        text="".join(text_parts),
        function_calls=function_calls,
        usage=usage,
        raw=raw,
    )


def _parse_part(part) -> ResponsePart | None:
    """Map one SDK part onto a typed ResponsePart (None for parts we don't surface)."""
    if getattr(part, "thought", False):
        return None
    code = getattr(part, "executable_code", None)
    if code is not None:
        return ResponsePart(
            type=PART_CODE,
            text=code.code or "",
            language=_enum_str(code.language) or "PYTHON",
        )
    result = getattr(part, "code_execution_result", None)
    if result is not None:
        return ResponsePart(
            type=PART_RESULT,
            text=result.output or "",
            outcome=_enum_str(result.outcome),
        )
    inline = getattr(part, "inline_data", None)
    if inline is not None and (inline.mime_type or "").startswith("image/"):
        return ResponsePart(
            type=PART_IMAGE,
            image=ImageData(data=inline.data or b"", mime_type=inline.mime_type),
        )
    if getattr(part, "text", None):
        return ResponsePart(type=PART_TEXT, text=part.text)
    return None


def _parse_grounding(raw) -> Grounding | None:
    """Extract web sources and search queries from a candidate's grounding metadata."""
    candidate = _first_candidate(raw)
    meta = getattr(candidate, "grounding_metadata", None) if candidate else None
    if meta is None:
        return None
    sources = []
    for chunk in getattr(meta, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        if web is not None and getattr(web, "uri", None):
            sources.append(GroundingSource(uri=web.uri, title=getattr(web, "title", None) or ""))
    queries = tuple(getattr(meta, "web_search_queries", None) or ())
    if not sources and not queries:
        return None
    return Grounding(sources=tuple(sources), queries=queries)


def _parse_chunk(raw) -> StreamChunk:
    parts = [p for p in (_parse_part(part) for part in _candidate_parts(raw)) if p is not None]
    return StreamChunk(parts=parts, grounding=_parse_grounding(raw))


# ---------------------------------------------------------------------------
# GeminiChatSession
# ---------------------------------------------------------------------------

class GeminiChatSession(ChatSession):
    """Wraps a ``genai`` chat session."""

    def __init__(self, chat):
        self._chat = chat

    def send(self, message) -> LLMResponse:
        """Send a message (text, Part list, or function-response Part) and parse the response."""
        raw = self._chat.send_message(message)
        return _parse_response(raw)


# ---------------------------------------------------------------------------
# GeminiAdapter
# ---------------------------------------------------------------------------

class GeminiAdapter(LLMAdapter):
    """Adapter that wraps all ``google-genai`` SDK calls."""

    def __init__(self, api_key: str, timeout_ms: int = 300_000):
        # No retry options: a failed turn is surfaced to the user, not retried.
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout_ms),
        )

    # -- LLMAdapter interface --------------------------------------------------

    def create_chat(
        self,
        model: str,
        tools: list[FunctionSchema] | None = None,
        *,
        history: list[dict] | None = None,
        capability: Capability | None = None,
    ) -> ChatSession:
        config_kwargs: dict[str, Any] = {}
        fds = _build_function_declarations(tools)
        if fds:
            config_kwargs["tools"] = [types.Tool(function_declarations=fds)]
        elif capability is not None:
            config_kwargs["tools"] = [_capability_tool(capability)]

        create_kwargs: dict[str, Any] = {
            "model": model,
            "config": types.GenerateContentConfig(**config_kwargs),
        }
        if history:
            create_kwargs["history"] = history

        chat = self._client.chats.create(**create_kwargs)
        return GeminiChatSession(chat)

    def stream(
        self,
        model: str,
        history: list[dict],
        message: Any,
        capability: Capability = Capability.GOOGLE_SEARCH,
    ) -> Iterator[StreamChunk]:
        chat = self._client.chats.create(
            model=model,
            config=types.GenerateContentConfig(tools=[_capability_tool(capability)]),
            history=history or None,
        )
        for raw in chat.send_message_stream(message):
            yield _parse_chunk(raw)

    def make_user_message(self, text: str, images: Sequence[ImageData] = ()) -> Any:
        if not images:
            return text
        return [types.Part.from_text(text=text)] + [
            types.Part.from_bytes(data=img.data, mime_type=img.mime_type or "image/png")
            for img in images
        ]

    def make_tool_result_message(self, tool_name: str, payload: dict) -> Any:
        # Gemini matches function responses by name.
        return types.Part.from_function_response(
            name=tool_name,
            response={"result": payload},
        )

    def generate_image(
        self,
        prompt: str,
        *,
        model: str,
        anchor: ImageData | None = None,
    ) -> ImageData | None:
        contents: list[Any] = [types.Part.from_text(text=prompt)]
        if anchor is not None and anchor.data:
            contents.append(
                types.Part.from_bytes(data=anchor.data, mime_type=anchor.mime_type or "image/png")
            )
        raw = self._client.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        for part in _candidate_parts(raw):
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return ImageData(data=inline.data, mime_type=inline.mime_type or "image/png")
        logger.debug("[Gemini] Image model returned no inline image", extra=tagged("llm"))
        return None

    def is_quota_error(self, exc: Exception) -> bool:
        if isinstance(exc, genai_errors.ClientError):
            return getattr(exc, "code", None) == 429 or "RESOURCE_EXHAUSTED" in str(exc)
        return False
