"""
Streaming orchestrator for turns that use a built-in model capability
(web search grounding or server-side code execution) instead of tools.

Event order per turn:
    TextDelta*            - every streamed text fragment, as it arrives
    StructuredResponse?   - only if code ran; replaces the streamed text
    GroundingInfo?        - only if search grounding metadata arrived
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Union

from .conversation import build_history
from .event_bus import get_event_bus, CANCELLED, GROUNDING, LLM_CALL, TEXT_DELTA
from .llm.base import (
    PART_TEXT,
    Capability,
    GroundingSource,
    ImageData,
    LLMAdapter,
    ResponsePart,
)


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class StructuredResponse:
    """Ordered text/code/result/image parts of a code-execution answer."""
    parts: tuple[ResponsePart, ...]

    @property
    def text(self) -> str:
        """Text-only rendering (code and results fenced) for display and persistence."""
        blocks = []
        for part in self.parts:
            if part.type == PART_TEXT:
                blocks.append(part.text)
            elif part.type == "code":
                blocks.append(f"```{part.language.lower()}\n{part.text}\n```")
            elif part.type == "result":
                blocks.append(f"```\n{part.text}\n```")
        return "\n\n".join(b for b in blocks if b)


@dataclass(frozen=True)
class GroundingInfo:
    sources: tuple[GroundingSource, ...] = ()
    queries: tuple[str, ...] = ()


StreamEvent = Union[TextDelta, StructuredResponse, GroundingInfo]


def _merge_text(parts: list[ResponsePart]) -> list[ResponsePart]:
    """Join adjacent text fragments; other parts keep their position."""
    merged: list[ResponsePart] = []
    for part in parts:
        if part.type == PART_TEXT and merged and merged[-1].type == PART_TEXT:
            merged[-1] = ResponsePart(type=PART_TEXT, text=merged[-1].text + part.text)
        else:
            merged.append(part)
    return merged


def stream_chat(
    adapter: LLMAdapter,
    history: Sequence,
    user_message: str,
    persona: str | None = None,
    *,
    model: str,
    images: Sequence[ImageData] = (),
    capability: Capability = Capability.GOOGLE_SEARCH,
    cancel_event: threading.Event | None = None,
) -> Iterator[StreamEvent]:
    """Stream one turn, yielding TextDelta, then StructuredResponse and GroundingInfo when present.

    A set ``cancel_event`` stops consumption after the current yielded
    event or received chunk; what was already yielded stands. Provider
    exceptions propagate.
    """
    bus = get_event_bus()

    def cancelled() -> bool:
        if cancel_event is not None and cancel_event.is_set():
            bus.emit(CANCELLED, level="info", summary="[Stream] Cancelled by caller")
            return True
        return False

    if cancelled():
        return

    bus.emit(LLM_CALL, summary=f"[Stream] Sending message ({capability.value})",
             data={"model": model, "capability": capability.value})
    chunks = iter(adapter.stream(
        model,
        build_history(history, persona),
        adapter.make_user_message(user_message, images),
        capability,
    ))

    all_parts: list[ResponsePart] = []
    grounding = None
    has_code = False
    try:
        for chunk in chunks:
            for part in chunk.parts:
                all_parts.append(part)
                if part.type != PART_TEXT:
                    has_code = True
                    continue
                bus.emit(TEXT_DELTA, data={"text": part.text})
                yield TextDelta(part.text)
                if cancelled():
                    return
            if chunk.grounding is not None:
                grounding = chunk.grounding
            if cancelled():
                return
    finally:
        close = getattr(chunks, "close", None)
        if close is not None:
            close()

    if has_code:
        yield StructuredResponse(parts=tuple(_merge_text(all_parts)))
        if cancelled():
            return

    if grounding is not None:
        bus.emit(GROUNDING, level="info",
                 summary=f"[Stream] Grounded on {len(grounding.sources)} source(s)",
                 data={"sources": [s.uri for s in grounding.sources], "queries": list(grounding.queries)})
        yield GroundingInfo(sources=grounding.sources, queries=grounding.queries)
