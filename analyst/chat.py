"""
Chat service - runs one user turn end to end.

    route  ->  persona + dataset context  ->  orchestrator  ->  AssistantReply

Tool-path turns go through ``run_tool_turn``; everything else streams with
a built-in capability (search grounding or code execution). Provider
failures never escape: they are logged and returned as a visible
``"Error: ..."`` reply.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional

import config
from dataset_ops.dataset import Dataset
from dataset_ops.summary import summarize_dataset

from .conversation import persona_for
from .event_bus import get_event_bus, AGENT_RESPONSE, IMAGE_GENERATED, USER_MESSAGE
from .llm.base import Capability, ImageData, LLMAdapter
from .logging import log_error
from .prompts import (
    attached_table_context,
    default_message,
    display_text,
    table_context,
    video_context,
)
from .results import (
    CardResult,
    ChartResult,
    ErrorResult,
    GeneratedImageResult,
    ImageRequest,
    ToolCall,
    ToolResult,
)
from .routing import Route, choose_route, wants_python
from .session import MessageRecord
from .streaming import GroundingInfo, StructuredResponse, TextDelta, stream_chat
from .tool_handlers import execute_tool
from .tool_loop import COMPLETED, STOP_CANCELLED, run_tool_turn
from .tools import TABLE_TOOLSET, VIDEO_TOOLSET, get_toolset


@dataclass(frozen=True)
class AttachedTable:
    """A CSV attached on the current turn, with its raw text for code execution."""
    dataset: Dataset
    csv_text: str = ""


@dataclass
class AssistantReply:
    """The model's side of one turn, ready to display and persist."""
    text: str = ""
    route: Route = Route.SEARCH
    charts: list[ChartResult] = field(default_factory=list)
    cards: list[CardResult] = field(default_factory=list)
    images: list[GeneratedImageResult] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    structured: Optional[StructuredResponse] = None
    grounding: Optional[GroundingInfo] = None
    stop_reason: str = COMPLETED
    error: Optional[str] = None

    def to_record(self) -> MessageRecord:
        """Collapse to a MessageRecord; structured parts keep only their text rendering."""
        grounding = None
        if self.grounding is not None:
            grounding = {
                "sources": [{"uri": s.uri, "title": s.title} for s in self.grounding.sources],
                "queries": list(self.grounding.queries),
            }
        return MessageRecord(
            role="model",
            content=self.text,
            charts=[c.to_dict() for c in self.charts],
            cards=[c.to_dict() for c in self.cards],
            images=[i.to_dict() for i in self.images],
            tool_calls=[tc.to_dict() for tc in self.tool_calls],
            grounding=grounding,
            error=self.error is not None,
        )


def user_record(text: str, *, images: Sequence[ImageData] = (), videos_attached: bool = False) -> MessageRecord:
    """Persistable user message: display text only, never the prompt prefix."""
    return MessageRecord(
        role="user",
        content=display_text(text, has_images=bool(images), has_videos=videos_attached),
        images=[image.to_dict() for image in images],
    )


class ChatService:
    """Plays the caller role for both orchestrators."""

    def __init__(
        self,
        adapter: LLMAdapter,
        *,
        model: str | None = None,
        image_model: str | None = None,
        system_prompt: str = "",
    ):
        self.adapter = adapter
        self.model = model or config.SMART_MODEL
        self.image_model = image_model or config.IMAGE_MODEL
        self.system_prompt = system_prompt

    # ---- Image generation ----

    def generate_image(self, prompt: str, anchor: ImageData | None = None) -> ToolResult:
        """Resolve an ImageRequest into a GeneratedImageResult (or ErrorResult)."""
        try:
            image = self.adapter.generate_image(prompt, model=self.image_model, anchor=anchor)
        except Exception as e:
            log_error("Image generation failed", exc=e, context={"prompt": prompt})
            return ErrorResult(f"Image generation failed: {e}")
        if image is None:
            return ErrorResult(f"Image generation completed but no image was returned for: {prompt}")
        get_event_bus().emit(IMAGE_GENERATED, level="info",
                             summary=f"[Chat] Generated {image.mime_type} image",
                             data={"prompt": prompt, "mime_type": image.mime_type, "bytes": len(image.data)})
        return GeneratedImageResult(
            image_bytes=image.data,
            mime_type=image.mime_type,
            description=f"Generated image for: {prompt}",
        )

    def _executor(self, dataset: Dataset, images: Sequence[ImageData]) -> Callable[[str, dict], ToolResult | ImageRequest]:
        anchor = images[0] if images else None

        def execute(name: str, tool_args: dict):
            result = execute_tool(name, tool_args, dataset)
            if isinstance(result, ImageRequest):
                return self.generate_image(result.prompt, anchor=anchor)
            return result

        return execute

    # ---- Turn ----

    def reply(
        self,
        history: Sequence,
        text: str,
        *,
        videos: Dataset | None = None,
        table: Dataset | None = None,
        attached_table: AttachedTable | None = None,
        images: Sequence[ImageData] = (),
        user_name: str = "",
        cancel_event: threading.Event | None = None,
        on_chunk: Callable[[str], None] | None = None,
    ) -> AssistantReply:
        """Answer ``text`` given prior ``history`` and whatever data is attached.

        Args:
            history: Prior turns (``Turn``-like), oldest first.
            text: The user's message (may be empty when only attachments were sent).
            videos: Loaded video list, if any.
            table: Table loaded on an earlier turn, if any.
            attached_table: CSV attached on this turn, if any.
            images: Images attached to this turn; the first is the style anchor
                for image generation.
            user_name: Adds an address-by-name line to the persona.
            cancel_event: Set from another thread to stop the turn.
            on_chunk: Receives streamed text fragments (tool turns: the final text once).
        """
        bus = get_event_bus()
        table_ds = attached_table.dataset if attached_table is not None else table
        route = choose_route(
            text,
            has_videos=videos is not None,
            has_table=table_ds is not None,
            table_just_attached=attached_table is not None,
        )
        persona = persona_for(self.system_prompt, user_name)
        message = text or default_message(has_images=bool(images), has_videos=videos is not None)
        bus.emit(USER_MESSAGE, level="info", summary=f"[User] {text}",
                 data={"text": text, "route": route.value})

        try:
            if route.uses_tools:
                reply = self._tool_reply(route, history, message, persona, videos, table_ds,
                                         images, cancel_event)
                if on_chunk and reply.text:
                    on_chunk(reply.text)
            else:
                prefix = ""
                if attached_table is not None:
                    prefix = attached_table_context(
                        attached_table.dataset,
                        summarize_dataset(attached_table.dataset),
                        attached_table.csv_text,
                        include_loader=wants_python(text),
                    )
                elif table_ds is not None:
                    prefix = table_context(table_ds, summarize_dataset(table_ds))
                reply = self._stream_reply(route, history, prefix + message, persona,
                                           images, cancel_event, on_chunk)
        except Exception as e:
            context = {"route": route.value, "model": self.model}
            if self.adapter.is_quota_error(e):
                context["quota"] = True
            log_error("Chat turn failed", exc=e, context=context)
            return AssistantReply(text=f"Error: {e}", route=route, error=str(e))

        bus.emit(AGENT_RESPONSE, level="info", summary=f"[Agent] {reply.text}",
                 data={"route": route.value, "stop_reason": reply.stop_reason,
                       "tool_calls": len(reply.tool_calls)})
        return reply

    def _tool_reply(self, route, history, message, persona, videos, table, images, cancel_event) -> AssistantReply:
        if route is Route.VIDEO_TOOLS:
            dataset, toolset = videos, VIDEO_TOOLSET
            prefix = video_context(dataset, summarize_dataset(dataset))
        else:
            dataset, toolset = table, TABLE_TOOLSET
            prefix = table_context(dataset, summarize_dataset(dataset))

        turn = run_tool_turn(
            self.adapter,
            history,
            prefix + message,
            get_toolset(toolset),
            self._executor(dataset, images),
            persona,
            model=self.model,
            images=images,
            cancel_event=cancel_event,
        )
        return AssistantReply(
            text=turn.final_text,
            route=route,
            charts=turn.charts,
            cards=turn.cards,
            images=turn.images,
            tool_calls=turn.tool_calls,
            stop_reason=turn.stop_reason,
        )

    def _stream_reply(self, route, history, message, persona, images, cancel_event, on_chunk) -> AssistantReply:
        capability = (
            Capability.CODE_EXECUTION if route is Route.CODE_EXECUTION else Capability.GOOGLE_SEARCH
        )
        reply = AssistantReply(route=route)
        streamed: list[str] = []
        for event in stream_chat(
            self.adapter,
            history,
            message,
            persona,
            model=self.model,
            images=images,
            capability=capability,
            cancel_event=cancel_event,
        ):
            if isinstance(event, TextDelta):
                streamed.append(event.text)
                if on_chunk:
                    on_chunk(event.text)
            elif isinstance(event, StructuredResponse):
                reply.structured = event
            elif isinstance(event, GroundingInfo):
                reply.grounding = event

        reply.text = reply.structured.text if reply.structured is not None else "".join(streamed)
        if cancel_event is not None and cancel_event.is_set():
            reply.stop_reason = STOP_CANCELLED
        return reply
