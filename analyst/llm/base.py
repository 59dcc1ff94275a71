"""Provider-agnostic types and abstract base class for LLM adapters.

All orchestrator code should depend on these types, never on provider-specific SDKs.
"""

from __future__ import annotations

import base64
import enum
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class FunctionCall:
    """A single function invocation proposed by the model.

    Attributes:
        name: Tool/function name.
        args: Parsed arguments dict (untrusted).
        id: Provider-assigned call ID, None for Gemini.
    """
    name: str
    args: dict
    id: str | None = None


@dataclass
class UsageMetadata:
    """Normalized token counts."""
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class LLMResponse:
    """Provider-agnostic response from one request/response call.

    Attributes:
        text: Concatenated text output.
        function_calls: Proposed function calls, in the order the model emitted them.
        usage: Token usage for this call.
        raw: The original provider-specific response object.
    """
    text: str = ""
    function_calls: list[FunctionCall] = field(default_factory=list)
    usage: UsageMetadata = field(default_factory=UsageMetadata)
    raw: Any = None


@dataclass
class FunctionSchema:
    """Wraps a tool/function schema dict for type clarity.

    The ``parameters`` dict is already JSON-schema-shaped and provider-agnostic.
    """
    name: str
    description: str
    parameters: dict


class Capability(enum.Enum):
    """Built-in model capability for a streaming request (one at a time)."""
    GOOGLE_SEARCH = "google_search"
    CODE_EXECUTION = "code_execution"


@dataclass(frozen=True)
class ImageData:
    """Raw image bytes plus MIME type (attachments, inline outputs, generated images)."""
    data: bytes
    mime_type: str = "image/png"

    def to_dict(self) -> dict:
        return {"data": base64.b64encode(self.data).decode("ascii"), "mime_type": self.mime_type}


# Response part types
PART_TEXT = "text"
PART_CODE = "code"
PART_RESULT = "result"
PART_IMAGE = "image"


@dataclass(frozen=True)
class ResponsePart:
    """One typed part of a streamed response.

    ``text`` holds the text for text parts, the source for code parts and
    the output for result parts.
    """
    type: str
    text: str = ""
    language: str = ""
    outcome: str = ""
    image: ImageData | None = None

    def to_dict(self) -> dict:
        if self.type == PART_CODE:
            return {"type": self.type, "language": self.language, "code": self.text}
        if self.type == PART_RESULT:
            return {"type": self.type, "outcome": self.outcome, "output": self.text}
        if self.type == PART_IMAGE:
            return {"type": self.type, "mime_type": self.image.mime_type if self.image else ""}
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class GroundingSource:
    uri: str
    title: str = ""


@dataclass(frozen=True)
class Grounding:
    """Web-search grounding metadata attached to a response."""
    sources: tuple[GroundingSource, ...] = ()
    queries: tuple[str, ...] = ()


@dataclass
class StreamChunk:
    """One chunk of a streaming response."""
    parts: list[ResponsePart] = field(default_factory=list)
    grounding: Grounding | None = None


# ---------------------------------------------------------------------------
# ChatSession ABC
# ---------------------------------------------------------------------------

class ChatSession(ABC):
    """Abstract multi-turn chat session."""

    @abstractmethod
    def send(self, message) -> LLMResponse:
        """Send a user message or a tool result and return the model response.

        ``message`` can be:
        - A string (user text message)
        - A provider-specific user message built via ``LLMAdapter.make_user_message()``
        - A provider-specific tool result built via ``LLMAdapter.make_tool_result_message()``
        """


# ---------------------------------------------------------------------------
# LLMAdapter ABC
# ---------------------------------------------------------------------------

class LLMAdapter(ABC):
    """Abstract interface that every LLM provider adapter must implement."""

    @abstractmethod
    def create_chat(
        self,
        model: str,
        tools: list[FunctionSchema] | None = None,
        *,
        history: list[dict] | None = None,
        capability: Capability | None = None,
    ) -> ChatSession:
        """Create a new multi-turn chat session.

        Args:
            model: Model identifier (e.g. ``"gemini-2.5-flash-lite"``).
            tools: Function schemas the model may call.
            history: Provider-shaped prior turns (see ``conversation.build_history``).
            capability: Optional built-in capability. Not combined with ``tools``.
        """

    @abstractmethod
    def stream(
        self,
        model: str,
        history: list[dict],
        message: Any,
        capability: Capability = Capability.GOOGLE_SEARCH,
    ) -> Iterator[StreamChunk]:
        """Send ``message`` on a fresh chat and yield chunks as they arrive.

        The final chunk carries grounding metadata when the provider returned any.
        """

    @abstractmethod
    def make_user_message(self, text: str, images: Sequence[ImageData] = ()) -> Any:
        """Build a provider-specific user message (text plus optional images)."""

    @abstractmethod
    def make_tool_result_message(self, tool_name: str, payload: dict) -> Any:
        """Build a provider-specific function-response message for ``ChatSession.send()``."""

    @abstractmethod
    def generate_image(
        self,
        prompt: str,
        *,
        model: str,
        anchor: ImageData | None = None,
    ) -> ImageData | None:
        """Generate one image from ``prompt``; ``anchor`` is an optional style reference.

        Returns None when the model answered without an image.
        """

    @abstractmethod
    def is_quota_error(self, exc: Exception) -> bool:
        """Return True if ``exc`` represents a quota/rate-limit error (429)."""
