"""LLM abstraction layer - provider-agnostic interface for LLM interactions.

Re-exports the provider-agnostic API so consumers can write:
    from analyst.llm import LLMAdapter, LLMResponse, Capability, ...

``GeminiAdapter`` lives in ``analyst.llm.gemini_adapter`` and is imported
only where a real client is built.
"""

from .base import (
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
