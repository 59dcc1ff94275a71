"""
Structured EventBus - single record of what happened during a chat turn.

Architecture:
    bus.emit() → SessionEvent → listeners[]
      ├── DebugLogListener  → Python logger (console + session log file)
      └── any caller-supplied listener (CLI live status, tests)

Every orchestrator step (round start, tool call, tool result, grounding,
cancellation) is emitted here rather than logged directly, so tests can
assert on the event stream and the CLI can show live progress.
"""

import contextvars
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from .logging import tagged


# ---- Event type constants ----

# Conversation
USER_MESSAGE = "user_message"
AGENT_RESPONSE = "agent_response"

# Tool lifecycle
TOOL_CALL = "tool_call"
TOOL_RESULT = "tool_result"
TOOL_ERROR = "tool_error"

# LLM
LLM_CALL = "llm_call"
TEXT_DELTA = "text_delta"
ROUND_START = "round_start"
GROUNDING = "grounding"
IMAGE_GENERATED = "image_generated"

# Turn lifecycle
CANCELLED = "cancelled"

# Secondary logging (console-only variants of tool lifecycle events)
TOOL_CALL_LOG = "tool_call_log"
TOOL_RESULT_LOG = "tool_result_log"
ERROR_LOG = "error_log"

# Catch-all for debug-level events that don't need a specific type
DEBUG = "debug"


# ---- SessionEvent ----

@dataclass(frozen=True)
class SessionEvent:
    """A single structured event in the session.

    Fields:
        id: Session-unique event ID (e.g. "evt_0001").
        type: Event type constant (e.g. "tool_call", "round_start").
        ts: ISO 8601 timestamp (UTC, millisecond precision).
        agent: Source component name.
        level: Log level (debug/info/warning/error).
        summary: Short one-liner for console output.
        details: Full context, multi-line OK.
        data: Structured machine-readable payload.
    """
    id: str
    type: str
    ts: str
    agent: str
    level: str
    summary: str
    details: str = ""
    data: dict = field(default_factory=dict)


class EventBus:
    """Per-session event bus with synchronous listener dispatch.

    Thread-safe: emit() and subscribe() use a lock.
    """

    def __init__(self, session_id: str = ""):
        self._events: list[SessionEvent] = []
        self._lock = threading.Lock()
        self._listeners: list[Callable[[SessionEvent], None]] = []
        self.session_id = session_id
        self._next_event_id: int = 0

    def emit(
        self,
        type: str,
        *,
        agent: str = "orchestrator",
        level: str = "debug",
        summary: str = "",
        details: str = "",
        data: Optional[dict] = None,
    ) -> SessionEvent:
        """Create, store, and dispatch a SessionEvent.

        Args:
            type: Event type constant (e.g. TOOL_CALL, ROUND_START).
            agent: Source component name.
            level: Log level (debug/info/warning/error).
            summary: Short one-liner. Defaults to the event type.
            details: Full context, multi-line OK.
            data: Structured payload.

        Returns:
            The created SessionEvent.
        """
        with self._lock:
            self._next_event_id += 1
            event = SessionEvent(
                id=f"evt_{self._next_event_id:04d}",
                type=type,
                ts=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
                agent=agent,
                level=level,
                summary=summary or type,
                details=details,
                data=data or {},
            )
            self._events.append(event)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                pass  # Never let a listener break the emitter
        return event

    def subscribe(self, listener: Callable[[SessionEvent], None]) -> None:
        """Register a listener called synchronously on each emit()."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[SessionEvent], None]) -> None:
        """Remove a previously registered listener."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def get_events(
        self,
        *,
        types: Optional[set[str]] = None,
        since_index: int = 0,
    ) -> list[SessionEvent]:
        """Return stored events, optionally filtered by type."""
        with self._lock:
            events = self._events[since_index:]
        if not types:
            return events
        return [e for e in events if e.type in types]

    def clear(self) -> None:
        """Remove all stored events."""
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


# ---- ContextVar singleton ----

_bus_var: contextvars.ContextVar[Optional[EventBus]] = contextvars.ContextVar(
    "_bus_var", default=None
)

# Module-level fallback for code that runs before any session is created
_fallback_bus: Optional[EventBus] = None
_fallback_lock = threading.Lock()


def get_event_bus() -> EventBus:
    """Return the EventBus for the current context.

    Falls back to a module-level singleton if no context-specific bus is set,
    so executors and loaders can emit even outside a chat session.
    """
    bus = _bus_var.get()
    if bus is not None:
        return bus
    global _fallback_bus
    if _fallback_bus is None:
        with _fallback_lock:
            if _fallback_bus is None:
                _fallback_bus = EventBus(session_id="<fallback>")
    return _fallback_bus


def set_event_bus(bus: EventBus) -> None:
    """Set the EventBus for the current context."""
    _bus_var.set(bus)


# ---- Listeners ----

class DebugLogListener:
    """Formats SessionEvents and writes them to the Python logger."""

    _LEVEL_MAP = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    # Event type -> log_tag consumed by the console formatter
    _TYPE_TO_TAG = {
        USER_MESSAGE: "user_message",
        AGENT_RESPONSE: "agent_response",
        TOOL_CALL: "tool_call",
        TOOL_CALL_LOG: "tool_call",
        TOOL_RESULT: "tool_result",
        TOOL_RESULT_LOG: "tool_result",
        TOOL_ERROR: "error",
        ERROR_LOG: "error",
        CANCELLED: "cancelled",
    }

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def __call__(self, event: SessionEvent) -> None:
        level = self._LEVEL_MAP.get(event.level, logging.DEBUG)
        tag = self._TYPE_TO_TAG.get(event.type, "")
        self._logger.log(level, event.summary, extra=tagged(tag))
