"""
Tool-calling orchestrator for one user turn.

Drives a request/response chat session: the model proposes a function
call, the executor runs it against the attached dataset, the tagged result
is sent back, and the loop repeats until the model answers in text, the
round cap is hit, or the caller cancels.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .conversation import build_history
from .event_bus import (
    get_event_bus,
    CANCELLED,
    DEBUG,
    LLM_CALL,
    ROUND_START,
    TOOL_CALL,
    TOOL_ERROR,
    TOOL_RESULT,
)
from .llm.base import FunctionSchema, ImageData, LLMAdapter
from .logging import log_error, log_tool_call, log_tool_result
from .loop_guard import MAX_TOOL_ROUNDS, LoopGuard
from .results import (
    CardResult,
    ChartResult,
    ErrorResult,
    GeneratedImageResult,
    ImageRequest,
    ToolCall,
    ToolResult,
    sanitize_for_json,
)

# stop_reason values
COMPLETED = "completed"
ROUND_LIMIT = "round_limit"
STOP_CANCELLED = "cancelled"

ExecuteFn = Callable[[str, dict], Any]


class ToolTimer:
    """Context manager for timing tool execution."""

    def __init__(self):
        self._start = 0.0
        self.elapsed_ms = 0

    def __enter__(self):
        self._start = time.monotonic()
        return self

    def __exit__(self, *exc):
        self.elapsed_ms = int((time.monotonic() - self._start) * 1000)
        return False


@dataclass
class ToolTurnResult:
    """Everything one tool-path turn produced, in call order."""
    final_text: str = ""
    charts: list[ChartResult] = field(default_factory=list)
    cards: list[CardResult] = field(default_factory=list)
    images: list[GeneratedImageResult] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    rounds: int = 0
    stop_reason: str = COMPLETED


def _as_tool_result(name: str, raw: Any) -> ToolResult:
    """Accept only tagged results; anything else becomes an ErrorResult."""
    if isinstance(raw, ToolResult):
        return raw
    if isinstance(raw, ImageRequest):
        return ErrorResult("Image generation is not available for this conversation.")
    return ErrorResult(f"{name} returned an unsupported result.")


def _collect(turn: ToolTurnResult, result: ToolResult) -> None:
    if isinstance(result, ChartResult):
        turn.charts.append(result)
    elif isinstance(result, CardResult):
        turn.cards.append(result)
    elif isinstance(result, GeneratedImageResult):
        turn.images.append(result)


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def run_tool_turn(
    adapter: LLMAdapter,
    history: Sequence,
    user_message: str,
    tools: list[FunctionSchema],
    execute_fn: ExecuteFn,
    persona: str | None = None,
    *,
    model: str,
    images: Sequence[ImageData] = (),
    cancel_event: threading.Event | None = None,
    max_rounds: int = MAX_TOOL_ROUNDS,
) -> ToolTurnResult:
    """Run one user turn through the bounded tool-calling loop.

    Only the first function call of each response is executed; additional
    parallel proposals are logged and ignored. Executor exceptions and
    untagged return values become ErrorResults and are sent back to the
    model. Provider exceptions propagate unchanged.

    Args:
        adapter: LLM adapter used to open the chat and build messages.
        history: Prior turns (``Turn``-like objects), oldest first.
        user_message: The new user text, including any dataset context prefix.
        tools: Function declarations offered to the model.
        execute_fn: ``(tool_name, tool_args) -> ToolResult``.
        persona: System prompt injected as a synthetic exchange.
        model: Model identifier.
        images: Images attached to the user message.
        cancel_event: Checked before every provider call.
        max_rounds: Maximum tool invocations for this turn.

    Returns:
        ToolTurnResult with ``stop_reason`` ``completed``, ``round_limit``
        or ``cancelled``.
    """
    bus = get_event_bus()
    turn = ToolTurnResult()

    if _is_cancelled(cancel_event):
        turn.stop_reason = STOP_CANCELLED
        bus.emit(CANCELLED, level="info", summary="[ToolLoop] Cancelled before first request")
        return turn

    chat = adapter.create_chat(model, tools, history=build_history(history, persona))
    bus.emit(LLM_CALL, summary=f"[ToolLoop] Sending user message ({len(tools)} tools)",
             data={"model": model, "tools": [t.name for t in tools]})
    response = chat.send(adapter.make_user_message(user_message, images))

    guard = LoopGuard(max_rounds=max_rounds)
    while True:
        if not response.function_calls:
            turn.final_text = response.text or ""
            turn.stop_reason = COMPLETED
            break

        stop = guard.check_limit()
        if stop:
            bus.emit(DEBUG, level="info", summary=f"[ToolLoop] Stopping: {stop}")
            turn.final_text = response.text or ""
            turn.stop_reason = ROUND_LIMIT
            break

        call = response.function_calls[0]
        if len(response.function_calls) > 1:
            ignored = [fc.name for fc in response.function_calls[1:]]
            bus.emit(DEBUG, summary=f"[ToolLoop] Ignoring {len(ignored)} extra call(s): {', '.join(ignored)}",
                     data={"ignored": ignored})

        name = call.name
        tool_args = dict(call.args) if isinstance(call.args, Mapping) else {}
        bus.emit(ROUND_START, summary=f"[ToolLoop] Round {guard.rounds + 1}/{guard.max_rounds}",
                 data={"round": guard.rounds + 1})
        bus.emit(TOOL_CALL, summary=f"[ToolLoop] Tool: {name}({tool_args})",
                 data={"tool_name": name, "tool_args": tool_args})
        log_tool_call(name, tool_args)

        timer = ToolTimer()
        try:
            with timer:
                raw = execute_fn(name, tool_args)
        except Exception as e:
            log_error(f"Tool {name} raised", exc=e, context={"tool_name": name, "tool_args": tool_args})
            result: ToolResult = ErrorResult(f"{name} failed: {e}")
        else:
            result = _as_tool_result(name, raw)

        turn.tool_calls.append(ToolCall(name=name, args=tool_args, result=result, elapsed_ms=timer.elapsed_ms))
        _collect(turn, result)
        guard.record_round()
        turn.rounds = guard.rounds

        if isinstance(result, ErrorResult):
            bus.emit(TOOL_ERROR, level="warning", summary=f"[ToolLoop] {name} -> error: {result.message}",
                     data={"tool_name": name, "error": result.message, "elapsed_ms": timer.elapsed_ms})
            log_tool_result(name, result.to_dict(), success=False)
        else:
            bus.emit(TOOL_RESULT, summary=f"[ToolLoop] {name} -> {result.kind}",
                     data={"tool_name": name, "kind": result.kind, "elapsed_ms": timer.elapsed_ms})
            log_tool_result(name, result.to_dict(), success=True)

        if _is_cancelled(cancel_event):
            turn.stop_reason = STOP_CANCELLED
            bus.emit(CANCELLED, level="info",
                     summary=f"[ToolLoop] Cancelled after {turn.rounds} tool call(s)")
            break

        bus.emit(DEBUG, summary=f"[ToolLoop] Sending {name} result back...")
        response = chat.send(
            adapter.make_tool_result_message(name, sanitize_for_json(result.to_payload()))
        )

    return turn
