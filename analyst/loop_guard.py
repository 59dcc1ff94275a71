"""
Round cap for the tool-calling loop.

One round is one executed tool call plus its function-response round-trip.
The counter is per user turn and never carries over.
"""

from __future__ import annotations

MAX_TOOL_ROUNDS = 5


class LoopGuard:
    """Prevents runaway tool-call loops within a single user turn.

    Usage:
        guard = LoopGuard(max_rounds=5)

        while response.function_calls:
            reason = guard.check_limit()
            if reason:
                break
            # ... execute one call, send the result back ...
            guard.record_round()
    """

    def __init__(self, max_rounds: int = MAX_TOOL_ROUNDS):
        if max_rounds < 0:
            raise ValueError("max_rounds must be >= 0")
        self.max_rounds = max_rounds
        self.rounds = 0

    def check_limit(self) -> str | None:
        """Return a stop reason if another round would exceed the cap, else None."""
        if self.rounds >= self.max_rounds:
            return f"round limit ({self.max_rounds}) reached"
        return None

    def record_round(self) -> None:
        self.rounds += 1
