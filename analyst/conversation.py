"""
Conversation adapter: stored turns -> provider-shaped history.

The persona is injected as a synthetic user/model exchange at the head of
the history instead of a system instruction, so the model sees it as part
of the conversation on every request.
"""

from __future__ import annotations

from dataclasses import dataclass

PERSONA_PREAMBLE = "Follow these instructions in every response:\n\n"
PERSONA_ACK = "Got it! I'll follow those instructions."

USER = "user"
MODEL = "model"


@dataclass(frozen=True)
class Turn:
    """One stored conversation turn. Any role other than ``user`` is sent as ``model``."""
    role: str
    text: str


def _content(role: str, text: str) -> dict:
    return {"role": role, "parts": [{"text": text}]}


def build_history(turns, persona: str | None = None) -> list[dict]:
    """Return ``[persona pair] + turns`` in provider shape.

    Args:
        turns: Iterable of Turn (or objects with ``role`` and ``text``).
        persona: System prompt text; empty or None adds no synthetic pair.
    """
    history: list[dict] = []
    if persona:
        history.append(_content(USER, PERSONA_PREAMBLE + persona))
        history.append(_content(MODEL, PERSONA_ACK))
    for turn in turns:
        role = USER if turn.role == USER else MODEL
        history.append(_content(role, turn.text or ""))
    return history


def persona_for(system_prompt: str, user_name: str = "") -> str:
    """Append the address-by-name line to ``system_prompt`` when a name is known."""
    prompt = system_prompt or ""
    if user_name:
        prompt += (
            f"\n\nThe user's name is {user_name}. Address them by their first name "
            "in your first message and whenever it feels natural."
        )
    return prompt
