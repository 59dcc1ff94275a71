"""
Session persistence protocol.

The chat service never stores anything itself; it hands finished turns to
a ``SessionStore``. ``InMemorySessionStore`` backs the CLI and the tests.

Stored user messages carry the user's display text only. Dataset digests,
inline CSV payloads and other prompt prefixes never reach the store.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from .results import sanitize_for_json


@dataclass
class MessageRecord:
    """One persisted chat message (user or model)."""
    role: str
    content: str
    charts: list[dict] = field(default_factory=list)
    cards: list[dict] = field(default_factory=list)
    images: list[dict] = field(default_factory=list)
    tool_calls: list[dict] = field(default_factory=list)
    grounding: Optional[dict] = None
    error: bool = False
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        """JSON-safe dict (NaN/Inf replaced, images already base64)."""
        data = {
            "role": self.role,
            "content": self.content,
            "created_at": self.created_at,
        }
        if self.charts:
            data["charts"] = self.charts
        if self.cards:
            data["cards"] = self.cards
        if self.images:
            data["images"] = self.images
        if self.tool_calls:
            data["tool_calls"] = self.tool_calls
        if self.grounding:
            data["grounding"] = self.grounding
        if self.error:
            data["error"] = True
        return sanitize_for_json(data)


class SessionStore(Protocol):
    def create_session(self, user: str, agent: str, title: str) -> str: ...

    def list_sessions(self, user: str) -> list[dict]: ...

    def delete_session(self, session_id: str) -> bool: ...

    def append_message(self, session_id: str, record: MessageRecord) -> None: ...

    def list_messages(self, session_id: str) -> list[MessageRecord]: ...


def generate_session_id() -> str:
    """Session IDs look like YYYYMMDD_HHMMSS_XXXXXXXX."""
    return datetime.now().strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8]


def default_title() -> str:
    now = datetime.now()
    return f"Chat · {now.strftime('%b')} {now.day} {now.strftime('%H:%M')}"


class InMemorySessionStore:
    """Process-local SessionStore."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: dict[str, dict] = {}
        self._messages: dict[str, list[MessageRecord]] = {}

    def create_session(self, user: str, agent: str = "channel-analyst", title: str = "") -> str:
        session_id = generate_session_id()
        now = datetime.now().isoformat()
        with self._lock:
            self._sessions[session_id] = {
                "id": session_id,
                "user": user,
                "agent": agent,
                "title": title or default_title(),
                "created_at": now,
                "updated_at": now,
            }
            self._messages[session_id] = []
        return session_id

    def list_sessions(self, user: str) -> list[dict]:
        """Sessions of ``user``, most recently updated first, with message counts."""
        with self._lock:
            sessions = [
                {**meta, "message_count": len(self._messages[sid])}
                for sid, meta in self._sessions.items()
                if meta["user"] == user
            ]
        sessions.sort(key=lambda m: m["updated_at"], reverse=True)
        return sessions

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            if session_id not in self._sessions:
                return False
            del self._sessions[session_id]
            del self._messages[session_id]
        return True

    def append_message(self, session_id: str, record: MessageRecord) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Unknown session: {session_id}")
            self._messages[session_id].append(record)
            self._sessions[session_id]["updated_at"] = datetime.now().isoformat()

    def list_messages(self, session_id: str) -> list[MessageRecord]:
        with self._lock:
            if session_id not in self._messages:
                raise KeyError(f"Unknown session: {session_id}")
            return list(self._messages[session_id])
