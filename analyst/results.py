"""
Tool results - a closed, tagged union.

Every executor returns exactly one of the variants below. The orchestrator
dispatches on the variant (``isinstance`` / ``kind``), never on which keys
happen to be present in a payload.

Two serializations exist per variant:
    to_payload() - what is sent back to the model as the function response.
    to_dict()    - what the caller displays and persists (JSON-safe).
They differ only for generated images, whose bytes are never sent back to
the model.
"""

from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

CHART = "chart"
CARD = "card"
GENERATED_IMAGE = "generated-image"
ERROR = "error"
SCALAR = "scalar"


def sanitize_for_json(obj):
    """Recursively replace NaN/Inf floats with None for JSON safety.

    Gemini rejects function responses containing NaN or Inf values
    (400 INVALID_ARGUMENT).
    """
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    if isinstance(obj, Mapping):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(v) for v in obj]
    return obj


@dataclass(frozen=True)
class ToolResult:
    """Base class of the union. Subclasses set ``kind``."""

    kind: ClassVar[str] = ""

    def to_payload(self) -> dict:
        return self.to_dict()

    def to_dict(self) -> dict:
        raise NotImplementedError


@dataclass(frozen=True)
class ScalarResult(ToolResult):
    """Plain statistics/scalar mapping, e.g. ``{field, count, mean, ...}``."""

    kind: ClassVar[str] = SCALAR
    values: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return sanitize_for_json(dict(self.values))

    def __getitem__(self, key: str) -> Any:
        return self.values[key]


@dataclass(frozen=True)
class ErrorResult(ToolResult):
    """Executor-domain failure, returned as data so the model can react."""

    kind: ClassVar[str] = ERROR
    message: str = ""

    def to_dict(self) -> dict:
        return {"error": self.message}


@dataclass(frozen=True)
class ChartPoint:
    date: str
    full_date: str
    value: float
    label: str = ""

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "full_date": self.full_date,
            "value": self.value,
            "label": self.label,
        }


@dataclass(frozen=True)
class ChartResult(ToolResult):
    """Time-indexed series ready for an area/line chart."""

    kind: ClassVar[str] = CHART
    metric: str = ""
    title: str = ""
    points: tuple[ChartPoint, ...] = ()

    def to_dict(self) -> dict:
        return sanitize_for_json({
            "chart_type": "metric_vs_time",
            "metric": self.metric,
            "title": self.title,
            "data": [p.to_dict() for p in self.points],
        })


@dataclass(frozen=True)
class CardResult(ToolResult):
    """A resolved video plus the fields its "play" card displays."""

    kind: ClassVar[str] = CARD
    title: str = ""
    url: str = ""
    thumbnail_url: str = ""
    view_count: Any = None
    like_count: Any = None
    duration: Any = None
    video_id: str = ""
    index: int = 0

    def to_dict(self) -> dict:
        return sanitize_for_json({
            "card_type": "video",
            "title": self.title,
            "video_url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "view_count": self.view_count,
            "like_count": self.like_count,
            "duration": self.duration,
            "video_id": self.video_id,
            "index": self.index,
        })


@dataclass(frozen=True)
class GeneratedImageResult(ToolResult):
    kind: ClassVar[str] = GENERATED_IMAGE
    image_bytes: bytes = b""
    mime_type: str = "image/png"
    description: str = ""

    def to_payload(self) -> dict:
        return {
            "generated_image": True,
            "mime_type": self.mime_type,
            "description": self.description,
        }

    def to_dict(self) -> dict:
        return {
            "generated_image": {
                "data": base64.b64encode(self.image_bytes).decode("ascii"),
                "mime_type": self.mime_type,
            },
            "description": self.description,
        }


@dataclass(frozen=True)
class ImageRequest:
    """Pass-through marker from the pure ``generate_image`` executor.

    Not a result: the caller resolves it with its image-generation callback.
    """

    prompt: str


@dataclass
class ToolCall:
    """One round of the tool loop, as surfaced to the user and persisted."""

    name: str
    args: dict
    result: ToolResult
    elapsed_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "args": sanitize_for_json(dict(self.args)),
            "result": self.result.to_dict(),
            "kind": self.result.kind,
            "elapsed_ms": self.elapsed_ms,
        }
