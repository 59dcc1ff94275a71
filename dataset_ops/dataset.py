"""
In-memory dataset model.

A Dataset is an ordered, read-only sequence of records (field -> scalar).
Insertion order is meaningful: ordinal lookups ("the third video") index
into it directly, and no executor ever re-sorts it in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

VIDEOS = "videos"
TABLE = "table"

# Canonical video record fields, as produced by the channel metadata fetcher.
VIDEO_NUMERIC_FIELDS = ("viewCount", "likeCount", "commentCount", "durationSeconds")
VIDEO_TIMESTAMP_FIELD = "releaseDate"
VIDEO_TITLE_FIELD = "title"


@dataclass(frozen=True)
class Dataset:
    """An attached dataset owned by the calling session.

    Attributes:
        records: Ordered, immutable records. Field sets are homogeneous-ish
            but missing and non-numeric values are tolerated everywhere.
        kind: ``"videos"`` or ``"table"``.
        name: Display name (usually the source file name).
        timestamp_field: Field holding each record's date, or None.
        title_field: Field used as a human label (tooltips, summaries).
        numeric_fields: Fields summarized in the per-turn digest.
    """

    records: tuple[Mapping[str, Any], ...]
    kind: str = TABLE
    name: str = ""
    timestamp_field: str | None = None
    title_field: str | None = None
    numeric_fields: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        *,
        kind: str = TABLE,
        name: str = "",
        timestamp_field: str | None = None,
        title_field: str | None = None,
        numeric_fields: Iterable[str] = (),
    ) -> "Dataset":
        """Freeze ``records`` into a Dataset (each record becomes read-only)."""
        frozen = tuple(MappingProxyType(dict(r)) for r in records)
        return cls(
            records=frozen,
            kind=kind,
            name=name,
            timestamp_field=timestamp_field,
            title_field=title_field,
            numeric_fields=tuple(numeric_fields),
        )

    @classmethod
    def videos(cls, records: Iterable[Mapping[str, Any]], *, name: str = "") -> "Dataset":
        """Build a video-list dataset with the canonical field declarations."""
        return cls.from_records(
            records,
            kind=VIDEOS,
            name=name,
            timestamp_field=VIDEO_TIMESTAMP_FIELD,
            title_field=VIDEO_TITLE_FIELD,
            numeric_fields=VIDEO_NUMERIC_FIELDS,
        )

    @property
    def is_videos(self) -> bool:
        return self.kind == VIDEOS

    @property
    def fields(self) -> list[str]:
        """Union of field names across records, in first-seen order."""
        seen: dict[str, None] = {}
        for record in self.records:
            for key in record:
                seen.setdefault(key, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)
