"""
Load attached files into Datasets.

Video lists arrive as JSON exported by the channel metadata fetcher. Older
exports use snake_case keys (``view_count``, ``release_date``, ``video_url``);
they are normalized to the canonical camelCase record shape here so every
executor sees one vocabulary.

Tabular data arrives as CSV and is parsed with pandas; numeric columns,
the date column and the label column are inferred.
"""

from __future__ import annotations

import io
import json
import re
from pathlib import Path
from typing import Any, Mapping

import pandas as pd

from .dataset import Dataset, TABLE

# Catalog export key -> canonical key
VIDEO_FIELD_ALIASES = {
    "video_id": "id",
    "duration": "durationSeconds",
    "duration_seconds": "durationSeconds",
    "release_date": "releaseDate",
    "published_at": "releaseDate",
    "view_count": "viewCount",
    "like_count": "likeCount",
    "comment_count": "commentCount",
    "video_url": "url",
    "thumbnail_url": "thumbnailUrl",
}

_DATE_COLUMN_RE = re.compile(r"date|time|published|created|timestamp", re.IGNORECASE)
_LABEL_COLUMNS = ("title", "name", "label", "text")


class DatasetLoadError(ValueError):
    """Raised when an attached file cannot be read as a dataset."""


def normalize_video_record(raw: Mapping[str, Any]) -> dict:
    """Map catalog-export keys onto the canonical video fields.

    Canonical keys already present win over their aliases.
    """
    record: dict[str, Any] = {}
    for key, value in raw.items():
        canonical = VIDEO_FIELD_ALIASES.get(key, key)
        if canonical != key and canonical in raw:
            continue
        record[canonical] = value
    return record


def videos_from_json(payload: Any, *, name: str = "") -> Dataset:
    """Build a video Dataset from decoded JSON (a list, or ``{"videos": [...]}``)."""
    if isinstance(payload, Mapping):
        payload = payload.get("videos")
    if not isinstance(payload, list):
        raise DatasetLoadError("Expected a JSON array of video records.")
    records = [normalize_video_record(item) for item in payload if isinstance(item, Mapping)]
    if not records:
        raise DatasetLoadError("The JSON file contains no video records.")
    return Dataset.videos(records, name=name)


def load_videos_json(path: str | Path) -> Dataset:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DatasetLoadError(f"Could not read {path.name}: {e}") from e
    return videos_from_json(payload, name=path.name)


def _infer_timestamp_column(df: pd.DataFrame) -> str | None:
    for column in df.columns:
        if not _DATE_COLUMN_RE.search(str(column)):
            continue
        parsed = pd.to_datetime(df[column], errors="coerce", utc=True)
        if parsed.notna().any():
            return str(column)
    return None


def _infer_label_column(df: pd.DataFrame) -> str | None:
    lowered = {str(c).lower(): str(c) for c in df.columns}
    for candidate in _LABEL_COLUMNS:
        if candidate in lowered:
            return lowered[candidate]
    for column in df.columns:
        if pd.api.types.is_string_dtype(df[column]):
            return str(column)
    return None


def table_from_csv_text(text: str, *, name: str = "") -> Dataset:
    """Parse CSV text into a table Dataset (NaN cells become None)."""
    try:
        df = pd.read_csv(io.StringIO(text))
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DatasetLoadError(f"Could not parse CSV {name or ''}: {e}".strip()) from e

    numeric_fields = [
        str(c) for c in df.columns
        if pd.api.types.is_numeric_dtype(df[c]) and not pd.api.types.is_bool_dtype(df[c])
    ]
    timestamp_field = _infer_timestamp_column(df)
    title_field = _infer_label_column(df)

    cleaned = df.astype(object).where(pd.notna(df), None)
    records = cleaned.to_dict(orient="records")
    return Dataset.from_records(
        records,
        kind=TABLE,
        name=name,
        timestamp_field=timestamp_field,
        title_field=title_field,
        numeric_fields=[f for f in numeric_fields if f != timestamp_field],
    )


def load_table_csv(path: str | Path) -> tuple[Dataset, str]:
    """Read a CSV file; returns the Dataset and the raw text (for code-execution prompts)."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetLoadError(f"Could not read {path.name}: {e}") from e
    return table_from_csv_text(text, name=path.name), text
