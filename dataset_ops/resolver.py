"""
Resolve a natural-language video reference to one record.

Strategies run in a fixed priority order and the first hit wins:

    1. ordinal   - the whole query "first" .. "tenth", or "3rd" / "12th"
                   anywhere in it (natural order)
    2. criteria  - "most viewed", "least viewed", "most liked",
                   "latest/newest/recent", "oldest/earliest",
                   "shortest", "longest"
    3. title     - every query term appears in the title
    4. fuzzy     - any query term longer than 2 characters appears

"most viewed" and "most liked" overlap lexically; the table order below is
the tie-break and must not be reshuffled.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from analyst.results import CardResult
from .dataset import VIDEO_TIMESTAMP_FIELD
from .numeric import timestamp_or_epoch, to_number

ORDINAL_WORDS = {
    "first": 0,
    "second": 1,
    "third": 2,
    "fourth": 3,
    "fifth": 4,
    "sixth": 5,
    "seventh": 6,
    "eighth": 7,
    "ninth": 8,
    "tenth": 9,
}

_ORDINAL_NUMERAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b")

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={id}"
YOUTUBE_THUMBNAIL_URL = "https://i.ytimg.com/vi/{id}/hqdefault.jpg"


def _number_key(field: str) -> Callable[[Mapping[str, Any]], float]:
    def key(record: Mapping[str, Any]) -> float:
        value = to_number(record.get(field))
        return value if value is not None else 0.0
    return key


def _date_key(record: Mapping[str, Any]):
    return timestamp_or_epoch(record, VIDEO_TIMESTAMP_FIELD)


# (pattern, sort key, descending)
_CRITERIA: tuple[tuple[re.Pattern, Callable, bool], ...] = (
    (re.compile(r"most\s*view"), _number_key("viewCount"), True),
    (re.compile(r"least\s*view"), _number_key("viewCount"), False),
    (re.compile(r"most\s*lik"), _number_key("likeCount"), True),
    (re.compile(r"latest|newest|recent"), _date_key, True),
    (re.compile(r"oldest|earliest"), _date_key, False),
    (re.compile(r"shortest"), _number_key("durationSeconds"), False),
    (re.compile(r"longest"), _number_key("durationSeconds"), True),
)


@dataclass(frozen=True)
class Resolution:
    record: Mapping[str, Any]
    index: int
    strategy: str


@dataclass(frozen=True)
class ResolutionFailure:
    message: str


def _ordinal_index(query: str) -> int | None:
    """Spelled-out ordinals count only as the whole query; numerals match anywhere."""
    if query in ORDINAL_WORDS:
        return ORDINAL_WORDS[query]
    match = _ORDINAL_NUMERAL_RE.search(query)
    if match:
        return int(match.group(1)) - 1
    return None


def _title(record: Mapping[str, Any]) -> str:
    title = record.get("title")
    return str(title).lower() if title is not None else ""


def resolve_record(query: Any, records: Sequence[Mapping[str, Any]]) -> Resolution | ResolutionFailure:
    """Resolve ``query`` against ``records`` (natural order, never re-sorted in place)."""
    if not isinstance(query, str) or not query.strip():
        return ResolutionFailure("'query' must be a non-empty string.")
    if not records:
        return ResolutionFailure("No videos loaded.")

    q = query.lower().strip()

    index = _ordinal_index(q)
    if index is not None:
        if 0 <= index < len(records):
            return Resolution(records[index], index, "ordinal")
        return ResolutionFailure(
            f'No video at position {index + 1} for "{query}": only {len(records)} videos are loaded.'
        )

    for pattern, key, descending in _CRITERIA:
        if pattern.search(q):
            # sorted() is stable with reverse=True too: equal keys keep original order.
            ranked = sorted(
                enumerate(records), key=lambda pair: key(pair[1]), reverse=descending
            )
            index, record = ranked[0]
            return Resolution(record, index, "criteria")

    terms = q.split()
    for index, record in enumerate(records):
        title = _title(record)
        if all(term in title for term in terms):
            return Resolution(record, index, "title")

    for index, record in enumerate(records):
        title = _title(record)
        if any(len(term) > 2 and term in title for term in terms):
            return Resolution(record, index, "fuzzy")

    return ResolutionFailure(f'No video found matching "{query}".')


def video_card(record: Mapping[str, Any], index: int = 0) -> CardResult:
    """Build the "play" card, filling URL and thumbnail from the video id when absent."""
    video_id = str(record.get("id") or "")
    url = record.get("url") or (YOUTUBE_WATCH_URL.format(id=video_id) if video_id else "")
    thumbnail = record.get("thumbnailUrl") or (
        YOUTUBE_THUMBNAIL_URL.format(id=video_id) if video_id else ""
    )
    return CardResult(
        title=str(record.get("title") or ""),
        url=str(url),
        thumbnail_url=str(thumbnail),
        view_count=record.get("viewCount"),
        like_count=record.get("likeCount"),
        duration=record.get("durationSeconds"),
        video_id=video_id,
        index=index,
    )
