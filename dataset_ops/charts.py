"""Time-indexed chart construction (metric vs. record timestamp)."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from analyst.results import ChartPoint, ChartResult, ErrorResult
from .numeric import display_number, parse_timestamp, short_date, to_number


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def build_metric_chart(
    records: Sequence[Mapping[str, Any]],
    metric: Any,
    *,
    title: Any = None,
    timestamp_field: str | None,
    label_field: str | None = None,
) -> ChartResult | ErrorResult:
    """Build one chart point per record that has both ``metric`` and a timestamp.

    Points are sorted ascending by timestamp (stable for equal dates). A
    present but non-numeric metric value plots as 0.

    Args:
        records: Dataset records in natural order.
        metric: Field to plot on the Y axis (model-supplied, validated here).
        title: Optional chart title; defaults to ``"<metric> over time"``.
        timestamp_field: Field holding the record date.
        label_field: Field used as the tooltip label (e.g. a video title).

    Returns:
        ChartResult with at least one point, or ErrorResult.
    """
    if not isinstance(metric, str) or not metric.strip():
        return ErrorResult("'metric' must be a non-empty field name.")
    metric = metric.strip()
    if not timestamp_field:
        return ErrorResult(
            f'Cannot plot "{metric}" over time: this dataset has no date field.'
        )
    if title is not None and not isinstance(title, str):
        title = str(title)
    title = (title or "").strip() or f"{metric} over time"

    dated = []
    for record in records:
        if _is_missing(record.get(metric)):
            continue
        ts = parse_timestamp(record.get(timestamp_field))
        if ts is None:
            continue
        dated.append((ts, record))

    if not dated:
        return ErrorResult(
            f'No data found for metric "{metric}" with {timestamp_field} values.'
        )

    dated.sort(key=lambda pair: pair[0])
    points = []
    for ts, record in dated:
        value = to_number(record.get(metric))
        label = record.get(label_field) if label_field else None
        points.append(ChartPoint(
            date=short_date(ts),
            full_date=str(record.get(timestamp_field)),
            value=display_number(value) if value is not None else 0,
            label=str(label) if label is not None else "",
        ))

    return ChartResult(metric=metric, title=title, points=tuple(points))
