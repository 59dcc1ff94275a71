"""
Per-turn dataset digest.

The digest is injected as free context on every tool-path turn so trivial
questions ("what's the average view count?") are answered without spending
a tool round.
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np
import pandas as pd

from .dataset import Dataset
from .numeric import display_number, iso_date, numeric_values, parse_timestamp, timestamp_or_epoch, to_number


def _field_line(dataset: Dataset, field: str) -> str | None:
    values = numeric_values(dataset.records, field)
    if not values:
        return None
    arr = np.asarray(values, dtype=float)
    return (
        f'  - "{field}": mean={round(float(arr.mean()), 4)}, '
        f"min={display_number(float(arr.min()))}, "
        f"max={display_number(float(arr.max()))}, n={arr.size}"
    )


def _record_label(dataset: Dataset, record: Mapping[str, Any]) -> str:
    ts = parse_timestamp(record.get(dataset.timestamp_field)) if dataset.timestamp_field else None
    date = iso_date(ts) if ts is not None else "unknown"

    if dataset.title_field:
        label = record.get(dataset.title_field)
    else:
        label = next((v for v in record.values() if v not in (None, "")), None)
    label = "" if label is None else str(label)

    if dataset.is_videos:
        views = to_number(record.get("viewCount")) or 0
        return f'"{label}" ({date}, {int(views):,} views)'
    return f"{label} ({date})" if dataset.timestamp_field else label


def summarize_dataset(dataset: Dataset) -> str:
    """Render the fixed-order digest: header, numeric field stats, record list.

    Numeric fields with no coercible values are skipped. Records are listed
    chronologically; records without a usable timestamp sort first and ties
    keep their original order.
    """
    if not len(dataset):
        return ""

    noun = "videos" if dataset.is_videos else "rows"
    heading = "YouTube Channel Data" if dataset.is_videos else (dataset.name or "Dataset")
    lines = [f"**{heading}: {len(dataset)} {noun}**\n"]

    field_lines = [line for line in (_field_line(dataset, f) for f in dataset.numeric_fields) if line]
    if field_lines:
        lines.append("**Numeric fields:**")
        lines.extend(field_lines)

    order = "by release date" if dataset.is_videos else ("by date" if dataset.timestamp_field else "in file order")
    lines.append(f"\n**{noun.capitalize()} ({order}):**")
    ordered = sorted(
        dataset.records, key=lambda r: timestamp_or_epoch(r, dataset.timestamp_field)
    )
    for i, record in enumerate(ordered, 1):
        lines.append(f"  {i}. {_record_label(dataset, record)}")

    return "\n".join(lines)


def slim_csv(dataset: Dataset) -> str:
    """Key columns only (label, date, numeric fields) as CSV text, header included.

    Missing cells render empty. Returns "" when there are no rows or none of
    the key columns exist.
    """
    present = set(dataset.fields)
    columns = [
        c for c in dict.fromkeys([dataset.title_field, dataset.timestamp_field, *dataset.numeric_fields])
        if c and c in present
    ]
    if not len(dataset) or not columns:
        return ""
    df = pd.DataFrame.from_records([dict(r) for r in dataset.records]).reindex(columns=columns)
    return df.to_csv(index=False, lineterminator="\n").rstrip("\n")
