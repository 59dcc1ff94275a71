"""Descriptive statistics over one numeric field."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import numpy as np

from analyst.results import ErrorResult, ScalarResult
from .numeric import display_number, numeric_values


def _available_fields(records: Sequence[Mapping[str, Any]]) -> str:
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return ", ".join(seen) or "(none)"


def compute_stats(records: Sequence[Mapping[str, Any]], field: Any) -> ScalarResult | ErrorResult:
    """Compute count, mean, median, population std, min and max of ``field``.

    Values that are missing or not numeric are skipped. Every reported float
    is rounded to 4 decimal places; rounding is monotonic, so the rounded
    mean still lies within [min, max].

    Returns:
        ScalarResult on success; ErrorResult when the field name is invalid
        or no numeric values remain (the message lists available fields).
    """
    if not isinstance(field, str) or not field.strip():
        return ErrorResult(
            f"'field' must be a non-empty field name. Available fields: {_available_fields(records)}"
        )
    field = field.strip()

    values = numeric_values(records, field)
    if not values:
        return ErrorResult(
            f'No numeric values found for field "{field}". '
            f"Available fields: {_available_fields(records)}"
        )

    arr = np.asarray(values, dtype=float)
    return ScalarResult({
        "field": field,
        "count": int(arr.size),
        "mean": round(float(np.mean(arr)), 4),
        "median": round(float(np.median(arr)), 4),
        "std": round(float(np.std(arr)), 4),
        "min": display_number(round(float(np.min(arr)), 4)),
        "max": display_number(round(float(np.max(arr)), 4)),
    })
