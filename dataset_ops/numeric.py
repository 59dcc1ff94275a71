"""
Coercion helpers for untrusted record values.

Record values come from user-supplied files and model-chosen field names,
so nothing here raises: anything that cannot be read as a finite number or
a timestamp comes back as None.
"""

from __future__ import annotations

import numbers
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

EPOCH = pd.Timestamp(0, tz="UTC")


def to_number(value: Any) -> float | None:
    """Coerce a scalar to a finite float, or None.

    Booleans are rejected (a True/False column is not a metric). Strings are
    stripped and parsed; thousands separators are tolerated.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if np.isfinite(number) else None


def numeric_values(records: Iterable[Mapping[str, Any]], field: str) -> list[float]:
    """All coercible values of ``field`` across ``records``, in record order."""
    values = []
    for record in records:
        number = to_number(record.get(field))
        if number is not None:
            values.append(number)
    return values


def parse_timestamp(value: Any) -> pd.Timestamp | None:
    """Parse a record timestamp into a UTC ``pd.Timestamp``, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        ts = pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts


def timestamp_or_epoch(record: Mapping[str, Any], field: str | None) -> pd.Timestamp:
    """Sort key for chronological ordering: missing timestamps sort first."""
    if not field:
        return EPOCH
    ts = parse_timestamp(record.get(field))
    return ts if ts is not None else EPOCH


def short_date(ts: pd.Timestamp) -> str:
    """Compact axis label, e.g. ``Jan 2024``."""
    return ts.strftime("%b %Y")


def iso_date(ts: pd.Timestamp) -> str:
    return ts.strftime("%Y-%m-%d")


def display_number(value: Any) -> int | float:
    """Render a float without a spurious ``.0`` when it is integral."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
