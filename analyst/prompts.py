"""
Prompt context prefixes.

The dataset digest is prepended to the user's message on every turn that
has data attached. The prefix goes to the model only; the stored message
keeps the user's own text.
"""

from __future__ import annotations

import base64

from dataset_ops.dataset import Dataset
from dataset_ops.summary import slim_csv

# Characters of raw CSV embedded for code execution
MAX_INLINE_CSV_CHARS = 500_000

_SEPARATOR = "\n\n---\n\n"


def _key_columns_block(dataset: Dataset) -> str:
    slim = slim_csv(dataset)
    if not slim:
        return ""
    return f"\n\nFull dataset (key columns):\n```csv\n{slim}\n```"


def video_context(dataset: Dataset, summary: str) -> str:
    if not summary:
        return ""
    return f"[YouTube Channel JSON: {len(dataset)} videos loaded]\n\n{summary}{_SEPARATOR}"


def table_context(dataset: Dataset, summary: str) -> str:
    if not summary:
        return ""
    return f"[CSV columns: {', '.join(dataset.fields)}]\n\n{summary}{_key_columns_block(dataset)}{_SEPARATOR}"


def encode_csv(csv_text: str) -> tuple[str, bool]:
    """Base64-encode ``csv_text`` (UTF-8), capped at MAX_INLINE_CSV_CHARS.

    Returns:
        (encoded, truncated)
    """
    truncated = len(csv_text) > MAX_INLINE_CSV_CHARS
    raw = csv_text[:MAX_INLINE_CSV_CHARS] if truncated else csv_text
    return base64.b64encode(raw.encode("utf-8")).decode("ascii"), truncated


def attached_table_context(
    dataset: Dataset,
    summary: str,
    csv_text: str = "",
    include_loader: bool = False,
) -> str:
    """Context for a CSV attached on this very turn.

    With ``include_loader`` the whole file travels as base64 plus a pandas
    snippet that rebuilds the DataFrame inside the code-execution sandbox,
    avoiding quoting problems with free-text cells.
    """
    header = (
        f'[CSV File: "{dataset.name or "data.csv"}" | {len(dataset)} rows | '
        f"Columns: {', '.join(dataset.fields)}]"
    )
    body = f"{header}\n\n{summary}{_key_columns_block(dataset)}"
    if include_loader and csv_text:
        encoded, truncated = encode_csv(csv_text)
        body += (
            "\n\nIMPORTANT: to load the full data in Python use this exact pattern:\n"
            "```python\n"
            "import pandas as pd, io, base64\n"
            f'df = pd.read_csv(io.BytesIO(base64.b64decode("{encoded}")))\n'
            "```"
        )
        if truncated:
            body += f"\n(The file was truncated to its first {MAX_INLINE_CSV_CHARS:,} characters.)"
    return body + _SEPARATOR


def default_message(*, has_images: bool = False, has_videos: bool = False) -> str:
    """Stand-in prompt when the user sent only attachments."""
    if has_images:
        return "What do you see in this image?"
    if has_videos:
        return "Please analyze this YouTube channel data."
    return "Please analyze this CSV data."


def display_text(text: str, *, has_images: bool = False, has_videos: bool = False) -> str:
    """What the stored user message shows when the text box was empty."""
    if text:
        return text
    if has_images:
        return "(Image)"
    return "(JSON attached)" if has_videos else "(CSV attached)"
