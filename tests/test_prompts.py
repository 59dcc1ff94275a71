from __future__ import annotations

import base64
import re

from analyst import prompts
from analyst.prompts import (
    attached_table_context,
    default_message,
    display_text,
    encode_csv,
    table_context,
    video_context,
)
from dataset_ops.dataset import Dataset
from dataset_ops.loaders import table_from_csv_text
from dataset_ops.summary import slim_csv


def test_video_context(videos) -> None:
    context = video_context(videos, "DIGEST")

    assert context == "[YouTube Channel JSON: 3 videos loaded]\n\nDIGEST\n\n---\n\n"
    assert video_context(videos, "") == ""


def test_table_context_lists_columns() -> None:
    dataset = table_from_csv_text("a,b\n1,2\n")

    assert table_context(dataset, "S").startswith("[CSV columns: a, b]\n\nS")


def test_attached_table_with_loader_round_trips_csv() -> None:
    csv_text = 'name,notes\nx,"has, comma"\n'
    dataset = table_from_csv_text(csv_text, name="n.csv")

    context = attached_table_context(dataset, "S", csv_text, include_loader=True)

    assert context.startswith('[CSV File: "n.csv" | 1 rows | Columns: name, notes]')
    encoded = re.search(r'b64decode\("([^"]+)"\)', context).group(1)
    assert base64.b64decode(encoded).decode("utf-8") == csv_text
    assert "truncated" not in context


def test_attached_table_without_loader() -> None:
    dataset = table_from_csv_text("a\n1\n")

    context = attached_table_context(dataset, "S", "a\n1\n")

    assert "b64decode" not in context
    assert context.endswith("---\n\n")


def test_encode_csv_truncates(monkeypatch) -> None:
    monkeypatch.setattr(prompts, "MAX_INLINE_CSV_CHARS", 4)

    encoded, truncated = encode_csv("abcdefgh")

    assert truncated
    assert base64.b64decode(encoded) == b"abcd"


def test_default_and_display_text() -> None:
    assert default_message(has_images=True) == "What do you see in this image?"
    assert default_message(has_videos=True) == "Please analyze this YouTube channel data."
    assert default_message() == "Please analyze this CSV data."
    assert display_text("hi") == "hi"
    assert display_text("", has_images=True) == "(Image)"
    assert display_text("", has_videos=True) == "(JSON attached)"
    assert display_text("") == "(CSV attached)"


RATED_CSV = "title,published,notes,views,rating\nA,2024-01-02,x,10,\nB,2024-02-03,y,20,4.5\n"


def test_slim_csv_keeps_label_date_and_numeric_columns() -> None:
    dataset = table_from_csv_text(RATED_CSV)

    assert slim_csv(dataset) == "title,published,views,rating\nA,2024-01-02,10,\nB,2024-02-03,20,4.5"


def test_slim_csv_empty_without_rows_or_key_columns() -> None:
    assert slim_csv(Dataset.from_records([])) == ""
    assert slim_csv(Dataset.from_records([{"note": "n"}])) == ""


def test_table_contexts_embed_key_columns_after_summary() -> None:
    dataset = table_from_csv_text(RATED_CSV, name="r.csv")
    block = "S\n\nFull dataset (key columns):\n```csv\ntitle,published,views,rating\nA,2024-01-02,10,\n"

    loaded = table_context(dataset, "S")
    attached = attached_table_context(dataset, "S", RATED_CSV, include_loader=True)

    assert block in loaded
    assert loaded.endswith("4.5\n```\n\n---\n\n")
    assert block in attached
    assert attached.index("Full dataset (key columns)") < attached.index("IMPORTANT: to load")
