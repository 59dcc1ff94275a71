"""Statistics and chart tool handlers."""

from __future__ import annotations
from typing import TYPE_CHECKING

from analyst.results import ToolResult
from dataset_ops.charts import build_metric_chart
from dataset_ops.stats import compute_stats

if TYPE_CHECKING:
    from dataset_ops.dataset import Dataset


def handle_compute_stats(dataset: "Dataset", tool_args: dict) -> ToolResult:
    return compute_stats(dataset.records, tool_args.get("field"))


def handle_plot_metric_vs_time(dataset: "Dataset", tool_args: dict) -> ToolResult:
    return build_metric_chart(
        dataset.records,
        tool_args.get("metric"),
        title=tool_args.get("title"),
        timestamp_field=dataset.timestamp_field,
        label_field=dataset.title_field,
    )
