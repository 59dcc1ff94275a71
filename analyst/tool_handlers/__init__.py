from __future__ import annotations
from typing import TYPE_CHECKING, Callable, Union

from analyst.results import ErrorResult, ImageRequest, ToolResult

if TYPE_CHECKING:
    from dataset_ops.dataset import Dataset

ToolHandler = Callable[["Dataset", dict], Union[ToolResult, ImageRequest]]

TOOL_REGISTRY: dict[str, ToolHandler] = {}

# ── Statistics, charts ──
from analyst.tool_handlers.analytics import (
    handle_compute_stats,
    handle_plot_metric_vs_time,
)

# ── Videos, images ──
from analyst.tool_handlers.video import (
    handle_play_video,
    handle_generate_image,
)

TOOL_REGISTRY.update({
    "compute_stats": handle_compute_stats,
    "plot_metric_vs_time": handle_plot_metric_vs_time,
    "play_video": handle_play_video,
    "generate_image": handle_generate_image,
})


def execute_tool(name: str, tool_args: dict | None, dataset: "Dataset") -> ToolResult | ImageRequest:
    """Dispatch ``name`` to its handler. Never raises.

    Unknown tools, non-dict arguments and unexpected handler exceptions all
    come back as ErrorResult so the model can react to them.
    """
    from analyst.logging import log_error

    handler = TOOL_REGISTRY.get(name)
    if handler is None:
        return ErrorResult(f"Unknown tool: {name}")
    if tool_args is None:
        tool_args = {}
    if not isinstance(tool_args, dict):
        return ErrorResult(f"Arguments for {name} must be an object.")
    try:
        return handler(dataset, tool_args)
    except Exception as e:
        log_error(f"Tool {name} failed", exc=e, context={"tool_name": name, "tool_args": tool_args})
        return ErrorResult(f"{name} failed: {e}")
