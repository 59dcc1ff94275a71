"""Video lookup and image generation tool handlers."""

from __future__ import annotations
from typing import TYPE_CHECKING

from analyst.results import ErrorResult, ImageRequest, ToolResult
from dataset_ops.resolver import ResolutionFailure, resolve_record, video_card

if TYPE_CHECKING:
    from dataset_ops.dataset import Dataset


def handle_play_video(dataset: "Dataset", tool_args: dict) -> ToolResult:
    if not dataset.is_videos:
        return ErrorResult("play_video needs a loaded video list.")
    resolution = resolve_record(tool_args.get("query"), dataset.records)
    if isinstance(resolution, ResolutionFailure):
        return ErrorResult(resolution.message)
    return video_card(resolution.record, resolution.index)


def handle_generate_image(dataset: "Dataset", tool_args: dict) -> ToolResult | ImageRequest:
    """Return an ImageRequest marker; the caller performs the actual generation."""
    prompt = tool_args.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        return ErrorResult("'prompt' must be a non-empty string.")
    return ImageRequest(prompt=prompt.strip())
