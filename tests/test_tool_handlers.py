from __future__ import annotations

import pytest

from analyst.event_bus import ERROR_LOG
from analyst.results import CardResult, ChartResult, ErrorResult, ImageRequest, ScalarResult
from analyst.tool_handlers import TOOL_REGISTRY, execute_tool
from analyst.tools import TABLE_TOOLSET, VIDEO_TOOLSET, get_tool_schemas, get_toolset
from dataset_ops.loaders import table_from_csv_text


def test_toolsets() -> None:
    assert [t.name for t in get_toolset(VIDEO_TOOLSET)] == [
        "compute_stats", "plot_metric_vs_time", "play_video", "generate_image",
    ]
    assert [t.name for t in get_toolset(TABLE_TOOLSET)] == ["compute_stats", "plot_metric_vs_time"]
    with pytest.raises(ValueError):
        get_toolset("everything")


def test_every_declared_tool_has_a_handler() -> None:
    assert {t["name"] for t in get_tool_schemas()} == set(TOOL_REGISTRY)


def test_dispatch(videos) -> None:
    assert isinstance(execute_tool("compute_stats", {"field": "viewCount"}, videos), ScalarResult)
    assert isinstance(execute_tool("plot_metric_vs_time", {"metric": "viewCount"}, videos), ChartResult)

    card = execute_tool("play_video", {"query": "most viewed"}, videos)
    assert isinstance(card, CardResult)
    assert card.video_id == "b2"
    assert card.index == 1


def test_unknown_tool_and_bad_args(videos) -> None:
    assert execute_tool("delete_channel", {}, videos).message == "Unknown tool: delete_channel"
    assert execute_tool("compute_stats", ["viewCount"], videos).message == (
        "Arguments for compute_stats must be an object."
    )
    assert isinstance(execute_tool("compute_stats", None, videos), ErrorResult)


def test_play_video_needs_videos() -> None:
    table = table_from_csv_text("title,views\na,1\n")

    result = execute_tool("play_video", {"query": "first"}, table)

    assert result.message == "play_video needs a loaded video list."


def test_play_video_not_found(videos) -> None:
    result = execute_tool("play_video", {"query": "zzz qq"}, videos)

    assert isinstance(result, ErrorResult)
    assert "zzz qq" in result.message


def test_generate_image_returns_marker(videos) -> None:
    assert execute_tool("generate_image", {"prompt": "  a red barn "}, videos) == ImageRequest("a red barn")
    assert isinstance(execute_tool("generate_image", {"prompt": ""}, videos), ErrorResult)


def test_handler_exception_becomes_error(monkeypatch, videos, event_bus) -> None:
    def explode(dataset, tool_args):
        raise RuntimeError("kaboom")

    monkeypatch.setitem(TOOL_REGISTRY, "compute_stats", explode)

    result = execute_tool("compute_stats", {"field": "viewCount"}, videos)

    assert result.message == "compute_stats failed: kaboom"
    assert event_bus.get_events(types={ERROR_LOG})
