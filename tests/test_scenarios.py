"""End-to-end turns through the tool loop with a scripted model."""

from __future__ import annotations

from analyst.results import CardResult, ErrorResult, ScalarResult
from analyst.tool_handlers import execute_tool
from analyst.tool_loop import COMPLETED, run_tool_turn
from analyst.tools import VIDEO_TOOLSET, get_toolset
from dataset_ops.dataset import Dataset

from fakes import FakeAdapter, call, text

ABC = Dataset.videos([
    {"title": "A", "viewCount": 100},
    {"title": "B", "viewCount": 300},
    {"title": "C", "viewCount": 200},
])


def _turn(dataset, *responses):
    adapter = FakeAdapter(list(responses))
    turn = run_tool_turn(
        adapter,
        [],
        "question",
        get_toolset(VIDEO_TOOLSET),
        lambda name, args: execute_tool(name, args, dataset),
        model="m",
    )
    return turn, adapter


def test_stats_scenario() -> None:
    turn, adapter = _turn(ABC, call("compute_stats", field="viewCount"), text("done"))

    result = turn.tool_calls[0].result
    assert isinstance(result, ScalarResult)
    assert {k: result[k] for k in ("count", "mean", "median", "min", "max")} == {
        "count": 3, "mean": 200, "median": 200, "min": 100, "max": 300,
    }
    assert turn.stop_reason == COMPLETED


def test_play_most_viewed_scenario() -> None:
    turn, _ = _turn(ABC, call("play_video", query="play the most viewed"), text("here"))

    [card] = turn.cards
    assert isinstance(card, CardResult)
    assert card.title == "B"


def test_ordinal_out_of_range_scenario() -> None:
    turn, adapter = _turn(ABC, call("play_video", query="play the 5th"), text("only three videos"))

    assert isinstance(turn.tool_calls[0].result, ErrorResult)
    assert turn.cards == []
    assert "error" in adapter.sent[1]["payload"]
    assert turn.final_text == "only three videos"


def test_chart_without_timestamps_scenario() -> None:
    turn, _ = _turn(ABC, call("plot_metric_vs_time", metric="viewCount"), text("no dates"))

    assert isinstance(turn.tool_calls[0].result, ErrorResult)
    assert turn.charts == []


def test_tool_call_order_is_preserved() -> None:
    turn, adapter = _turn(
        ABC,
        call("compute_stats", field="viewCount"),
        call("play_video", query="first"),
        call("compute_stats", field="likeCount"),
        text("done"),
    )

    assert [tc.name for tc in turn.tool_calls] == ["compute_stats", "play_video", "compute_stats"]
    assert [m["tool"] for m in adapter.sent[1:]] == ["compute_stats", "play_video", "compute_stats"]
