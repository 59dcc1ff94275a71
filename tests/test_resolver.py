from __future__ import annotations

import pytest

from dataset_ops.resolver import Resolution, ResolutionFailure, resolve_record, video_card


@pytest.mark.parametrize(
    "query, expected_id, strategy",
    [
        ("First", "a1", "ordinal"),
        ("the 3rd one", "c3", "ordinal"),
        ("second", "b2", "ordinal"),
        ("most viewed", "b2", "criteria"),
        ("least viewed", "c3", "criteria"),
        ("most liked", "c3", "criteria"),
        ("latest upload", "a1", "criteria"),
        ("the oldest", "b2", "criteria"),
        ("shortest", "b2", "criteria"),
        ("longest", "c3", "criteria"),
        ("Leaky Faucet", "b2", "title"),
        ("staining tips", "c3", "fuzzy"),
        ("the asbestos video", "a1", "fuzzy"),
    ],
)
def test_strategies(video_records, query, expected_id, strategy) -> None:
    result = resolve_record(query, video_records)

    assert isinstance(result, Resolution)
    assert result.record["id"] == expected_id
    assert result.strategy == strategy


def test_ordinal_beats_criteria(video_records) -> None:
    result = resolve_record("3rd most viewed", video_records)

    assert result.strategy == "ordinal"
    assert result.index == 2


def test_ordinal_word_inside_a_title_is_not_a_position() -> None:
    records = [{"title": "Deck basics"}, {"title": "Faucet fix"}, {"title": "My First Vlog"}]

    result = resolve_record("my first vlog", records)

    assert result.strategy == "title"
    assert result.index == 2


def test_most_viewed_wins_over_most_liked(video_records) -> None:
    result = resolve_record("most liked or most viewed", video_records)

    assert result.record["id"] == "b2"


def test_out_of_range_ordinal_fails(video_records) -> None:
    result = resolve_record("tenth", video_records)

    assert isinstance(result, ResolutionFailure)
    assert "position 10" in result.message
    assert "only 3 videos" in result.message


def test_ties_resolve_to_earliest_record() -> None:
    records = [{"id": "x", "viewCount": 5}, {"id": "y", "viewCount": 5}, {"id": "z", "viewCount": 5}]

    assert resolve_record("most viewed", records).record["id"] == "x"
    assert resolve_record("least viewed", records).record["id"] == "x"


def test_missing_metric_counts_as_zero() -> None:
    records = [{"id": "x"}, {"id": "y", "viewCount": "12"}]

    assert resolve_record("least viewed", records).record["id"] == "x"
    assert resolve_record("most viewed", records).record["id"] == "y"


def test_records_are_not_reordered(video_records) -> None:
    before = [r["id"] for r in video_records]

    resolve_record("most viewed", video_records)

    assert [r["id"] for r in video_records] == before


def test_failures(video_records) -> None:
    assert isinstance(resolve_record("zzz qq", video_records), ResolutionFailure)
    assert isinstance(resolve_record("", video_records), ResolutionFailure)
    assert isinstance(resolve_record(None, video_records), ResolutionFailure)
    assert resolve_record("first", []).message == "No videos loaded."


def test_card_fills_urls_from_id() -> None:
    card = video_card({"id": "abc", "title": "T", "viewCount": 7}, index=2)

    assert card.url == "https://www.youtube.com/watch?v=abc"
    assert card.thumbnail_url == "https://i.ytimg.com/vi/abc/hqdefault.jpg"
    assert card.to_dict()["index"] == 2
    assert card.to_dict()["view_count"] == 7


def test_card_prefers_record_urls() -> None:
    card = video_card({"id": "abc", "url": "https://example.com/v", "thumbnailUrl": "https://example.com/t.jpg"})

    assert card.url == "https://example.com/v"
    assert card.thumbnail_url == "https://example.com/t.jpg"


def test_card_without_id_has_empty_urls() -> None:
    card = video_card({"title": "No id"})

    assert card.url == ""
    assert card.thumbnail_url == ""
