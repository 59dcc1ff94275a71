from __future__ import annotations

import math

from analyst.results import ErrorResult, ScalarResult
from dataset_ops.stats import compute_stats


def test_three_records_basic_stats() -> None:
    records = [{"viewCount": 100}, {"viewCount": 300}, {"viewCount": 200}]

    result = compute_stats(records, "viewCount")

    assert isinstance(result, ScalarResult)
    assert result["count"] == 3
    assert result["mean"] == 200
    assert result["median"] == 200
    assert result["min"] == 100
    assert result["max"] == 300
    # Population standard deviation
    assert result["std"] == round(math.sqrt(20000 / 3), 4)


def test_even_count_median_is_central_average() -> None:
    records = [{"x": 1}, {"x": 2}, {"x": 3}, {"x": 10}]

    result = compute_stats(records, "x")

    assert result["median"] == 2.5


def test_non_numeric_and_missing_values_are_skipped() -> None:
    records = [
        {"views": "1,000"},
        {"views": "n/a"},
        {"views": None},
        {"views": True},
        {"views": float("nan")},
        {},
        {"views": 3000},
    ]

    result = compute_stats(records, "views")

    assert result["count"] == 2
    assert result["mean"] == 2000
    assert result["min"] == 1000
    assert result["max"] == 3000


def test_rounded_to_four_places_and_mean_within_bounds() -> None:
    records = [{"r": 0.123456}, {"r": 0.654321}, {"r": 0.111111}]

    result = compute_stats(records, "r")

    assert result["mean"] == round((0.123456 + 0.654321 + 0.111111) / 3, 4)
    assert result["min"] <= result["mean"] <= result["max"]


def test_no_numeric_values_lists_available_fields() -> None:
    records = [{"title": "a", "viewCount": 1}, {"title": "b", "likeCount": 2}]

    result = compute_stats(records, "title")

    assert isinstance(result, ErrorResult)
    assert '"title"' in result.message
    assert "title, viewCount, likeCount" in result.message


def test_invalid_field_argument_is_an_error() -> None:
    assert isinstance(compute_stats([{"a": 1}], ""), ErrorResult)
    assert isinstance(compute_stats([{"a": 1}], None), ErrorResult)
    assert isinstance(compute_stats([{"a": 1}], 5), ErrorResult)


def test_error_result_payload_shape() -> None:
    result = compute_stats([], "viewCount")

    assert result.to_dict() == {"error": result.message}
    assert result.kind == "error"
