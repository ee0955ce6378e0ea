"""Tests for predicate evaluation."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from dumptruck.download import derive_filename
from dumptruck.errors import ConfigError
from dumptruck.query import (
    EvaluationContext,
    Latest,
    MatchAll,
    NotExists,
    evaluate,
    parse_query,
)


def _indices(items) -> list[int]:
    return [item.index for item in items]


@pytest.fixture
def feed(make_item):
    return [make_item(i) for i in range(1, 7)]


class TestNumberAndMatchAll:
    def test_match_all_returns_everything_in_order(self, feed) -> None:
        assert _indices(evaluate(feed, MatchAll())) == [1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("number:3", [3]),
            ("number:[2-4]", [2, 3, 4]),
            ("number:{1, [4-9]}", [1, 4, 5, 6]),
            ("number:{6, 2}", [2, 6]),
            ("number:[7-20]", []),
            ("number:0", []),
        ],
    )
    def test_number_selection_is_clipped_to_feed(self, feed, query: str, expected: list[int]) -> None:
        assert _indices(evaluate(feed, parse_query(query))) == expected

    def test_empty_feed(self) -> None:
        assert evaluate([], parse_query("number:[1-5]")) == []


class TestTextMatching:
    def test_title_is_case_insensitive_substring(self, make_item) -> None:
        items = [
            make_item(1, title="Cheese Delight"),
            make_item(2, title="Pepperoni"),
            make_item(3, title="Four CHEESES"),
        ]
        assert _indices(evaluate(items, parse_query("title:cheese"))) == [1, 3]

    def test_title_set_is_a_union(self, make_item) -> None:
        items = [
            make_item(1, title="Cheese Delight"),
            make_item(2, title="Pepperoni"),
            make_item(3, title="Hawaiian"),
        ]
        assert _indices(evaluate(items, parse_query("title:{pepperoni, cheese}"))) == [1, 2]

    def test_title_phrase(self, make_item) -> None:
        items = [make_item(1, title="Cheese Delight"), make_item(2, title="Delight in cheese")]
        assert _indices(evaluate(items, parse_query("title:cheese delight"))) == [1]

    def test_description(self, make_item) -> None:
        items = [
            make_item(1, description="All about ham"),
            make_item(2, description="Melted Cheese"),
            make_item(3, description=""),
        ]
        assert _indices(evaluate(items, parse_query("description:cheese"))) == [2]


class TestDateMatching:
    def test_date_range_and_undated_items(self, make_item) -> None:
        items = [
            make_item(1, published_at=datetime(2021, 2, 28, 23, 0, tzinfo=timezone.utc)),
            make_item(2, published_at=datetime(2021, 3, 1, 0, 0, tzinfo=timezone.utc)),
            make_item(3, published_at=None),
            make_item(4, published_at=datetime(2021, 3, 31, 12, 0, tzinfo=timezone.utc)),
        ]
        assert _indices(evaluate(items, parse_query("date:[2021-03-01:2021-03-31]"))) == [2, 4]

    def test_single_date(self, make_item) -> None:
        items = [make_item(i) for i in range(1, 4)]
        assert _indices(evaluate(items, parse_query("date:2021-03-02"))) == [2]


class TestLatest:
    def test_latest_picks_most_recent_but_keeps_feed_order(self, make_item) -> None:
        items = [
            make_item(1, published_at=datetime(2021, 1, 1, tzinfo=timezone.utc)),
            make_item(2, published_at=datetime(2021, 1, 2, tzinfo=timezone.utc)),
            make_item(3, published_at=datetime(2021, 1, 3, tzinfo=timezone.utc)),
            make_item(4, published_at=datetime(2021, 1, 4, tzinfo=timezone.utc)),
        ]
        assert _indices(evaluate(items, Latest(n=3))) == [2, 3, 4]

    def test_latest_order_does_not_depend_on_feed_ordering(self, make_item) -> None:
        items = [
            make_item(1, published_at=datetime(2021, 1, 4, tzinfo=timezone.utc)),
            make_item(2, published_at=datetime(2021, 1, 1, tzinfo=timezone.utc)),
            make_item(3, published_at=datetime(2021, 1, 3, tzinfo=timezone.utc)),
        ]
        assert _indices(evaluate(items, Latest(n=2))) == [1, 3]

    def test_latest_clamps_to_feed_size(self, make_item) -> None:
        items = [make_item(i) for i in range(1, 5)]
        assert _indices(evaluate(items, Latest(n=10))) == [1, 2, 3, 4]

    def test_ties_prefer_higher_index(self, make_item) -> None:
        same = datetime(2021, 5, 5, tzinfo=timezone.utc)
        items = [make_item(1, published_at=same), make_item(2, published_at=same), make_item(3, published_at=same)]
        assert _indices(evaluate(items, Latest(n=1))) == [3]

    def test_undated_items_are_oldest(self, make_item) -> None:
        items = [
            make_item(1, published_at=None),
            make_item(2, published_at=datetime(2020, 1, 1, tzinfo=timezone.utc)),
            make_item(3, published_at=None),
        ]
        assert _indices(evaluate(items, Latest(n=1))) == [2]
        assert _indices(evaluate(items, Latest(n=2))) == [2, 3]

    def test_naive_timestamps_compare_with_aware_ones(self, make_item) -> None:
        items = [
            make_item(1, published_at=datetime(2021, 1, 2)),
            make_item(2, published_at=datetime(2021, 1, 1, tzinfo=timezone.utc)),
        ]
        assert _indices(evaluate(items, Latest())) == [1]


class TestNotExists:
    def test_requires_context(self, feed) -> None:
        with pytest.raises(ConfigError):
            evaluate(feed, NotExists())

    def test_skips_items_with_existing_files(self, feed, tmp_path: Path) -> None:
        context = EvaluationContext(
            destination=tmp_path,
            existing_names=frozenset({derive_filename(feed[1]), derive_filename(feed[4])}),
        )
        assert _indices(evaluate(feed, NotExists(), context)) == [1, 3, 4, 6]

    def test_missing_directory_lists_as_empty(self, feed, tmp_path: Path) -> None:
        context = EvaluationContext.from_directory(tmp_path / "does-not-exist")
        assert _indices(evaluate(feed, NotExists(), context)) == [1, 2, 3, 4, 5, 6]

    def test_second_run_sees_fewer_items(self, feed, tmp_path: Path) -> None:
        first = evaluate(feed, NotExists(), EvaluationContext.from_directory(tmp_path))
        assert len(first) == 6

        for item in first[:2]:
            (tmp_path / derive_filename(item)).write_bytes(b"audio")

        second = evaluate(feed, NotExists(), EvaluationContext.from_directory(tmp_path))
        assert _indices(second) == [3, 4, 5, 6]
        assert len(second) < len(first)
