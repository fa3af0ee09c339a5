"""Tests for per-URL metadata aggregation."""

import pytest

from linkscope.extraction.metadata import UNKNOWN_CONTEXT, MetadataAggregator
from linkscope.models.links import RawAnchorObservation


def anchor(href: str, **kwargs) -> RawAnchorObservation:
    return RawAnchorObservation(href=href, **kwargs)


class TestAggregate:
    """Tests for MetadataAggregator.aggregate."""

    @pytest.fixture
    def aggregator(self):
        return MetadataAggregator()

    def test_counts_repeated_urls(self, aggregator):
        observations = [
            anchor("https://a.com/x"),
            anchor("https://a.com/y"),
            anchor("https://a.com/x"),
            anchor("https://a.com/x"),
        ]

        metadata = aggregator.aggregate(observations)

        assert metadata["https://a.com/x"].occurrences == 3
        assert metadata["https://a.com/y"].occurrences == 1

    def test_first_occurrence_fixes_context(self, aggregator):
        observations = [
            anchor("https://a.com/x", parent_tag="nav"),
            anchor("https://a.com/y", parent_tag="p"),
            anchor("https://a.com/x", parent_tag="footer", rel="nofollow"),
        ]

        metadata = aggregator.aggregate(observations)
        first = metadata["https://a.com/x"]

        assert first.position == 0
        assert first.parent_context == "nav"
        assert first.has_no_follow is False
        assert metadata["https://a.com/y"].position == 1

    def test_missing_parent_uses_sentinel(self, aggregator):
        metadata = aggregator.aggregate([anchor("https://a.com/")])
        assert metadata["https://a.com/"].parent_context == UNKNOWN_CONTEXT

    def test_keys_in_first_appearance_order(self, aggregator):
        observations = [anchor("https://a.com/3"), anchor("https://a.com/1"), anchor("https://a.com/3")]
        assert list(aggregator.aggregate(observations)) == ["https://a.com/3", "https://a.com/1"]

    def test_empty_input(self, aggregator):
        assert aggregator.aggregate([]) == {}


class TestNoFollow:
    """No-follow detection is token based and case-insensitive."""

    @pytest.mark.parametrize(
        "rel,expected",
        [
            ("NoFollow noopener", True),
            ("nofollow", True),
            ("noopener  NOFOLLOW", True),
            ("nofollowers", False),
            ("external", False),
            (None, False),
            ("", False),
        ],
    )
    def test_detect_no_follow(self, rel, expected):
        assert MetadataAggregator.detect_no_follow(anchor("https://a.com", rel=rel)) is expected


def test_count_occurrences():
    observations = [anchor("https://a.com/x"), anchor("https://a.com/x"), anchor("https://a.com/z")]
    assert MetadataAggregator.count_occurrences("https://a.com/x", observations) == 2
    assert MetadataAggregator.count_occurrences("https://a.com/missing", observations) == 0
