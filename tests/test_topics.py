"""Tests for the topic catalog."""

import pytest

from notification_hub.services.topics import TOPICS, normalize_topics, topic_matches


class TestNormalizeTopics:
    """Test topic normalization."""

    def test_keeps_known_topics(self):
        assert normalize_topics(["fills", "system"]) == {"fills", "system"}

    def test_drops_unknown_topics(self):
        assert normalize_topics(["fills", "price_targets", "", 42]) == {"fills"}

    def test_all_unknown_yields_empty(self):
        assert normalize_topics(["nope", "also_nope"]) == set()

    @pytest.mark.parametrize("candidate", [None, "fills", {"fills": True}, 7])
    def test_non_sequence_yields_empty(self, candidate):
        assert normalize_topics(candidate) == set()

    @pytest.mark.parametrize("candidate", [
        [],
        ["fills", "fills"],
        list(TOPICS) + ["bogus"],
        ("risk_events", "trade_alerts"),
    ])
    def test_subset_of_catalog_and_idempotent(self, candidate):
        once = normalize_topics(candidate)
        assert once <= set(TOPICS)
        assert normalize_topics(once) == once


class TestTopicMatches:
    """Test delivery-time topic filtering."""

    def test_empty_stored_topics_match_any_filter(self):
        assert topic_matches([], {"risk_events"})
        assert topic_matches(None, {"fills", "system"})

    def test_disjoint_topics_do_not_match(self):
        assert not topic_matches({"fills"}, {"risk_events"})

    def test_overlapping_topics_match(self):
        assert topic_matches({"fills"}, {"fills", "risk_events"})

    def test_empty_filter_matches_everything(self):
        assert topic_matches({"fills"}, set())
        assert topic_matches({"fills"}, None)
