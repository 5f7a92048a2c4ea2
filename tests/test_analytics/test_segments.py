"""
Tests for agri_insights/analytics/segments.py.

What we test
------------
- One farmer per segment archetype lands where expected.
- Segments are mutually exclusive and ordered WHALES..PROSPECTS.
- Thresholds are strict (exactly 50,000 is not a whale; exactly 4 orders is
  not loyal).
- Active low-spend farmers stay unsegmented; empty segments are dropped.
- avg_spend is the mean lifetime spend of the members.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from agri_insights.analytics.segments import broadcast_message, segment_customers
from agri_insights.config import SegmentationConfig
from agri_insights.models.farm import Farmer
from agri_insights.taxonomy.ledger_taxonomy import SegmentId

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def archetype_orders(make_order):
    orders = [make_order("o-w", "farmer-1", 60_000, days_ago(10))]
    orders += [make_order(f"o-l{i}", "farmer-2", 100, days_ago(i)) for i in range(5)]
    orders += [make_order("o-d", "farmer-3", 2_000, days_ago(200))]
    return orders


def members(segments):
    return {s.id: [f.id for f in s.farmers] for s in segments}


class TestSegmentCustomers:
    def test_archetypes(self, farmers, archetype_orders):
        segments = segment_customers(farmers, archetype_orders, NOW)
        assert members(segments) == {
            SegmentId.WHALES: ["farmer-1"],
            SegmentId.LOYALISTS: ["farmer-2"],
            SegmentId.DORMANT: ["farmer-3"],
            SegmentId.PROSPECTS: ["farmer-4"],
        }
        assert [s.id for s in segments] == list(SegmentId)

    def test_exclusive(self, farmers, archetype_orders, make_order):
        # farmer-1 is both a big spender and a frequent buyer.
        orders = archetype_orders + [
            make_order(f"o-x{i}", "farmer-1", 10, days_ago(300)) for i in range(6)
        ]
        segments = segment_customers(farmers, orders, NOW)
        seen = [f.id for s in segments for f in s.farmers]
        assert len(seen) == len(set(seen))
        assert members(segments)[SegmentId.WHALES] == ["farmer-1"]

    def test_labels_and_avg_spend(self, farmers, archetype_orders):
        segments = {s.id: s for s in segment_customers(farmers, archetype_orders, NOW)}
        assert segments[SegmentId.WHALES].label == "High Value Whales"
        assert segments[SegmentId.WHALES].avg_spend == pytest.approx(60_000)
        assert segments[SegmentId.LOYALISTS].avg_spend == pytest.approx(500)
        assert segments[SegmentId.PROSPECTS].avg_spend == 0.0

    def test_thresholds_are_strict(self, make_order):
        farmers = [Farmer(id="a", full_name="A"), Farmer(id="b", full_name="B")]
        orders = [make_order("o1", "a", 50_000, days_ago(1))]
        orders += [make_order(f"o-b{i}", "b", 10, days_ago(i)) for i in range(4)]
        assert segment_customers(farmers, orders, NOW) == []

    def test_recent_small_buyer_is_unsegmented(self, make_order):
        farmers = [Farmer(id="a", full_name="A"), Farmer(id="p", full_name="P")]
        segments = segment_customers(farmers, [make_order("o1", "a", 300, days_ago(3))], NOW)
        assert members(segments) == {SegmentId.PROSPECTS: ["p"]}

    def test_dormant_boundary(self, make_order):
        farmers = [Farmer(id="a", full_name="A")]
        on_cutoff = [make_order("o1", "a", 300, days_ago(180))]
        past_cutoff = [make_order("o1", "a", 300, days_ago(181))]
        assert segment_customers(farmers, on_cutoff, NOW) == []
        assert members(segment_customers(farmers, past_cutoff, NOW)) == {SegmentId.DORMANT: ["a"]}

    def test_latest_order_decides_recency(self, make_order):
        farmers = [Farmer(id="a", full_name="A")]
        orders = [
            make_order("o1", "a", 100, days_ago(400)),
            make_order("o2", "a", 100, days_ago(5)),
        ]
        assert segment_customers(farmers, orders, NOW) == []

    def test_custom_thresholds(self, farmers, archetype_orders):
        cfg = SegmentationConfig(whale_min_spend=1_000, loyal_min_orders=10, dormant_after_days=30)
        result = members(segment_customers(farmers, archetype_orders, NOW, config=cfg))
        assert result[SegmentId.WHALES] == ["farmer-1", "farmer-3"]
        assert SegmentId.LOYALISTS not in result

    def test_no_farmers(self, archetype_orders):
        assert segment_customers([], archetype_orders, NOW) == []


class TestBroadcastMessage:
    def test_segment_specific_templates(self):
        assert "premium partner" in broadcast_message(SegmentId.WHALES)
        assert "been a while" in broadcast_message(SegmentId.DORMANT)
        assert "first purchase" in broadcast_message(SegmentId.PROSPECTS)

    def test_default_template(self):
        assert broadcast_message(SegmentId.LOYALISTS) == (
            "Namaste! Check out our latest arrivals in the Agri-Store."
        )
