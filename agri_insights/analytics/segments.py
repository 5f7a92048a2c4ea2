"""
RFM-style customer segmentation.

Each farmer lands in at most one segment; conditions are checked in this
order and the first match wins:

    WHALES     lifetime spend  > whale_min_spend        (default 50,000)
    LOYALISTS  order count     > loyal_min_orders       (default 4)
    DORMANT    >= 1 order, none within dormant_after_days (default 180)
    PROSPECTS  zero orders

Active farmers who qualify for none of these (e.g. one recent small order)
are left unsegmented. Empty segments are dropped from the result.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from agri_insights.config import SegmentationConfig
from agri_insights.models.commerce import Order
from agri_insights.models.farm import Farmer
from agri_insights.models.insights import CustomerSegment
from agri_insights.taxonomy.ledger_taxonomy import SegmentId
from agri_insights.utils.time_utils import EPOCH, as_datetime

logger = logging.getLogger(__name__)

_SEGMENT_COPY: dict[SegmentId, tuple[str, str]] = {
    SegmentId.WHALES: (
        "High Value Whales",
        "Top spenders by lifetime value. Prioritise service and bulk deals.",
    ),
    SegmentId.LOYALISTS: (
        "Loyal Regulars",
        "Frequent buyers. Reward with loyalty offers and early stock access.",
    ),
    SegmentId.DORMANT: (
        "Dormant / At Risk",
        "Bought before but not in the last six months. Win them back.",
    ),
    SegmentId.PROSPECTS: (
        "New Prospects",
        "Registered farmers with no purchases yet.",
    ),
}

_BROADCAST_MESSAGES: dict[SegmentId, str] = {
    SegmentId.WHALES: (
        "Namaste! As a valued premium partner, we have exclusive bulk deals for you "
        "this week. Visit our store for priority service."
    ),
    SegmentId.DORMANT: (
        "Namaste! It's been a while. We have new stock of high-quality fertilizers. "
        "Come visit us for a special discount!"
    ),
    SegmentId.PROSPECTS: (
        "Namaste! Start your journey with high-yield inputs. Visit our store for a "
        "free consultation on your first purchase."
    ),
}

_DEFAULT_BROADCAST = "Namaste! Check out our latest arrivals in the Agri-Store."


@dataclass
class _CustomerStats:
    spend: float = 0.0
    order_count: int = 0
    last_order_at: Optional[datetime] = None


def segment_customers(
    farmers: Sequence[Farmer],
    orders: Sequence[Order],
    reference_date: date | datetime,
    *,
    config: Optional[SegmentationConfig] = None,
) -> list[CustomerSegment]:
    """Partition ``farmers`` into exclusive behavioural segments.

    Args:
        farmers:        Farmers to segment (member order is preserved).
        orders:         Orders; joined to farmers via ``debtor_id``.
        reference_date: "Today" for the recency window.
        config:         Thresholds.

    Returns:
        Non-empty segments in WHALES, LOYALISTS, DORMANT, PROSPECTS order.
    """
    cfg = config or SegmentationConfig()
    cutoff = as_datetime(reference_date) - timedelta(days=cfg.dormant_after_days)

    stats: dict[str, _CustomerStats] = defaultdict(_CustomerStats)
    for order in orders:
        s = stats[order.debtor_id]
        s.spend += order.total_amount
        s.order_count += 1
        placed = order.placed_at or EPOCH
        if s.last_order_at is None or placed > s.last_order_at:
            s.last_order_at = placed

    members: dict[SegmentId, list[Farmer]] = {sid: [] for sid in SegmentId}
    spend: dict[SegmentId, float] = {sid: 0.0 for sid in SegmentId}

    for farmer in farmers:
        s = stats.get(farmer.id, _CustomerStats())
        segment_id = _assign(s, cutoff, cfg)
        if segment_id is None:
            continue
        members[segment_id].append(farmer)
        spend[segment_id] += s.spend

    segments: list[CustomerSegment] = []
    for segment_id in SegmentId:
        group = members[segment_id]
        if not group:
            continue
        label, description = _SEGMENT_COPY[segment_id]
        segments.append(
            CustomerSegment(
                id=segment_id,
                label=label,
                description=description,
                farmers=group,
                avg_spend=spend[segment_id] / len(group),
            )
        )

    logger.debug(
        "Segmented %d farmers: %s",
        len(farmers), {s.id.value: len(s.farmers) for s in segments},
    )
    return segments


def broadcast_message(segment_id: SegmentId) -> str:
    """Outreach template for a segment broadcast."""
    return _BROADCAST_MESSAGES.get(segment_id, _DEFAULT_BROADCAST)


def _assign(
    stats: _CustomerStats,
    cutoff: datetime,
    cfg: SegmentationConfig,
) -> Optional[SegmentId]:
    if stats.spend > cfg.whale_min_spend:
        return SegmentId.WHALES
    if stats.order_count > cfg.loyal_min_orders:
        return SegmentId.LOYALISTS
    if stats.order_count > 0 and stats.last_order_at is not None and stats.last_order_at < cutoff:
        return SegmentId.DORMANT
    if stats.order_count == 0:
        return SegmentId.PROSPECTS
    return None
