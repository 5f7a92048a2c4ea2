"""Monthly vendor revenue trend.

Always returns exactly ``months`` (default 6) consecutive calendar-month
buckets ending at the reference month, oldest first, seeded with zeros.
Orders outside the window or without a date are ignored.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence

from agri_insights.config import TrendConfig
from agri_insights.models.commerce import Listing, Order, OrderLineItem
from agri_insights.models.insights import SalesTrendBucket
from agri_insights.utils.time_utils import month_window

logger = logging.getLogger(__name__)


def monthly_trend(
    orders: Sequence[Order],
    order_items: Sequence[OrderLineItem],
    listings: Sequence[Listing],
    vendor_id: str,
    reference_date: date | datetime,
    *,
    config: Optional[TrendConfig] = None,
) -> list[SalesTrendBucket]:
    """Roll ``vendor_id``'s line-item revenue into monthly buckets.

    An order counts toward its month when the revenue from its line items
    on ``vendor_id``'s listings is positive; ``count`` is the number of such
    orders.
    """
    cfg = config or TrendConfig()
    window = month_window(reference_date, cfg.months)

    vendor_listings = {lst.id for lst in listings if lst.vendor_id == vendor_id}
    revenue_by_order: dict[str, float] = defaultdict(float)
    for item in order_items:
        if item.listing_id in vendor_listings:
            revenue_by_order[item.order_id] += item.revenue

    revenue = {ym: 0.0 for ym in window}
    counts = {ym: 0 for ym in window}
    for order in orders:
        if order.placed_at is None:
            continue
        amount = revenue_by_order.get(order.id, 0.0)
        if amount <= 0:
            continue
        key = (order.placed_at.year, order.placed_at.month)
        if key not in revenue:
            continue
        revenue[key] += amount
        counts[key] += 1

    logger.debug("Sales trend for vendor %s: %d months", vendor_id, len(window))
    return [
        SalesTrendBucket(
            period=f"{year:04d}-{month:02d}",
            label=f"{calendar.month_abbr[month]} {year % 100:02d}",
            revenue=revenue[(year, month)],
            count=counts[(year, month)],
        )
        for year, month in window
    ]
