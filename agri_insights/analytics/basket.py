"""
Market basket analysis: which products are bought together.

Algorithm
---------
1. One basket per order: resolve each line item ``listing → product`` and
   keep the distinct product IDs (first-seen order). Unresolvable items drop.
2. For every basket with >= 2 products, count each unordered pair under its
   canonical key ``tuple(sorted((a, b)))`` so (A, B) and (B, A) coincide.
3. ``min_support = max(min_support_floor, floor(support_fraction × N))``
   where N is the number of multi-item baskets.
4. Pairs meeting ``min_support`` become bundles, sorted by frequency
   descending (ties keep first-seen order), capped at ``top_n``.

Cold start: if no pair survives, suggest the first two products (catalog
order) sharing a category, with frequency 0, so a new dealer still gets one
idea instead of an empty panel.
"""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import Optional, Sequence

from agri_insights.config import BasketConfig
from agri_insights.models.commerce import Listing, Order, OrderLineItem, Product
from agri_insights.models.insights import BundleOpportunity

logger = logging.getLogger(__name__)


def build_baskets(
    orders: Sequence[Order],
    order_items: Sequence[OrderLineItem],
    listings: Sequence[Listing],
    products: Sequence[Product],
) -> list[list[str]]:
    """Distinct resolved product IDs per order, in order of ``orders``."""
    listing_product = {lst.id: lst.product_id for lst in listings}
    known_products = {p.id for p in products}

    baskets: dict[str, list[str]] = {order.id: [] for order in orders}
    for item in order_items:
        basket = baskets.get(item.order_id)
        if basket is None:
            continue
        product_id = listing_product.get(item.listing_id)
        if product_id is None or product_id not in known_products:
            continue
        if product_id not in basket:
            basket.append(product_id)
    return list(baskets.values())


def count_pairs(baskets: Sequence[Sequence[str]]) -> dict[tuple[str, str], int]:
    """Co-occurrence counts keyed by canonical (sorted) product-ID pairs."""
    counts: dict[tuple[str, str], int] = {}
    for basket in baskets:
        for a, b in combinations(basket, 2):
            key = (a, b) if a <= b else (b, a)
            counts[key] = counts.get(key, 0) + 1
    return counts


def find_bundles(
    orders: Sequence[Order],
    order_items: Sequence[OrderLineItem],
    listings: Sequence[Listing],
    products: Sequence[Product],
    *,
    config: Optional[BasketConfig] = None,
) -> list[BundleOpportunity]:
    """Surface frequently co-purchased product pairs as bundle ideas.

    Returns:
        Up to ``top_n`` bundles; a single frequency-0 fallback when the data
        is too sparse; ``[]`` when not even a fallback can be formed.
    """
    cfg = config or BasketConfig()
    product_by_id = {p.id: p for p in products}

    baskets = build_baskets(orders, order_items, listings, products)
    multi_item = [b for b in baskets if len(b) >= 2]
    counts = count_pairs(multi_item)

    min_support = max(cfg.min_support_floor, math.floor(cfg.support_fraction * len(multi_item)))
    frequent = [(pair, n) for pair, n in counts.items() if n >= min_support]
    frequent.sort(key=lambda item: item[1], reverse=True)

    logger.debug(
        "Basket scan: baskets=%d multi_item=%d pairs=%d min_support=%d frequent=%d",
        len(baskets), len(multi_item), len(counts), min_support, len(frequent),
    )

    if not frequent:
        fallback = _category_fallback(products, cfg)
        return [fallback] if fallback is not None else []

    bundles: list[BundleOpportunity] = []
    for (a, b), frequency in frequent[: cfg.top_n]:
        overlap = round(frequency / len(multi_item) * 100, 1)
        bundles.append(
            BundleOpportunity(
                id=f"{a}+{b}",
                products=(product_by_id[a], product_by_id[b]),
                frequency=frequency,
                overlap_pct=overlap,
                description=f"Bought together in {overlap:g}% of multi-item orders.",
                suggested_discount_pct=cfg.suggested_discount_pct,
            )
        )
    return bundles


def _category_fallback(
    products: Sequence[Product],
    cfg: BasketConfig,
) -> Optional[BundleOpportunity]:
    first_in_category: dict[str, Product] = {}
    for product in products:
        if not product.category_id:
            continue
        partner = first_in_category.get(product.category_id)
        if partner is None:
            first_in_category[product.category_id] = product
            continue
        return BundleOpportunity(
            id=f"{partner.id}+{product.id}",
            products=(partner, product),
            frequency=0,
            overlap_pct=0.0,
            description=(
                f"Suggested pairing: both are '{product.category_id}' products. "
                "Not enough sales history yet for data-driven bundles."
            ),
            suggested_discount_pct=cfg.suggested_discount_pct,
        )
    return None
