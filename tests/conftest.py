"""
Shared pytest fixtures for the Agri Insights test suite.

Provides:
  - Small factories (``make_entry``, ``make_order`` ...) that fill in the
    boilerplate fields so each test states only what it is about.
  - Sample farmers and a small catalog with listings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

import pytest

from agri_insights.models.commerce import Listing, Order, Product
from agri_insights.models.farm import Farmer, FarmPlot
from agri_insights.models.ledger import LedgerEntry
from agri_insights.taxonomy.ledger_taxonomy import EntryKind

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


# ── Factories ─────────────────────────────────────────────────────────────────

@pytest.fixture
def make_entry() -> Callable[..., LedgerEntry]:
    counter = iter(range(1, 10_000))

    def _make(
        kind: EntryKind | str,
        amount: float,
        occurred_at: Optional[datetime] = None,
        debtor_id: str = "farmer-1",
        status: str = "active",
    ) -> LedgerEntry:
        return LedgerEntry(
            id=f"entry-{next(counter)}",
            debtor_id=debtor_id,
            creditor_id="dealer-1",
            amount=amount,
            kind=kind,
            status=status,
            occurred_at=occurred_at,
        )

    return _make


@pytest.fixture
def make_order() -> Callable[..., Order]:
    def _make(
        order_id: str,
        debtor_id: str,
        total_amount: float = 1000.0,
        placed_at: Optional[datetime] = None,
    ) -> Order:
        return Order(
            id=order_id,
            debtor_id=debtor_id,
            total_amount=total_amount,
            placed_at=placed_at if placed_at is not None else NOW,
        )

    return _make


@pytest.fixture
def make_plot() -> Callable[..., FarmPlot]:
    counter = iter(range(1, 10_000))

    def _make(
        acreage: float,
        planted_at: Optional[datetime],
        farmer_id: str = "farmer-1",
    ) -> FarmPlot:
        return FarmPlot(
            id=f"plot-{next(counter)}",
            farmer_id=farmer_id,
            acreage=acreage,
            plant_type="Oil Palm",
            planted_at=planted_at,
        )

    return _make


# ── Sample domain objects ─────────────────────────────────────────────────────

@pytest.fixture
def farmer() -> Farmer:
    return Farmer(
        id="farmer-1",
        full_name="Ravi Kumar",
        mobile="9876543210",
        village="Pedapadu",
        mandal="Eluru",
        district="West Godavari",
        primary_crop="Oil Palm",
    )


@pytest.fixture
def farmers() -> list[Farmer]:
    return [
        Farmer(id="farmer-1", full_name="Ravi Kumar", mandal="Eluru"),
        Farmer(id="farmer-2", full_name="Lakshmi Devi", mandal="Eluru"),
        Farmer(id="farmer-3", full_name="Suresh Babu", mandal="Denduluru"),
        Farmer(id="farmer-4", full_name="Anitha Rao", mandal="Eluru"),
    ]


@pytest.fixture
def products() -> list[Product]:
    return [
        Product(id="p-urea", name="Urea 46% N", category_id="fertilizer"),
        Product(id="p-dap", name="DAP 18-46", category_id="fertilizer"),
        Product(id="p-sickle", name="Harvest Sickle", category_id="tools"),
        Product(id="p-boron", name="Boron 20%", category_id="micronutrient"),
    ]


@pytest.fixture
def listings() -> list[Listing]:
    return [
        Listing(id="l-urea", product_id="p-urea", vendor_id="vendor-1"),
        Listing(id="l-dap", product_id="p-dap", vendor_id="vendor-1"),
        Listing(id="l-sickle", product_id="p-sickle", vendor_id="vendor-2"),
        Listing(id="l-boron", product_id="p-boron", vendor_id="vendor-1"),
        Listing(id="l-urea-v2", product_id="p-urea", vendor_id="vendor-2"),
    ]
