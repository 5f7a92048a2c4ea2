"""
Output value types produced by the analytics core.

All outputs are plain frozen data (no behaviour beyond trivial derived
properties). Formatting, localisation and currency presentation belong to
the consumer; ``reporting.formatters`` is the CLI's consumer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from agri_insights.models.commerce import Product
from agri_insights.models.farm import Farmer
from agri_insights.taxonomy.ledger_taxonomy import (
    DebtStatus,
    LeadKind,
    SegmentId,
    StockStatus,
    Urgency,
)


class AgingBuckets(BaseModel):
    """Unpaid credit partitioned by age.

    Attributes:
        current: Younger than the first edge (default 30 days), plus undated.
        days30: 30–59 days.
        days60: 60–89 days.
        days90_plus: 90 days and older.
    """

    model_config = ConfigDict(frozen=True)

    current: float = 0.0
    days30: float = 0.0
    days60: float = 0.0
    days90_plus: float = 0.0

    @property
    def total(self) -> float:
        return self.current + self.days30 + self.days60 + self.days90_plus


class LedgerSummary(BaseModel):
    """Per-farmer ledger roll-up for the dealer's ledger screen."""

    model_config = ConfigDict(frozen=True)

    farmer: Farmer
    balance: float
    last_transaction_at: Optional[datetime] = None
    aging: AgingBuckets
    status: DebtStatus


class ReminderAdvice(BaseModel):
    """Whether and how to nudge a debtor. Delivery is the caller's concern."""

    model_config = ConfigDict(frozen=True)

    should_remind: bool
    message: str = ""
    urgency: Urgency = Urgency.LOW


class PredictionResult(BaseModel):
    """Predicted demand for one product, checked against current stock."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str
    category: str
    rule: str
    predicted_quantity: float
    unit: str
    confidence: float
    reasoning: str
    current_stock: float
    stock_status: StockStatus
    gap: float

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v


class CustomerSegment(BaseModel):
    """A behavioural customer segment."""

    model_config = ConfigDict(frozen=True)

    id: SegmentId
    label: str
    description: str
    farmers: list[Farmer]
    avg_spend: float


class BundleOpportunity(BaseModel):
    """A pair of products worth promoting together."""

    model_config = ConfigDict(frozen=True)

    id: str
    products: tuple[Product, Product]
    frequency: int
    overlap_pct: float
    description: str
    suggested_discount_pct: float


class SalesTrendBucket(BaseModel):
    """Vendor revenue for one calendar month."""

    model_config = ConfigDict(frozen=True)

    period: str           # "YYYY-MM"
    label: str            # "Oct 26"
    revenue: float = 0.0
    count: int = 0


class UpsellLead(BaseModel):
    """A farmer worth approaching with a specific offer."""

    model_config = ConfigDict(frozen=True)

    kind: LeadKind
    farmer: Farmer
    estimated_value: float
    reason: str
