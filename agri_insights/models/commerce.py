"""
Catalog, inventory and order models.

A ``Listing`` is a vendor's commercial offer of a ``Product``; order line
items reference listings, so every product-level aggregate resolves
``listing_id → product_id`` first. ``InventorySignal`` is a separate,
pricing-free stock record used only by demand forecasting.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from agri_insights.models.fields import parse_string_list, repair_number, repair_timestamp


class Product(BaseModel):
    """A catalog product.

    ``target_crops`` / ``target_soils`` / ``target_regions`` may arrive as
    JSON-encoded strings from the store. They are decoded once here; a value
    that fails to decode becomes ``None`` (absent), never an empty-match
    wildcard.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    name: str
    category_id: Optional[str] = None
    target_crops: Optional[list[str]] = None
    target_soils: Optional[list[str]] = None
    target_regions: Optional[list[str]] = None

    @field_validator("target_crops", "target_soils", "target_regions", mode="before")
    @classmethod
    def decode_list(cls, v: Any) -> Optional[list[str]]:
        return parse_string_list(v)


class Listing(BaseModel):
    """A vendor's sale listing; resolves to a ``(product_id, vendor_id)`` pair."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    product_id: str
    vendor_id: str


class InventorySignal(BaseModel):
    """Current stock of a product at a dealer."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    dealer_id: str
    product_id: str
    stock_quantity: float = 0.0
    reorder_level: float = 0.0
    is_available: bool = True

    @field_validator("stock_quantity", "reorder_level", mode="before")
    @classmethod
    def repair_quantities(cls, v: Any) -> float:
        return repair_number(v)


class Order(BaseModel):
    """A placed order.

    Attributes:
        id: Store record ID.
        debtor_id: Farmer who placed the order.
        total_amount: Order total; non-numeric values repair to 0.
        placed_at: UTC timestamp, or ``None`` if missing/unparseable.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    debtor_id: str
    total_amount: float = 0.0
    placed_at: Optional[datetime] = None

    @field_validator("total_amount", mode="before")
    @classmethod
    def repair_total(cls, v: Any) -> float:
        return repair_number(v)

    @field_validator("placed_at", mode="before")
    @classmethod
    def repair_placed_at(cls, v: Any) -> Optional[datetime]:
        return repair_timestamp(v)


class OrderLineItem(BaseModel):
    """One line of an order."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    order_id: str
    listing_id: str
    quantity: float = 0.0
    unit_price: float = 0.0

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def repair_numbers(cls, v: Any) -> float:
        return repair_number(v)

    @property
    def revenue(self) -> float:
        return self.quantity * self.unit_price
