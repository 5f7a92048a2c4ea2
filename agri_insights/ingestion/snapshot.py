"""
Record snapshot loader, the single boundary between the record store and
the analytics core.

The store exports a JSON object with one array per collection::

    {
      "_meta": {"exported_at": "2026-10-19T08:00:00Z", "dealer_id": "d1"},
      "farmers":        [ ... ],
      "plots":          [ ... ],
      "products":       [ ... ],
      "listings":       [ ... ],
      "stock_signals":  [ ... ],
      "orders":         [ ... ],
      "order_items":    [ ... ],
      "ledger_entries": [ ... ],
      "inputs":         [ ... ],
      "weather":        { ... }
    }

Every key is optional. Store rows are passed through ``adapt_record``,
dropping reactive-store metadata, converting camelCase keys to snake_case
and renaming legacy column names, and then validated one by one. A row
that fails validation is logged and skipped; one bad row never blanks out
the whole collection.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from agri_insights.models.commerce import (
    InventorySignal,
    Listing,
    Order,
    OrderLineItem,
    Product,
)
from agri_insights.models.farm import AgronomicInput, FarmPlot, Farmer
from agri_insights.models.ledger import LedgerEntry
from agri_insights.models.weather import WeatherSnapshot

logger = logging.getLogger(__name__)

# Store bookkeeping fields that must never reach the core.
STORE_METADATA_KEYS = frozenset({"sync_status", "created_at", "updated_at", "changed"})

# Legacy column names → value-type field names.
FIELD_ALIASES: dict[str, str] = {
    "transaction_type": "kind",
    "transaction_date": "occurred_at",
    "price_per_unit": "unit_price",
    "description": "note",
    "plantation_date": "planted_at",
    "mobile_number": "mobile",
    "category": "category_id",
}

# Per-collection aliases where a column means different things per table.
_COLLECTION_ALIASES: dict[str, dict[str, str]] = {
    "ledger_entries": {"farmer_id": "debtor_id", "dealer_id": "creditor_id"},
    "orders": {"farmer_id": "debtor_id", "buyer_id": "debtor_id", "created_at": "placed_at"},
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


class DataSnapshot(BaseModel):
    """All collections the analytics core consumes, already validated.

    ``skipped`` maps collection name → number of rows rejected at load time.
    """

    model_config = ConfigDict(frozen=True)

    farmers: list[Farmer] = []
    plots: list[FarmPlot] = []
    products: list[Product] = []
    listings: list[Listing] = []
    stock_signals: list[InventorySignal] = []
    orders: list[Order] = []
    order_items: list[OrderLineItem] = []
    ledger_entries: list[LedgerEntry] = []
    inputs: list[AgronomicInput] = []
    weather: Optional[WeatherSnapshot] = None
    skipped: dict[str, int] = {}


_COLLECTIONS: dict[str, type[BaseModel]] = {
    "farmers": Farmer,
    "plots": FarmPlot,
    "products": Product,
    "listings": Listing,
    "stock_signals": InventorySignal,
    "orders": Order,
    "order_items": OrderLineItem,
    "ledger_entries": LedgerEntry,
    "inputs": AgronomicInput,
}


def load_snapshot(path: Path) -> DataSnapshot:
    """Read and validate a JSON record snapshot.

    Args:
        path: Path to the exported JSON file.

    Returns:
        ``DataSnapshot`` with every valid row.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON or not a JSON object.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot {path.name} is not valid JSON: {exc}") from exc

    snapshot = parse_snapshot(payload)
    logger.info(
        "Loaded snapshot %s: %s",
        path.name,
        {name: len(getattr(snapshot, name)) for name in _COLLECTIONS},
    )
    return snapshot


def parse_snapshot(payload: Any) -> DataSnapshot:
    """Validate an already-decoded snapshot payload.

    Raises:
        ValueError: If ``payload`` is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise ValueError(
            f"Snapshot must be a JSON object, got {type(payload).__name__}."
        )

    collections: dict[str, list[BaseModel]] = {}
    skipped: dict[str, int] = {}

    for name, model in _COLLECTIONS.items():
        rows = payload.get(name) or []
        if not isinstance(rows, list):
            logger.warning("Snapshot key '%s' is not a list; ignoring it.", name)
            skipped[name] = 1
            collections[name] = []
            continue
        valid, rejected = _validate_rows(name, model, rows)
        collections[name] = valid
        if rejected:
            skipped[name] = rejected

    weather: Optional[WeatherSnapshot] = None
    raw_weather = payload.get("weather")
    if raw_weather is not None:
        try:
            weather = WeatherSnapshot.model_validate(_adapt_weather(raw_weather))
        except (ValidationError, TypeError) as exc:
            logger.warning("Weather snapshot rejected: %s", exc)
            skipped["weather"] = 1

    return DataSnapshot(**collections, weather=weather, skipped=skipped)


def adapt_record(raw: dict[str, Any], collection: str = "") -> dict[str, Any]:
    """Map a raw store row onto value-type field names.

    - Keys starting with ``_`` (``_raw``, ``_status``, ``_changed``) and
      ``STORE_METADATA_KEYS`` are dropped.
    - camelCase keys become snake_case (``transactionDate`` → ``transaction_date``).
    - Legacy column names are renamed via ``FIELD_ALIASES`` and the
      collection-specific alias table. An alias never overwrites a key that
      is already present under its target name.

    Args:
        raw:        One row as exported by the store.
        collection: Snapshot key the row came from (selects extra aliases).

    Returns:
        New dict ready for ``Model.model_validate``.
    """
    aliases = {**FIELD_ALIASES, **_COLLECTION_ALIASES.get(collection, {})}
    snake: dict[str, Any] = {}
    for key, value in raw.items():
        if key.startswith("_"):
            continue
        snake[_to_snake(key)] = value

    adapted: dict[str, Any] = {}
    for key, value in snake.items():
        target = aliases.get(key, key)
        if target != key and target in snake:
            continue
        if target in STORE_METADATA_KEYS:
            continue
        adapted[target] = value
    return adapted


# ── Private helpers ────────────────────────────────────────────────────────────

def _validate_rows(
    name: str,
    model: type[BaseModel],
    rows: list[Any],
) -> tuple[list[BaseModel], int]:
    valid: list[BaseModel] = []
    rejected = 0
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning("%s[%d]: expected an object, got %s; skipped.",
                           name, index, type(row).__name__)
            rejected += 1
            continue
        try:
            valid.append(model.model_validate(adapt_record(row, name)))
        except ValidationError as exc:
            logger.warning(
                "%s[%d] (id=%s) rejected: %s",
                name, index, row.get("id", "?"), _first_error(exc),
            )
            rejected += 1
    return valid, rejected


def _adapt_weather(raw: Any) -> Any:
    if not isinstance(raw, dict):
        raise TypeError(f"weather must be an object, got {type(raw).__name__}")
    adapted = adapt_record(raw)
    forecast = adapted.get("forecast")
    if isinstance(forecast, list):
        adapted["forecast"] = [adapt_record(f) for f in forecast if isinstance(f, dict)]
    return adapted


def _to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid")
