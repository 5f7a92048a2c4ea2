"""
Input demand forecasting from plot age cohorts, weather and stock.

Pipeline
--------
1. Split dated plot acreage into cohorts: gestation (< ``gestation_years``)
   and mature (>= ``gestation_years``). Undated plots are excluded.
2. ``rain_imminent``: current rainfall, or any of the first
   ``rain_lookahead`` forecast entries, above ``rain_threshold_mm``.
3. Evaluate every rule in ``DEMAND_RULES`` independently. A rule matches the
   first product whose lower-cased name contains one of its keywords, and
   yields at most one prediction:
       quantity   = quantity_fn(cohorts)          [× rain_surge if raining]
       confidence = base_confidence               [rain_confidence if raining]
4. Stock check against available ``InventorySignal``s:
       gap    = max(0, predicted − stock)
       status = CRITICAL_OUT if stock <= 0
                LOW          if stock < low_stock_ratio × predicted
                OK           otherwise
5. Sort by gap descending (stable; ties keep rule-table order).

Adding a rule is a new ``DemandRule`` row; no control flow changes.

Rule table
----------
    nitrogen       urea/nitrogen            50 kg/ac young + 100 kg/ac mature,
                                            ×1.25 and conf 0.85→0.90 with rain
    harvest_tools  sickle/cutter/harvest    1 unit per 10 mature acres, conf 0.6
    micronutrient  boron/micro/zinc         5 kg per young acre, conf 0.5
    fungicide      fungicide/mancozeb       0.5 L per acre, only when rain is
                                            imminent, conf 0.55
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from agri_insights.config import ForecastConfig
from agri_insights.models.commerce import InventorySignal, Product
from agri_insights.models.farm import FarmPlot
from agri_insights.models.insights import PredictionResult
from agri_insights.models.weather import WeatherSnapshot
from agri_insights.taxonomy.ledger_taxonomy import StockStatus
from agri_insights.utils.time_utils import age_in_years, as_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cohorts:
    """Acreage split by plantation age, plus the rain signal."""

    gestation_acreage: float
    mature_acreage: float
    rain_imminent: bool

    @property
    def total_acreage(self) -> float:
        return self.gestation_acreage + self.mature_acreage


@dataclass(frozen=True)
class DemandRule:
    """One row of the heuristic rule table.

    Attributes:
        name:            Stable rule identifier (echoed on each prediction).
        keywords:        Lower-case substrings matched against product names.
        category:        Category label reported with the prediction.
        unit:            ``"kg"``, ``"litres"`` or ``"units"``.
        quantity_fn:     Base quantity from cohorts.
        base_confidence: Confidence without rain.
        reasoning_fn:    Human-readable explanation from cohorts.
        rain_surge:      Multiplier applied when rain is imminent (``None`` = none).
        rain_confidence: Confidence when the surge applies.
    """

    name: str
    keywords: tuple[str, ...]
    category: str
    unit: str
    quantity_fn: Callable[[Cohorts], float]
    base_confidence: float
    reasoning_fn: Callable[[Cohorts], str]
    rain_surge: Optional[float] = None
    rain_confidence: Optional[float] = None

    def matches(self, product: Product) -> bool:
        name = product.name.lower()
        return any(keyword in name for keyword in self.keywords)

    def evaluate(self, cohorts: Cohorts) -> tuple[float, float, str]:
        """Return ``(quantity, confidence, reasoning)`` for these cohorts."""
        quantity = self.quantity_fn(cohorts)
        confidence = self.base_confidence
        reasoning = self.reasoning_fn(cohorts)
        if cohorts.rain_imminent and self.rain_surge is not None:
            quantity *= self.rain_surge
            confidence = self.rain_confidence or confidence
            reasoning += f" Rain imminent: +{self.rain_surge - 1:.0%} surge."
        return _round_quantity(quantity, self.unit), confidence, reasoning


DEMAND_RULES: tuple[DemandRule, ...] = (
    DemandRule(
        name="nitrogen",
        keywords=("urea", "nitrogen"),
        category="Fertilizer",
        unit="kg",
        quantity_fn=lambda c: c.gestation_acreage * 50 + c.mature_acreage * 100,
        base_confidence=0.85,
        reasoning_fn=lambda c: (
            f"Base demand for {c.gestation_acreage:.1f} ac young & "
            f"{c.mature_acreage:.1f} ac mature palms."
        ),
        rain_surge=1.25,
        rain_confidence=0.9,
    ),
    DemandRule(
        name="harvest_tools",
        keywords=("sickle", "cutter", "harvest"),
        category="Tools",
        unit="units",
        quantity_fn=lambda c: c.mature_acreage / 10,
        base_confidence=0.6,
        reasoning_fn=lambda c: (
            f"Replacement demand estimated for {c.mature_acreage:.1f} active harvest acres."
        ),
    ),
    DemandRule(
        name="micronutrient",
        keywords=("boron", "micro", "zinc"),
        category="Fertilizer",
        unit="kg",
        quantity_fn=lambda c: c.gestation_acreage * 5,
        base_confidence=0.5,
        reasoning_fn=lambda c: (
            f"Standard micronutrient requirement for {c.gestation_acreage:.1f} ac young palms."
        ),
    ),
    DemandRule(
        name="fungicide",
        keywords=("fungicide", "mancozeb"),
        category="Crop Protection",
        unit="litres",
        quantity_fn=lambda c: c.total_acreage * 0.5 if c.rain_imminent else 0.0,
        base_confidence=0.55,
        reasoning_fn=lambda c: (
            f"Wet spell raises fungal disease pressure across {c.total_acreage:.1f} ac."
        ),
    ),
)


def forecast_demand(
    plots: Sequence[FarmPlot],
    products: Sequence[Product],
    stock_signals: Sequence[InventorySignal],
    weather: Optional[WeatherSnapshot],
    reference_date: date | datetime,
    *,
    config: Optional[ForecastConfig] = None,
    rules: Sequence[DemandRule] = DEMAND_RULES,
) -> list[PredictionResult]:
    """Predict per-product input demand and flag stock shortfalls.

    Args:
        plots:          Plots in the dealer's catchment.
        products:       Catalog to match rules against (first match wins).
        stock_signals:  The dealer's inventory signals.
        weather:        Current snapshot; ``None`` means no rain signal.
        reference_date: Date plot ages are measured against.
        config:         Forecast thresholds.
        rules:          Rule table; defaults to ``DEMAND_RULES``.

    Returns:
        Predictions sorted by ``gap`` descending. Empty when no rule matches
        a product or every rule yields zero.
    """
    cfg = config or ForecastConfig()
    cohorts = build_cohorts(plots, weather, reference_date, config=cfg)

    results: list[PredictionResult] = []
    for rule in rules:
        product = next((p for p in products if rule.matches(p)), None)
        if product is None:
            continue

        quantity, confidence, reasoning = rule.evaluate(cohorts)
        if quantity <= 0:
            continue

        stock = current_stock(product.id, stock_signals)
        results.append(
            PredictionResult(
                product_id=product.id,
                product_name=product.name,
                category=rule.category,
                rule=rule.name,
                predicted_quantity=quantity,
                unit=rule.unit,
                confidence=confidence,
                reasoning=reasoning,
                current_stock=stock,
                stock_status=classify_stock(stock, quantity, cfg.low_stock_ratio),
                gap=max(0.0, quantity - stock),
            )
        )

    results.sort(key=lambda r: r.gap, reverse=True)
    logger.debug(
        "Demand forecast: gestation=%.1f mature=%.1f rain=%s predictions=%d",
        cohorts.gestation_acreage, cohorts.mature_acreage,
        cohorts.rain_imminent, len(results),
    )
    return results


def build_cohorts(
    plots: Sequence[FarmPlot],
    weather: Optional[WeatherSnapshot],
    reference_date: date | datetime,
    *,
    config: Optional[ForecastConfig] = None,
) -> Cohorts:
    """Sum dated plot acreage into gestation / mature cohorts."""
    cfg = config or ForecastConfig()
    reference = as_datetime(reference_date)

    gestation = 0.0
    mature = 0.0
    for plot in plots:
        if plot.planted_at is None:
            continue
        if age_in_years(plot.planted_at, reference) < cfg.gestation_years:
            gestation += plot.acreage
        else:
            mature += plot.acreage

    return Cohorts(
        gestation_acreage=gestation,
        mature_acreage=mature,
        rain_imminent=rain_imminent(weather, config=cfg),
    )


def rain_imminent(
    weather: Optional[WeatherSnapshot],
    *,
    config: Optional[ForecastConfig] = None,
) -> bool:
    """True if now or the near-future forecast exceeds the rain threshold."""
    if weather is None:
        return False
    cfg = config or ForecastConfig()
    horizon = [weather, *weather.forecast[: cfg.rain_lookahead]]
    return any(snap.rainfall_mm > cfg.rain_threshold_mm for snap in horizon)


def current_stock(product_id: str, stock_signals: Sequence[InventorySignal]) -> float:
    """Available stock of ``product_id``; unavailable signals count as zero."""
    return sum(
        (s.stock_quantity for s in stock_signals
         if s.product_id == product_id and s.is_available),
        0.0,
    )


def classify_stock(stock: float, predicted: float, low_ratio: float = 0.5) -> StockStatus:
    if stock <= 0:
        return StockStatus.CRITICAL_OUT
    if stock < low_ratio * predicted:
        return StockStatus.LOW
    return StockStatus.OK


# ── Helper ────────────────────────────────────────────────────────────────────

def _round_quantity(quantity: float, unit: str) -> float:
    if unit == "units":
        return float(math.ceil(quantity)) if quantity > 0 else 0.0
    return round(quantity, 1)
