"""
Tests for agri_insights/analytics/demand.py.

What we test
------------
build_cohorts / rain_imminent:
  - Plots split at the gestation boundary; undated plots excluded.
  - Rain checked on the current snapshot and the first N forecast entries,
    with a strict threshold.

forecast_demand:
  - Quantities, units and confidence for each rule in the table.
  - Rain surge raises nitrogen demand and confidence; fungicide only
    appears when rain is imminent.
  - Stock status classification and ordering by gap.
  - Monotonic in acreage.
  - A custom rule table plugs in without code changes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from agri_insights.analytics.demand import (
    DEMAND_RULES,
    Cohorts,
    DemandRule,
    build_cohorts,
    classify_stock,
    current_stock,
    forecast_demand,
    rain_imminent,
)
from agri_insights.config import ForecastConfig
from agri_insights.models.commerce import InventorySignal, Product
from agri_insights.models.weather import WeatherSnapshot
from agri_insights.taxonomy.ledger_taxonomy import StockStatus

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

_DRY = WeatherSnapshot(rainfall_mm=0.0)
_WET = WeatherSnapshot(rainfall_mm=0.0, forecast=[WeatherSnapshot(rainfall_mm=2), WeatherSnapshot(rainfall_mm=25)])


def years_ago(years: float) -> datetime:
    return NOW - timedelta(days=365 * years)


def signal(product_id: str, qty: float, available: bool = True) -> InventorySignal:
    return InventorySignal(
        dealer_id="dealer-1", product_id=product_id, stock_quantity=qty, is_available=available
    )


@pytest.fixture
def plots(make_plot):
    return [
        make_plot(10, years_ago(2)),    # gestation
        make_plot(20, years_ago(10)),   # mature
        make_plot(99, None),            # undated, ignored
    ]


def by_rule(predictions):
    return {p.rule: p for p in predictions}


# ── Cohorts and rain ──────────────────────────────────────────────────────────

class TestCohorts:
    def test_split_and_undated_excluded(self, plots):
        cohorts = build_cohorts(plots, None, NOW)
        assert cohorts.gestation_acreage == pytest.approx(10)
        assert cohorts.mature_acreage == pytest.approx(20)
        assert cohorts.rain_imminent is False
        assert cohorts.total_acreage == pytest.approx(30)

    def test_gestation_boundary_is_mature(self, make_plot):
        cohorts = build_cohorts([make_plot(5, years_ago(4))], None, NOW)
        assert cohorts.mature_acreage == 5
        assert cohorts.gestation_acreage == 0


class TestRainImminent:
    def test_none_weather(self):
        assert rain_imminent(None) is False

    def test_current_rain(self):
        assert rain_imminent(WeatherSnapshot(rainfall_mm=12))

    def test_forecast_rain(self):
        assert rain_imminent(_WET)

    def test_threshold_is_strict(self):
        assert not rain_imminent(WeatherSnapshot(rainfall_mm=10.0))

    def test_beyond_lookahead_ignored(self):
        weather = WeatherSnapshot(
            forecast=[_DRY, _DRY, _DRY, WeatherSnapshot(rainfall_mm=50)]
        )
        assert not rain_imminent(weather)
        assert rain_imminent(weather, config=ForecastConfig(rain_lookahead=4))


# ── Forecast ──────────────────────────────────────────────────────────────────

class TestForecastDemand:
    def test_rule_quantities_without_rain(self, plots, products):
        results = by_rule(forecast_demand(plots, products, [], _DRY, NOW))

        assert set(results) == {"nitrogen", "harvest_tools", "micronutrient"}

        nitrogen = results["nitrogen"]
        assert nitrogen.product_id == "p-urea"
        assert nitrogen.predicted_quantity == pytest.approx(2500.0)
        assert nitrogen.unit == "kg"
        assert nitrogen.confidence == pytest.approx(0.85)

        tools = results["harvest_tools"]
        assert tools.product_id == "p-sickle"
        assert tools.predicted_quantity == 2.0
        assert tools.unit == "units"

        assert results["micronutrient"].predicted_quantity == pytest.approx(50.0)
        assert results["micronutrient"].confidence == pytest.approx(0.5)

    def test_rain_surges_nitrogen_and_adds_fungicide(self, plots, products):
        fungicide = Product(id="p-fung", name="Mancozeb 75 WP", category_id="protection")
        catalog = products + [fungicide]

        dry = by_rule(forecast_demand(plots, catalog, [], _DRY, NOW))
        wet = by_rule(forecast_demand(plots, catalog, [], _WET, NOW))

        assert "fungicide" not in dry
        assert wet["fungicide"].predicted_quantity == pytest.approx(15.0)
        assert wet["fungicide"].unit == "litres"

        assert wet["nitrogen"].predicted_quantity > dry["nitrogen"].predicted_quantity
        assert wet["nitrogen"].predicted_quantity == pytest.approx(3125.0)
        assert wet["nitrogen"].confidence == pytest.approx(0.9)
        assert "Rain imminent" in wet["nitrogen"].reasoning

    def test_harvest_tools_round_up(self, make_plot, products):
        results = by_rule(forecast_demand([make_plot(11, years_ago(6))], products, [], None, NOW))
        assert results["harvest_tools"].predicted_quantity == 2.0

    def test_stock_status_and_gap_ordering(self, plots, products):
        signals = [
            signal("p-urea", 3000),
            signal("p-boron", 10),
            signal("p-boron", 500, available=False),
        ]
        results = forecast_demand(plots, products, signals, _DRY, NOW)

        assert [r.rule for r in results] == ["micronutrient", "harvest_tools", "nitrogen"]
        boron, sickle, urea = results
        assert boron.current_stock == 10
        assert boron.gap == pytest.approx(40.0)
        assert boron.stock_status == StockStatus.LOW
        assert sickle.stock_status == StockStatus.CRITICAL_OUT
        assert urea.gap == 0.0
        assert urea.stock_status == StockStatus.OK

    def test_equal_gaps_keep_rule_table_order(self, plots, products):
        signals = [signal("p-urea", 3000), signal("p-sickle", 5), signal("p-boron", 100)]
        results = forecast_demand(plots, products, signals, _DRY, NOW)
        assert [r.gap for r in results] == [0.0, 0.0, 0.0]
        assert [r.rule for r in results] == ["nitrogen", "harvest_tools", "micronutrient"]

        flipped = forecast_demand(
            plots, products, signals, _DRY, NOW, rules=tuple(reversed(DEMAND_RULES))
        )
        assert [r.rule for r in flipped] == ["micronutrient", "harvest_tools", "nitrogen"]

    def test_monotonic_in_acreage(self, plots, make_plot, products):
        base = by_rule(forecast_demand(plots, products, [], _DRY, NOW))
        more = by_rule(forecast_demand(plots + [make_plot(7, years_ago(8))], products, [], _DRY, NOW))
        for rule, prediction in base.items():
            assert more[rule].predicted_quantity >= prediction.predicted_quantity

    def test_no_dated_plots_yields_nothing(self, make_plot, products):
        assert forecast_demand([make_plot(40, None)], products, [], _WET, NOW) == []

    def test_no_matching_products(self, plots):
        catalog = [Product(id="p-x", name="Drip Pipe 16mm")]
        assert forecast_demand(plots, catalog, [], _DRY, NOW) == []

    def test_first_matching_product_wins(self, plots):
        catalog = [
            Product(id="p-a", name="Neem Coated Urea"),
            Product(id="p-b", name="Urea Granules"),
        ]
        [prediction] = forecast_demand(plots, catalog, [], _DRY, NOW)
        assert prediction.product_id == "p-a"

    def test_custom_rule_table(self, plots, products):
        potash = DemandRule(
            name="potash",
            keywords=("dap",),
            category="Fertilizer",
            unit="kg",
            quantity_fn=lambda c: c.total_acreage * 2,
            base_confidence=0.4,
            reasoning_fn=lambda c: "test rule",
        )
        [prediction] = forecast_demand(plots, products, [], _DRY, NOW, rules=(potash,))
        assert prediction.product_id == "p-dap"
        assert prediction.predicted_quantity == pytest.approx(60.0)

    def test_default_table_names(self):
        assert [r.name for r in DEMAND_RULES] == [
            "nitrogen", "harvest_tools", "micronutrient", "fungicide",
        ]


class TestStockHelpers:
    def test_current_stock_sums_available_only(self):
        signals = [signal("a", 3), signal("a", 4), signal("a", 100, available=False), signal("b", 9)]
        assert current_stock("a", signals) == 7
        assert current_stock("missing", signals) == 0.0

    @pytest.mark.parametrize(
        ("stock", "predicted", "expected"),
        [
            (0, 10, StockStatus.CRITICAL_OUT),
            (-1, 10, StockStatus.CRITICAL_OUT),
            (4.9, 10, StockStatus.LOW),
            (5, 10, StockStatus.OK),
            (50, 10, StockStatus.OK),
        ],
    )
    def test_classify_stock(self, stock, predicted, expected):
        assert classify_stock(stock, predicted) == expected

    def test_rule_evaluate_without_rain_has_no_surge(self):
        nitrogen = DEMAND_RULES[0]
        quantity, confidence, reasoning = nitrogen.evaluate(Cohorts(1.0, 1.0, False))
        assert quantity == pytest.approx(150.0)
        assert confidence == pytest.approx(0.85)
        assert "Rain" not in reasoning
