"""
Upsell and cross-sell leads from farm activity.

micronutrient_upsell
    Farmer has a plot aged within [1.5, 3.5] years (the window where young
    palms typically need boron/zinc) and no boron or zinc input on record
    for any of their plots.

biostimulant_cross_sell
    Farmer has applied at least one FERTILIZER input but never anything
    named like a bio-stimulant.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from agri_insights.config import LeadsConfig
from agri_insights.models.farm import AgronomicInput, FarmPlot, Farmer
from agri_insights.models.insights import UpsellLead
from agri_insights.taxonomy.ledger_taxonomy import LeadKind
from agri_insights.utils.time_utils import age_in_years, as_datetime

_MICRONUTRIENT_KEYWORDS = ("boron", "zinc")
_BIOSTIMULANT_KEYWORDS = ("bio",)
_FERTILIZER_TYPE = "FERTILIZER"


def find_upsell_leads(
    farmers: Sequence[Farmer],
    plots: Sequence[FarmPlot],
    inputs: Sequence[AgronomicInput],
    reference_date: date | datetime,
    *,
    config: Optional[LeadsConfig] = None,
) -> list[UpsellLead]:
    """Return micronutrient leads followed by bio-stimulant leads."""
    cfg = config or LeadsConfig()
    reference = as_datetime(reference_date)

    plots_by_farmer: dict[str, list[FarmPlot]] = defaultdict(list)
    for plot in plots:
        plots_by_farmer[plot.farmer_id].append(plot)

    inputs_by_plot: dict[str, list[AgronomicInput]] = defaultdict(list)
    for applied in inputs:
        inputs_by_plot[applied.farm_plot_id].append(applied)

    micronutrient: list[UpsellLead] = []
    biostimulant: list[UpsellLead] = []

    for farmer in farmers:
        farmer_plots = plots_by_farmer.get(farmer.id, [])
        farmer_inputs = [i for p in farmer_plots for i in inputs_by_plot.get(p.id, [])]

        young = [
            p for p in farmer_plots
            if p.planted_at is not None
            and cfg.micronutrient_min_age_years
            < age_in_years(p.planted_at, reference)
            < cfg.micronutrient_max_age_years
        ]
        if young and not _any_named(farmer_inputs, _MICRONUTRIENT_KEYWORDS):
            micronutrient.append(
                UpsellLead(
                    kind=LeadKind.MICRONUTRIENT_UPSELL,
                    farmer=farmer,
                    estimated_value=cfg.micronutrient_lead_value,
                    reason=f"{len(young)} young plot(s) with no boron/zinc application.",
                )
            )

        has_fertilizer = any(i.input_type == _FERTILIZER_TYPE for i in farmer_inputs)
        if has_fertilizer and not _any_named(farmer_inputs, _BIOSTIMULANT_KEYWORDS):
            biostimulant.append(
                UpsellLead(
                    kind=LeadKind.BIOSTIMULANT_CROSS_SELL,
                    farmer=farmer,
                    estimated_value=cfg.biostimulant_lead_value,
                    reason="Uses fertilizer but no bio-stimulant on record.",
                )
            )

    return micronutrient + biostimulant


def lead_totals(leads: Iterable[UpsellLead]) -> dict[LeadKind, tuple[int, float]]:
    """``{kind: (count, total estimated value)}`` for every kind present."""
    totals: dict[LeadKind, tuple[int, float]] = {}
    for lead in leads:
        count, value = totals.get(lead.kind, (0, 0.0))
        totals[lead.kind] = (count + 1, value + lead.estimated_value)
    return totals


def _any_named(inputs: Iterable[AgronomicInput], keywords: tuple[str, ...]) -> bool:
    return any(keyword in i.name.lower() for i in inputs for keyword in keywords)
