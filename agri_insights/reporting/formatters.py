"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept analytics outputs (pydantic models) and return plain
multi-line strings suitable for ``typer.echo()``. No third-party
dependencies (no ``rich``, no ``colorama``).

Aging bars
----------
``format_ledger_summary()`` draws one 20-character bar per farmer, with one
glyph per bucket::

    ..........:::::####   (current . / 30d : / 60d + / 90d+ #)

Bar widths come from ``aging_fractions()``, which returns zeros for a
non-positive balance, so a fully paid account renders as an empty bar
instead of dividing by zero.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from agri_insights.analytics.leads import lead_totals
from agri_insights.analytics.ledger import aging_fractions
from agri_insights.analytics.reminders import format_amount
from agri_insights.analytics.segments import broadcast_message
from agri_insights.models.insights import (
    AgingBuckets,
    BundleOpportunity,
    CustomerSegment,
    LedgerSummary,
    PredictionResult,
    ReminderAdvice,
    SalesTrendBucket,
    UpsellLead,
)
from agri_insights.models.farm import Farmer

_BAR_WIDTH = 20
_BUCKET_GLYPHS = (("current", "."), ("days30", ":"), ("days60", "+"), ("days90_plus", "#"))


# ── Aging bar ─────────────────────────────────────────────────────────────────


def format_aging_bar(buckets: AgingBuckets, balance: float, width: int = _BAR_WIDTH) -> str:
    """Render the aging split as a fixed-width text bar."""
    fractions = aging_fractions(buckets, balance)
    bar = "".join(glyph * round(fractions[key] * width) for key, glyph in _BUCKET_GLYPHS)
    return bar[:width].ljust(width)


# ── Ledger ────────────────────────────────────────────────────────────────────


def format_ledger_summary(
    summaries: Sequence[LedgerSummary],
    total: float,
    currency_symbol: str = "",
) -> str:
    """Format per-farmer balances, aging bars and status.

    Args:
        summaries:       Output of ``summarize_ledgers()`` (largest first).
        total:           Output of ``total_outstanding()``.
        currency_symbol: Prefix for money columns.

    Returns:
        Multi-line string.
    """
    lines: list[str] = []
    lines.append("")
    lines.append("=== Ledger Summary ===")
    lines.append(f"  Total outstanding: {format_amount(total, currency_symbol)}")

    if not summaries:
        lines.append("")
        lines.append("  (no open balances)")
        return "\n".join(lines)

    lines.append("")
    header = (
        f"  {'Farmer':<24}  {'Balance':>12}  {'Last Txn':>10}  "
        f"{'Aging':<{_BAR_WIDTH}}  {'Status':>10}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for s in summaries:
        last = _fmt_date(s.last_transaction_at)
        lines.append(
            f"  {s.farmer.full_name[:24]:<24}  "
            f"{format_amount(s.balance, currency_symbol):>12}  {last:>10}  "
            f"{format_aging_bar(s.aging, s.balance)}  {s.status.value:>10}"
        )
    lines.append("")
    lines.append("  Legend: . current  : 30-59d  + 60-89d  # 90d+")
    return "\n".join(lines)


# ── Reminders ─────────────────────────────────────────────────────────────────


def format_reminders(advice: Sequence[tuple[Farmer, float, ReminderAdvice]]) -> str:
    """Format the reminders that should go out, highest urgency first."""
    order = {"high": 0, "medium": 1, "low": 2}
    due = [a for a in advice if a[2].should_remind]
    due.sort(key=lambda a: order.get(a[2].urgency.value, 3))

    lines: list[str] = ["", "=== Payment Reminders ==="]
    if not due:
        lines.append("  (no reminders due)")
        return "\n".join(lines)

    for farmer, _balance, rec in due:
        contact = f" ({farmer.mobile})" if farmer.mobile else ""
        lines.append("")
        lines.append(f"  [{rec.urgency.value.upper()}] {farmer.full_name}{contact}")
        lines.append(f"    {rec.message}")
    return "\n".join(lines)


# ── Demand forecast ───────────────────────────────────────────────────────────


def format_demand_forecast(predictions: Sequence[PredictionResult]) -> str:
    """Format demand predictions, largest stock gap first."""
    lines: list[str] = ["", "=== Input Demand Forecast ==="]
    if not predictions:
        lines.append("  (no demand signals: no matching products or no dated plots)")
        return "\n".join(lines)

    lines.append("")
    header = (
        f"  {'Product':<24}  {'Predicted':>12}  {'Stock':>8}  {'Gap':>8}  "
        f"{'Conf':>5}  {'Status':>12}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for p in predictions:
        predicted = f"{p.predicted_quantity:g} {p.unit}"
        lines.append(
            f"  {p.product_name[:24]:<24}  {predicted:>12}  {p.current_stock:>8g}  "
            f"{p.gap:>8g}  {p.confidence:>5.0%}  {p.stock_status.value:>12}"
        )
        lines.append(f"    {p.reasoning}")
    return "\n".join(lines)


# ── Segments ──────────────────────────────────────────────────────────────────


def format_segments(
    segments: Sequence[CustomerSegment],
    currency_symbol: str = "",
    show_members: bool = False,
) -> str:
    """Format customer segments with size, average lifetime value and template."""
    lines: list[str] = ["", "=== Customer Segments ==="]
    if not segments:
        lines.append("  (no farmers to segment)")
        return "\n".join(lines)

    for seg in segments:
        lines.append("")
        lines.append(
            f"  [{seg.id.value.upper()}] {seg.label}: {len(seg.farmers)} farmer(s), "
            f"avg LTV {format_amount(round(seg.avg_spend, 2), currency_symbol)}"
        )
        lines.append(f"    {seg.description}")
        lines.append(f"    Broadcast: \"{broadcast_message(seg.id)}\"")
        if show_members:
            for farmer in seg.farmers:
                lines.append(f"      - {farmer.full_name}")
    return "\n".join(lines)


# ── Bundles ───────────────────────────────────────────────────────────────────


def format_bundles(bundles: Sequence[BundleOpportunity]) -> str:
    lines: list[str] = ["", "=== Bundle Opportunities ==="]
    if not bundles:
        lines.append("  (no bundle opportunities)")
        return "\n".join(lines)

    for i, b in enumerate(bundles, start=1):
        names = " + ".join(p.name for p in b.products)
        freq = f"{b.frequency} orders" if b.frequency > 0 else "cold start"
        lines.append("")
        lines.append(f"  {i}. {names}  ({freq}, {b.suggested_discount_pct:g}% off)")
        lines.append(f"     {b.description}")
    return "\n".join(lines)


# ── Sales trend ───────────────────────────────────────────────────────────────


def format_sales_trend(
    buckets: Sequence[SalesTrendBucket],
    vendor_id: str,
    currency_symbol: str = "",
    width: int = 30,
) -> str:
    """Horizontal text bar chart of monthly revenue."""
    lines: list[str] = ["", "=== Sales Trend ===", f"  Vendor: {vendor_id}", ""]
    peak = max((b.revenue for b in buckets), default=0.0)
    for b in buckets:
        bar_len = round(b.revenue / peak * width) if peak > 0 else 0
        lines.append(
            f"  {b.label:<7}  {'#' * bar_len:<{width}}  "
            f"{format_amount(round(b.revenue, 2), currency_symbol):>12}  ({b.count} orders)"
        )
    return "\n".join(lines)


# ── Leads ─────────────────────────────────────────────────────────────────────


def format_leads(leads: Sequence[UpsellLead], currency_symbol: str = "") -> str:
    lines: list[str] = ["", "=== Sales Opportunities ==="]
    totals = lead_totals(leads)
    if not totals:
        lines.append("  (no leads found)")
        return "\n".join(lines)

    for kind, (count, value) in totals.items():
        lines.append("")
        lines.append(
            f"  [{kind.value}] {count} lead(s), est. value "
            f"{format_amount(value, currency_symbol)}"
        )
        for lead in leads:
            if lead.kind == kind:
                lines.append(f"    - {lead.farmer.full_name}: {lead.reason}")
    return "\n".join(lines)


# ── Helper ────────────────────────────────────────────────────────────────────

def _fmt_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value is not None else "-"
