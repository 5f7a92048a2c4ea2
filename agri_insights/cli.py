"""
Agri Insights CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load and validate the record snapshot exported by the store.
  4. Call the pure analytics function with an explicit reference date.
  5. Echo a formatted report (or JSON with ``--json``).

Install and run::

    pip install -e .
    agri-insights --help
    agri-insights validate-config
    agri-insights ledger --snapshot data/snapshot.json
    agri-insights reminders --date 2026-10-19
    agri-insights forecast-demand
    agri-insights segments --members
    agri-insights bundles
    agri-insights sales-trend --vendor vendor-1
    agri-insights leads
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import typer

app = typer.Typer(
    name="agri-insights",
    help="Dealer analytics: credit ledger, reminders, demand, segments, bundles, trends.",
    add_completion=False,
)

_SNAPSHOT_HELP = "Path to the exported JSON snapshot (default: config.data.snapshot_path)."
_DATE_HELP = "Reference date YYYY-MM-DD or ISO datetime (default: now, UTC)."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from agri_insights.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config) -> None:
    from agri_insights.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _load_snapshot_or_exit(config, snapshot_path: Optional[str]):
    from agri_insights.ingestion.snapshot import load_snapshot

    path = Path(snapshot_path) if snapshot_path else Path(config.data.snapshot_path)
    try:
        snapshot = load_snapshot(path)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if snapshot.skipped:
        skipped = ", ".join(f"{k}={v}" for k, v in sorted(snapshot.skipped.items()))
        typer.echo(f"[WARN] Skipped invalid records: {skipped}", err=True)
    return snapshot


def _setup(config_path: Optional[str], snapshot_path: Optional[str]):
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    return config, _load_snapshot_or_exit(config, snapshot_path)


def _parse_reference(value: Optional[str]) -> datetime:
    from agri_insights.utils.time_utils import as_datetime, parse_timestamp, utcnow

    if value is None:
        return utcnow()
    try:
        return as_datetime(date.fromisoformat(value))
    except ValueError:
        parsed = parse_timestamp(value)
    if parsed is None:
        typer.echo(f"[ERROR] Invalid date '{value}'. Expected YYYY-MM-DD.", err=True)
        raise typer.Exit(code=1)
    return parsed


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


def _dump(models: Sequence[Any]) -> list[dict]:
    return [m.model_dump(mode="json") for m in models]


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file (default: config/default.toml)."
    ),
    show_full: bool = typer.Option(False, "--full", help="Print full config as JSON."),
) -> None:
    """Validate the configuration file and print key thresholds.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Snapshot path:       {config.data.snapshot_path}")
    typer.echo(f"  Aging edges (days):  {', '.join(map(str, config.ledger.bucket_edges_days))}")
    typer.echo(f"  Reminder threshold:  {config.reminders.high_balance_threshold:,.0f}")
    typer.echo(f"  Harvest windows:     {config.reminders.harvest_months}")
    typer.echo(f"  Gestation (years):   {config.forecast.gestation_years}")
    typer.echo(f"  Trend months:        {config.trends.months}")
    typer.echo(f"  Log level:           {config.logging.level}")
    typer.echo(f"  Debug mode:          {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        _echo_json(config.model_dump(mode="json"))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("ledger")
def ledger(
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    now: Optional[str] = typer.Option(None, "--now", help=_DATE_HELP),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Per-farmer outstanding balances with FIFO debt aging."""
    from agri_insights.analytics.ledger import summarize_ledgers, total_outstanding
    from agri_insights.reporting.formatters import format_ledger_summary

    config, snapshot = _setup(config_path, snapshot_path)
    reference = _parse_reference(now)

    summaries = summarize_ledgers(
        snapshot.farmers, snapshot.ledger_entries, reference, config=config.ledger
    )
    total = total_outstanding(summaries)

    if as_json:
        _echo_json({"total_outstanding": total, "summaries": _dump(summaries)})
        return
    typer.echo(format_ledger_summary(summaries, total, config.reminders.currency_symbol))


@app.command("reminders")
def reminders(
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    ref_date: Optional[str] = typer.Option(None, "--date", help=_DATE_HELP),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Advise which debtors to remind and with what message."""
    from agri_insights.analytics.ledger import calculate_balance
    from agri_insights.analytics.reminders import advise_reminder
    from agri_insights.reporting.formatters import format_reminders

    config, snapshot = _setup(config_path, snapshot_path)
    reference = _parse_reference(ref_date)

    advice = []
    for farmer in snapshot.farmers:
        balance = calculate_balance(e for e in snapshot.ledger_entries if e.debtor_id == farmer.id)
        advice.append(
            (farmer, balance, advise_reminder(farmer, balance, reference, config=config.reminders))
        )

    if as_json:
        _echo_json([
            {"farmer_id": f.id, "balance": b, **a.model_dump(mode="json")}
            for f, b, a in advice if a.should_remind
        ])
        return
    typer.echo(format_reminders(advice))


@app.command("forecast-demand")
def forecast_demand_cmd(
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    ref_date: Optional[str] = typer.Option(None, "--date", help=_DATE_HELP),
    dealer_id: Optional[str] = typer.Option(
        None, "--dealer", help="Only use stock signals for this dealer."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Forecast input demand from plot cohorts and weather, against stock."""
    from agri_insights.analytics.demand import forecast_demand
    from agri_insights.reporting.formatters import format_demand_forecast

    config, snapshot = _setup(config_path, snapshot_path)
    reference = _parse_reference(ref_date)

    signals = snapshot.stock_signals
    if dealer_id:
        signals = [s for s in signals if s.dealer_id == dealer_id]

    predictions = forecast_demand(
        snapshot.plots, snapshot.products, signals, snapshot.weather, reference,
        config=config.forecast,
    )
    if as_json:
        _echo_json(_dump(predictions))
        return
    typer.echo(format_demand_forecast(predictions))


@app.command("segments")
def segments(
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    ref_date: Optional[str] = typer.Option(None, "--date", help=_DATE_HELP),
    mandal: Optional[str] = typer.Option(None, "--mandal", help="Only farmers in this mandal."),
    members: bool = typer.Option(False, "--members", help="List the farmers in each segment."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Segment farmers into whales, loyalists, dormant and prospects."""
    from agri_insights.analytics.segments import segment_customers
    from agri_insights.reporting.formatters import format_segments

    config, snapshot = _setup(config_path, snapshot_path)
    reference = _parse_reference(ref_date)

    farmers = snapshot.farmers
    if mandal:
        farmers = [f for f in farmers if f.mandal == mandal]

    result = segment_customers(farmers, snapshot.orders, reference, config=config.segmentation)
    if as_json:
        _echo_json(_dump(result))
        return
    typer.echo(format_segments(result, config.reminders.currency_symbol, show_members=members))


@app.command("bundles")
def bundles(
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Find frequently co-purchased product pairs to bundle."""
    from agri_insights.analytics.basket import find_bundles
    from agri_insights.reporting.formatters import format_bundles

    config, snapshot = _setup(config_path, snapshot_path)
    result = find_bundles(
        snapshot.orders, snapshot.order_items, snapshot.listings, snapshot.products,
        config=config.basket,
    )
    if as_json:
        _echo_json(_dump(result))
        return
    typer.echo(format_bundles(result))


@app.command("sales-trend")
def sales_trend(
    vendor_id: str = typer.Option(..., "--vendor", help="Vendor whose listings to aggregate."),
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    ref_date: Optional[str] = typer.Option(None, "--date", help=_DATE_HELP),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a chart."),
) -> None:
    """Monthly revenue for a vendor over the configured window."""
    from agri_insights.analytics.trends import monthly_trend
    from agri_insights.reporting.formatters import format_sales_trend

    config, snapshot = _setup(config_path, snapshot_path)
    reference = _parse_reference(ref_date)

    buckets = monthly_trend(
        snapshot.orders, snapshot.order_items, snapshot.listings, vendor_id, reference,
        config=config.trends,
    )
    if as_json:
        _echo_json(_dump(buckets))
        return
    typer.echo(format_sales_trend(buckets, vendor_id, config.reminders.currency_symbol))


@app.command("leads")
def leads(
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_HELP),
    ref_date: Optional[str] = typer.Option(None, "--date", help=_DATE_HELP),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Micronutrient upsell and bio-stimulant cross-sell leads."""
    from agri_insights.analytics.leads import find_upsell_leads
    from agri_insights.reporting.formatters import format_leads

    config, snapshot = _setup(config_path, snapshot_path)
    reference = _parse_reference(ref_date)

    result = find_upsell_leads(
        snapshot.farmers, snapshot.plots, snapshot.inputs, reference, config=config.leads
    )
    if as_json:
        _echo_json(_dump(result))
        return
    typer.echo(format_leads(result, config.reminders.currency_symbol))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
