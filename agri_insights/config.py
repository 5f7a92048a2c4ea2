"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      committed static defaults
  2. ``config/local.toml``        optional local overrides (gitignored)
  3. ``.env``                     local secrets and env overrides (gitignored)
  4. Environment variables        ``AGRI_INSIGHTS_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Analytics functions accept their own config section as an optional keyword
argument and fall back to the section defaults, so the pure core can be
called without ever touching the filesystem or the environment.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem location of the exported record snapshot."""

    model_config = ConfigDict(frozen=True)

    snapshot_path: str = "data/snapshot.json"


class LedgerConfig(BaseModel):
    """Debt aging bucket edges (days)."""

    model_config = ConfigDict(frozen=True)

    bucket_edges_days: tuple[int, int, int] = (30, 60, 90)

    @field_validator("bucket_edges_days")
    @classmethod
    def validate_edges(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if not 0 < v[0] < v[1] < v[2]:
            raise ValueError(
                f"bucket_edges_days must be strictly increasing positive days, got {v}."
            )
        return v


class ReminderConfig(BaseModel):
    """Payment reminder policy."""

    model_config = ConfigDict(frozen=True)

    high_balance_threshold: float = 50_000.0
    harvest_months: list[tuple[int, int]] = [(10, 12), (3, 5)]   # 1-indexed, inclusive
    currency_symbol: str = "₹"

    @field_validator("harvest_months")
    @classmethod
    def validate_months(cls, v: list[tuple[int, int]]) -> list[tuple[int, int]]:
        for start, end in v:
            if not (1 <= start <= 12 and 1 <= end <= 12):
                raise ValueError(f"Harvest months must be in 1..12, got ({start}, {end}).")
        return v

    @field_validator("high_balance_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError("high_balance_threshold must be non-negative.")
        return v


class ForecastConfig(BaseModel):
    """Demand forecast heuristics."""

    model_config = ConfigDict(frozen=True)

    gestation_years: float = 4.0
    rain_threshold_mm: float = 10.0
    rain_lookahead: int = 3             # forecast entries inspected for rain
    low_stock_ratio: float = 0.5

    @field_validator("low_stock_ratio")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"low_stock_ratio must be in (0.0, 1.0], got {v}.")
        return v


class SegmentationConfig(BaseModel):
    """RFM-style segmentation thresholds."""

    model_config = ConfigDict(frozen=True)

    whale_min_spend: float = 50_000.0
    loyal_min_orders: int = 4
    dormant_after_days: int = 180


class BasketConfig(BaseModel):
    """Market basket mining parameters."""

    model_config = ConfigDict(frozen=True)

    min_support_floor: int = 2
    support_fraction: float = 0.1
    top_n: int = 3
    suggested_discount_pct: float = 10.0

    @field_validator("support_fraction")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"support_fraction must be in (0.0, 1.0], got {v}.")
        return v


class TrendConfig(BaseModel):
    """Sales trend window."""

    model_config = ConfigDict(frozen=True)

    months: int = 6

    @field_validator("months")
    @classmethod
    def validate_months(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"months must be >= 1, got {v}.")
        return v


class LeadsConfig(BaseModel):
    """Upsell / cross-sell lead heuristics."""

    model_config = ConfigDict(frozen=True)

    micronutrient_min_age_years: float = 1.5
    micronutrient_max_age_years: float = 3.5
    micronutrient_lead_value: float = 1200.0
    biostimulant_lead_value: float = 800.0


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/agri_insights.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration, the single source of truth.

    Constructed by ``load_config()``, which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    ledger: LedgerConfig = LedgerConfig()
    reminders: ReminderConfig = ReminderConfig()
    forecast: ForecastConfig = ForecastConfig()
    segmentation: SegmentationConfig = SegmentationConfig()
    basket: BasketConfig = BasketConfig()
    trends: TrendConfig = TrendConfig()
    leads: LeadsConfig = LeadsConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

_TRUTHY = frozenset({"1", "true", "yes", "on"})

# (variable, section, key, cast); ``section=None`` targets a top-level key.
_ENV_OVERRIDES: tuple[tuple[str, Optional[str], str, Callable[[str], Any]], ...] = (
    ("AGRI_INSIGHTS_SNAPSHOT_PATH", "data", "snapshot_path", str),
    ("AGRI_INSIGHTS_LOG_LEVEL", "logging", "level", str),
    ("AGRI_INSIGHTS_REMINDER_THRESHOLD", "reminders", "high_balance_threshold", float),
    ("AGRI_INSIGHTS_DEBUG", None, "debug", lambda v: v.strip().lower() in _TRUTHY),
)

_SECTIONS: dict[str, type[BaseModel]] = {
    "data": DataConfig,
    "ledger": LedgerConfig,
    "reminders": ReminderConfig,
    "forecast": ForecastConfig,
    "segmentation": SegmentationConfig,
    "basket": BasketConfig,
    "trends": TrendConfig,
    "leads": LeadsConfig,
    "logging": LoggingConfig,
}


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: TOML file to load. Defaults to
            ``<project_root>/config/default.toml``. A ``local.toml`` next to
            it, if present, is merged on top.

    Returns:
        Validated ``AppConfig``.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If an environment override cannot be cast.
        pydantic.ValidationError: If a merged value fails validation.
    """
    load_dotenv(dotenv_path=_PROJECT_ROOT / ".env", override=False)

    path = Path(config_path) if config_path is not None else _PROJECT_ROOT / "config" / "default.toml"
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Create config/default.toml or pass --config."
        )

    raw = _read_toml(path)
    local = path.parent / "local.toml"
    if local.exists():
        raw = _deep_merge(raw, _read_toml(local))

    return _build_app_config(_apply_env_overrides(raw))


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay every set, non-empty ``AGRI_INSIGHTS_*`` variable onto ``raw``."""
    for variable, section, key, cast in _ENV_OVERRIDES:
        value = os.environ.get(variable)
        if not value:
            continue
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = cast(value)
    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map the merged TOML tables onto ``AppConfig``.

    ``[project] debug`` is accepted as an alias for a top-level ``debug`` key.
    """
    sections = {name: model(**raw.get(name, {})) for name, model in _SECTIONS.items()}
    debug = raw.get("debug", raw.get("project", {}).get("debug", False))
    return AppConfig(**sections, debug=debug)
