"""
Tests for agri_insights/config.py.

What we test
------------
- The committed default.toml loads and matches the section defaults.
- local.toml deep-merges over the base file.
- AGRI_INSIGHTS_* environment variables override both.
- Invalid values fail validation; a missing file raises FileNotFoundError.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from agri_insights.config import (
    AppConfig,
    BasketConfig,
    LedgerConfig,
    LoggingConfig,
    ReminderConfig,
    load_config,
)

_REPO_DEFAULT = Path(__file__).resolve().parents[2] / "config" / "default.toml"

_ENV_VARS = (
    "AGRI_INSIGHTS_SNAPSHOT_PATH",
    "AGRI_INSIGHTS_LOG_LEVEL",
    "AGRI_INSIGHTS_REMINDER_THRESHOLD",
    "AGRI_INSIGHTS_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_committed_defaults_match_models(self):
        cfg = load_config(_REPO_DEFAULT)
        defaults = AppConfig()
        assert cfg.ledger == defaults.ledger
        assert cfg.reminders == defaults.reminders
        assert cfg.forecast == defaults.forecast
        assert cfg.segmentation == defaults.segmentation
        assert cfg.basket == defaults.basket
        assert cfg.trends == defaults.trends
        assert cfg.leads == defaults.leads

    def test_sections_from_file(self, tmp_path):
        path = _write(
            tmp_path / "default.toml",
            "[project]\ndebug = true\n\n"
            "[ledger]\nbucket_edges_days = [15, 45, 120]\n\n"
            "[reminders]\nharvest_months = [[1, 2]]\n",
        )
        cfg = load_config(path)
        assert cfg.debug is True
        assert cfg.ledger.bucket_edges_days == (15, 45, 120)
        assert cfg.reminders.harvest_months == [(1, 2)]
        assert cfg.reminders.high_balance_threshold == 50_000.0

    def test_local_overrides_merge(self, tmp_path):
        path = _write(
            tmp_path / "default.toml",
            "[basket]\ntop_n = 5\nmin_support_floor = 3\n",
        )
        _write(tmp_path / "local.toml", "[basket]\ntop_n = 1\n")
        cfg = load_config(path)
        assert cfg.basket.top_n == 1
        assert cfg.basket.min_support_floor == 3

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "default.toml", "[logging]\nlevel = \"INFO\"\n")
        monkeypatch.setenv("AGRI_INSIGHTS_SNAPSHOT_PATH", "/tmp/export.json")
        monkeypatch.setenv("AGRI_INSIGHTS_LOG_LEVEL", "debug")
        monkeypatch.setenv("AGRI_INSIGHTS_REMINDER_THRESHOLD", "75000")
        monkeypatch.setenv("AGRI_INSIGHTS_DEBUG", "yes")

        cfg = load_config(path)
        assert cfg.data.snapshot_path == "/tmp/export.json"
        assert cfg.logging.level == "DEBUG"
        assert cfg.reminders.high_balance_threshold == 75_000.0
        assert cfg.debug is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_invalid_value_rejected(self, tmp_path):
        path = _write(tmp_path / "default.toml", "[ledger]\nbucket_edges_days = [60, 30, 90]\n")
        with pytest.raises(ValidationError):
            load_config(path)


class TestSectionValidation:
    def test_bucket_edges_must_increase(self):
        with pytest.raises(ValidationError):
            LedgerConfig(bucket_edges_days=(30, 30, 90))

    def test_harvest_months_range(self):
        with pytest.raises(ValidationError):
            ReminderConfig(harvest_months=[(0, 13)])

    def test_negative_threshold(self):
        with pytest.raises(ValidationError):
            ReminderConfig(high_balance_threshold=-1)

    def test_support_fraction_range(self):
        with pytest.raises(ValidationError):
            BasketConfig(support_fraction=0)

    def test_log_level(self):
        assert LoggingConfig(level="warning").level == "WARNING"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")
