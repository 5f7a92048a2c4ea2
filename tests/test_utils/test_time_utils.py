"""Tests for agri_insights/utils/time_utils.py and the JSON log formatter."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from agri_insights.utils.logging import _JsonFormatter
from agri_insights.utils.time_utils import (
    age_in_years,
    as_datetime,
    month_window,
    parse_timestamp,
    shift_month,
    whole_days_between,
)

UTC = timezone.utc


class TestParseTimestamp:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2026-10-19", datetime(2026, 10, 19, tzinfo=UTC)),
            ("2026-10-19T05:30:00+05:30", datetime(2026, 10, 19, tzinfo=UTC)),
            ("2026-10-19T00:00:00Z", datetime(2026, 10, 19, tzinfo=UTC)),
            (0, datetime(1970, 1, 1, tzinfo=UTC)),
            (date(2026, 1, 2), datetime(2026, 1, 2, tzinfo=UTC)),
        ],
    )
    def test_accepted_forms(self, raw, expected):
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "19/10/2026", True, float("nan"), [], {}])
    def test_rejected_forms(self, raw):
        assert parse_timestamp(raw) is None


class TestDayArithmetic:
    def test_whole_days_floor(self):
        start = datetime(2026, 1, 1, tzinfo=UTC)
        assert whole_days_between(start, start + timedelta(days=29, hours=23)) == 29
        assert whole_days_between(start, start + timedelta(days=30)) == 30
        assert whole_days_between(start + timedelta(hours=1), start) == -1

    def test_age_in_years(self):
        start = datetime(2020, 1, 1, tzinfo=UTC)
        assert age_in_years(start, start + timedelta(days=730)) == pytest.approx(2.0)

    def test_as_datetime_from_date(self):
        assert as_datetime(date(2026, 10, 19)) == datetime(2026, 10, 19, tzinfo=UTC)


class TestMonths:
    @pytest.mark.parametrize(
        ("year", "month", "delta", "expected"),
        [(2026, 1, -1, (2025, 12)), (2026, 12, 1, (2027, 1)), (2026, 5, -17, (2024, 12))],
    )
    def test_shift_month(self, year, month, delta, expected):
        assert shift_month(year, month, delta) == expected

    def test_month_window_oldest_first(self):
        assert month_window(date(2026, 2, 28), 3) == [(2025, 12), (2026, 1), (2026, 2)]


class TestJsonFormatter:
    def test_extra_fields_included(self):
        record = logging.makeLogRecord(
            {"name": "agri_insights.test", "levelname": "WARNING", "msg": "rows %d", "args": (3,),
             "collection": "orders"}
        )
        payload = json.loads(_JsonFormatter().format(record))
        assert payload["msg"] == "rows 3"
        assert payload["level"] == "WARNING"
        assert payload["collection"] == "orders"
