"""
Root logger setup for the agri-insights CLI.

``configure_logging(config, debug=...)`` is called once per command, before
the snapshot is loaded. Analytics and ingestion modules only ever do
``logger = logging.getLogger(__name__)``.

Log lines go to **stderr**: stdout is reserved for reports, so
``agri-insights ledger --json | jq`` keeps working at any log level.

With ``json_format = true`` each line is one object::

    {"ts": "2026-10-19T08:00:00Z", "level": "WARNING",
     "logger": "agri_insights.ingestion.snapshot", "msg": "orders[3] ... rejected"}

Keys passed through ``extra=`` are merged into the object.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agri_insights.config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_MAX_LOG_BYTES = 2_000_000
_LOG_BACKUPS = 3

# Attributes every LogRecord carries; anything else arrived via ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: ``ts``, ``level``, ``logger``, ``msg`` + extras."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(_extras(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Install stderr (and optionally rotating file) handlers on the root logger.

    Args:
        config: ``[logging]`` section of the app config.
        debug:  Force DEBUG regardless of ``config.level`` (``AppConfig.debug``).
    """
    level = logging.DEBUG if debug else getattr(logging, config.level, logging.INFO)
    formatter = _build_formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(_rotating_file_handler(Path(config.log_file)))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = _utc_timetuple
    return formatter


def _rotating_file_handler(path: Path) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path, maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS, encoding="utf-8"
    )


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


def _utc_timetuple(seconds: float | None):
    # The text format stamps a literal "Z", so render asctime in UTC.
    return datetime.fromtimestamp(seconds or 0.0, tz=timezone.utc).timetuple()
