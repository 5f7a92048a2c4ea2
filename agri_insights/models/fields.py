"""
Field repair helpers shared by the record value types.

The store occasionally hands over malformed scalars. Rather than failing a
whole collection, recoverable fields are repaired to a safe default inside
``mode="before"`` validators:

  - timestamps   → ``None`` (treated as epoch-zero age downstream)
  - amounts      → ``0.0`` when non-numeric or NaN
  - JSON lists   → ``None`` (field absent) when the text does not decode to
                   a list of strings

Genuinely invalid values (negative amounts, unknown tags) are NOT repaired;
they raise and the ingestion boundary skips the record.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from typing import Any, Optional

from agri_insights.utils.time_utils import parse_timestamp


logger = logging.getLogger(__name__)


def repair_timestamp(value: Any) -> Optional[datetime]:
    parsed = parse_timestamp(value)
    if parsed is None and value not in (None, ""):
        logger.warning("Unparseable timestamp %r repaired to None.", value)
    return parsed


def repair_number(value: Any) -> float:
    """Coerce a store number to a finite float; junk becomes ``0.0``."""
    if value is None:
        return 0.0
    number = _to_float(value)
    if number is None:
        logger.warning("Non-numeric value %r repaired to 0.0.", value)
        return 0.0
    return number


def parse_string_list(value: Any) -> Optional[list[str]]:
    """Decode a list field that may arrive JSON-encoded.

    Returns ``None`` on any decode failure or non-list payload.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    decoded = value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            decoded = None
    if not isinstance(decoded, (list, tuple)) or not all(isinstance(i, str) for i in decoded):
        logger.warning("Malformed list field %r repaired to None.", value)
        return None
    return [item.strip() for item in decoded if item.strip()]


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None
