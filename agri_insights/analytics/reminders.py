"""
Payment reminder advice.

Rules (evaluated in order, first match wins):
    1. balance <= 0                    → no reminder
    2. reference month in a harvest
       window (default Oct–Dec, Mar–May) → remind, MEDIUM
    3. balance > high_balance_threshold → remind, HIGH
    4. otherwise                       → no reminder

Only advisory text is produced; how and where it is sent is up to the caller.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from agri_insights.config import ReminderConfig
from agri_insights.models.farm import Farmer
from agri_insights.models.insights import ReminderAdvice
from agri_insights.taxonomy.ledger_taxonomy import Urgency

_NO_REMINDER = ReminderAdvice(should_remind=False, message="", urgency=Urgency.LOW)


def advise_reminder(
    farmer: Farmer,
    balance: float,
    reference_date: date | datetime,
    *,
    config: Optional[ReminderConfig] = None,
) -> ReminderAdvice:
    """Decide whether to remind ``farmer`` about ``balance``.

    Args:
        farmer:         The debtor.
        balance:        Output of ``calculate_balance`` for the farmer.
        reference_date: Date the reminder would go out; drives the harvest check.
        config:         Threshold, harvest windows and currency symbol.

    Returns:
        ``ReminderAdvice``; ``should_remind=False`` carries an empty message.
    """
    cfg = config or ReminderConfig()

    if balance <= 0:
        return _NO_REMINDER

    amount = format_amount(balance, cfg.currency_symbol)

    if is_harvest_month(reference_date.month, cfg):
        return ReminderAdvice(
            should_remind=True,
            message=(
                f"Namaste {farmer.full_name}. Hope the harvest is going well. "
                f"A gentle reminder of the pending balance: {amount}."
            ),
            urgency=Urgency.MEDIUM,
        )

    if balance > cfg.high_balance_threshold:
        return ReminderAdvice(
            should_remind=True,
            message=(
                f"Namaste {farmer.full_name}. Your pending balance has reached {amount}. "
                "Please arrange at least a partial payment at the earliest."
            ),
            urgency=Urgency.HIGH,
        )

    return _NO_REMINDER


def is_harvest_month(month: int, config: Optional[ReminderConfig] = None) -> bool:
    """True if the 1-indexed ``month`` falls inside any configured harvest window.

    Windows are inclusive; a window whose start is after its end wraps the
    year boundary (``(11, 2)`` covers Nov–Feb).
    """
    cfg = config or ReminderConfig()
    for start, end in cfg.harvest_months:
        if start <= end and start <= month <= end:
            return True
        if start > end and (month >= start or month <= end):
            return True
    return False


def format_amount(amount: float, currency_symbol: str = "") -> str:
    """``60000`` → ``"₹60,000"``; ``1500.5`` → ``"₹1,500.50"``."""
    if float(amount).is_integer():
        return f"{currency_symbol}{amount:,.0f}"
    return f"{currency_symbol}{amount:,.2f}"
