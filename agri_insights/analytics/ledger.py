"""
Ledger balance and debt aging.

Balance
-------
    balance = Σ amount(credit_given ∪ interest_charged)
            − Σ amount(payment_received ∪ discount_given)

over non-disputed entries only.

Aging (FIFO waterfall)
----------------------
1. Stable-sort entries by ``occurred_at`` ascending; undated entries sort
   first (epoch 0).
2. Pool every non-disputed payment and discount into one ``payment_pool``.
3. Walk credits / interest oldest first; each absorbs
   ``min(remaining, payment_pool)`` from the pool.
4. Any unabsorbed remainder is aged by the credit's OWN date:
       age <  30d → current
       age <  60d → days30
       age <  90d → days60
       otherwise  → days90_plus
   Undated (and future-dated) remainders always land in ``current``.

Payments are never matched to individual credits in the output; they only
drain the pool. When ``balance > 0`` the four buckets sum to the balance.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from agri_insights.config import LedgerConfig
from agri_insights.models.farm import Farmer
from agri_insights.models.insights import AgingBuckets, LedgerSummary
from agri_insights.models.ledger import LedgerEntry
from agri_insights.taxonomy.ledger_taxonomy import DebtStatus
from agri_insights.utils.time_utils import EPOCH, as_datetime, whole_days_between

logger = logging.getLogger(__name__)

# Balances within half a paisa of zero count as settled.
_SETTLED_TOLERANCE = 0.005


def calculate_balance(entries: Iterable[LedgerEntry]) -> float:
    """Signed outstanding balance of a set of entries (positive = farmer owes)."""
    total = 0.0
    for entry in entries:
        if entry.is_disputed:
            continue
        if entry.kind.increases_balance:
            total += entry.amount
        elif entry.kind.decreases_balance:
            total -= entry.amount
    return total


def age_debt(
    entries: Sequence[LedgerEntry],
    now: date | datetime,
    *,
    config: Optional[LedgerConfig] = None,
) -> AgingBuckets:
    """FIFO-allocate payments to the oldest credits and bucket the remainder.

    Args:
        entries: Ledger entries in any order (typically one farmer's).
        now:     Reference instant the ages are measured against.
        config:  Bucket edges; defaults to 30/60/90 days.

    Returns:
        Non-negative ``AgingBuckets``. All zero when the pool covers every
        credit or when there are no credits.
    """
    cfg = config or LedgerConfig()
    reference = as_datetime(now)

    ordered = sorted(entries, key=lambda e: e.occurred_at or EPOCH)
    active = [e for e in ordered if not e.is_disputed]

    payment_pool = sum(e.amount for e in active if e.kind.decreases_balance)

    buckets = [0.0, 0.0, 0.0, 0.0]
    for entry in active:
        if not entry.kind.increases_balance:
            continue

        remaining = entry.amount
        covered = min(remaining, payment_pool)
        remaining -= covered
        payment_pool -= covered

        if remaining > 0:
            buckets[_bucket_index(entry.occurred_at, reference, cfg)] += remaining

    logger.debug(
        "Aged %d entries: unallocated pool=%.2f buckets=%s",
        len(active), payment_pool, buckets,
    )
    return AgingBuckets(
        current=buckets[0],
        days30=buckets[1],
        days60=buckets[2],
        days90_plus=buckets[3],
    )


def aging_fractions(buckets: AgingBuckets, balance: float) -> dict[str, float]:
    """Share of ``balance`` held in each bucket, for progress-bar display.

    A non-positive balance yields all zeros rather than dividing by zero.
    """
    if balance <= 0:
        return {"current": 0.0, "days30": 0.0, "days60": 0.0, "days90_plus": 0.0}
    return {
        "current": buckets.current / balance,
        "days30": buckets.days30 / balance,
        "days60": buckets.days60 / balance,
        "days90_plus": buckets.days90_plus / balance,
    }


def debt_status(buckets: AgingBuckets) -> DebtStatus:
    """Classify an account by its oldest non-empty bucket."""
    if buckets.days90_plus > 0:
        return DebtStatus.CRITICAL
    if buckets.days60 > 0:
        return DebtStatus.OVERDUE_60
    if buckets.days30 > 0:
        return DebtStatus.OVERDUE_30
    return DebtStatus.CLEAN


def summarize_ledgers(
    farmers: Sequence[Farmer],
    entries: Sequence[LedgerEntry],
    now: date | datetime,
    *,
    config: Optional[LedgerConfig] = None,
) -> list[LedgerSummary]:
    """Per-farmer balance, aging and status, largest balance first.

    Farmers whose balance rounds to zero paise are omitted. Entries whose
    ``debtor_id`` is not among ``farmers`` are ignored. Ties keep farmer order.
    """
    by_debtor: dict[str, list[LedgerEntry]] = defaultdict(list)
    for entry in entries:
        by_debtor[entry.debtor_id].append(entry)

    summaries: list[LedgerSummary] = []
    for farmer in farmers:
        records = by_debtor.get(farmer.id, [])
        balance = calculate_balance(records)
        if abs(balance) < _SETTLED_TOLERANCE:
            continue
        aging = age_debt(records, now, config=config)
        dated = [e.occurred_at for e in records if e.occurred_at is not None]
        summaries.append(
            LedgerSummary(
                farmer=farmer,
                balance=balance,
                last_transaction_at=max(dated) if dated else None,
                aging=aging,
                status=debt_status(aging),
            )
        )

    summaries.sort(key=lambda s: s.balance, reverse=True)
    return summaries


def total_outstanding(summaries: Iterable[LedgerSummary]) -> float:
    return sum(s.balance for s in summaries)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _bucket_index(
    occurred_at: Optional[datetime],
    reference: datetime,
    cfg: LedgerConfig,
) -> int:
    # Undated entries and epoch placeholders are never aged.
    if occurred_at is None or occurred_at == EPOCH:
        return 0
    days_old = whole_days_between(occurred_at, reference)
    first, second, third = cfg.bucket_edges_days
    if days_old < first:
        return 0
    if days_old < second:
        return 1
    if days_old < third:
        return 2
    return 3
