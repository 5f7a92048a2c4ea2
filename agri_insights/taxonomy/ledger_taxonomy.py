"""
Canonical tags used throughout the analytics core.

The record store hands over tags in several spellings: symbolic constants
(``CREDIT_GIVEN``), display forms (``CreditGiven``) or lower-case serialised
strings. ``EntryKind.parse`` / ``EntryStatus.parse`` fold all of them into a
single canonical member at the input boundary; analytics code only ever
compares canonical members.

Usage example::

    from agri_insights.taxonomy.ledger_taxonomy import EntryKind

    EntryKind.parse("CREDIT_GIVEN") is EntryKind.CREDIT_GIVEN   # True
    EntryKind.parse("CreditGiven")  is EntryKind.CREDIT_GIVEN   # True

This module has NO imports from any other ``agri_insights`` package.
"""

from __future__ import annotations

import re
from enum import StrEnum

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _fold(value: str) -> str:
    """Reduce a tag spelling to lower-case alphanumerics only."""
    return _NON_ALNUM.sub("", value.lower())


class EntryKind(StrEnum):
    """What a ledger entry records between a dealer and a farmer."""

    CREDIT_GIVEN = "credit_given"
    """Inputs handed over on credit; increases the farmer's balance."""

    PAYMENT_RECEIVED = "payment_received"
    """Cash or transfer received from the farmer; decreases the balance."""

    INTEREST_CHARGED = "interest_charged"
    """Interest levied on outstanding credit; increases the balance."""

    DISCOUNT_GIVEN = "discount_given"
    """Write-down granted by the dealer; decreases the balance."""

    @classmethod
    def parse(cls, value: "EntryKind | str") -> "EntryKind":
        """Return the canonical member for any accepted spelling.

        Raises:
            ValueError: If ``value`` does not name a known kind.
        """
        if isinstance(value, cls):
            return value
        folded = _fold(str(value))
        for member in cls:
            if _fold(member.value) == folded:
                return member
        raise ValueError(
            f"Unknown ledger entry kind '{value}'. "
            f"Must be one of {[m.value for m in cls]}."
        )

    @property
    def increases_balance(self) -> bool:
        return self in (EntryKind.CREDIT_GIVEN, EntryKind.INTEREST_CHARGED)

    @property
    def decreases_balance(self) -> bool:
        return self in (EntryKind.PAYMENT_RECEIVED, EntryKind.DISCOUNT_GIVEN)


class EntryStatus(StrEnum):
    """Whether a ledger entry participates in calculations."""

    ACTIVE = "active"
    DISPUTED = "disputed"

    @classmethod
    def parse(cls, value: "EntryStatus | str | None") -> "EntryStatus":
        """Return the canonical status.

        ``None`` and the store's verification states (``VERIFIED``,
        ``PENDING_OTP``) are all active; only ``DISPUTED`` is excluded.

        Raises:
            ValueError: If ``value`` is an unrecognised status string.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.ACTIVE
        folded = _fold(str(value))
        if folded == "disputed":
            return cls.DISPUTED
        if folded in _ACTIVE_ALIASES:
            return cls.ACTIVE
        raise ValueError(
            f"Unknown ledger entry status '{value}'. "
            f"Must be one of {[m.value for m in cls]} or {sorted(_ACTIVE_ALIASES)}."
        )


_ACTIVE_ALIASES = frozenset({"", "active", "verified", "pendingotp"})


class DebtStatus(StrEnum):
    """Overall health of a farmer's account, driven by the oldest unpaid bucket."""

    CLEAN = "clean"
    OVERDUE_30 = "overdue_30"
    OVERDUE_60 = "overdue_60"
    CRITICAL = "critical"


class Urgency(StrEnum):
    """Reminder urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StockStatus(StrEnum):
    """Dealer stock position relative to predicted demand."""

    OK = "ok"
    LOW = "low"
    CRITICAL_OUT = "critical_out"


class SegmentId(StrEnum):
    """Mutually exclusive customer segments, in assignment priority order."""

    WHALES = "whales"
    LOYALISTS = "loyalists"
    DORMANT = "dormant"
    PROSPECTS = "prospects"


class LeadKind(StrEnum):
    """Sales opportunity types surfaced from farm activity."""

    MICRONUTRIENT_UPSELL = "micronutrient_upsell"
    BIOSTIMULANT_CROSS_SELL = "biostimulant_cross_sell"
