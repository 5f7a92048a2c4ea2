"""
Ledger entry model: one credit, payment, interest charge or discount
recorded between a dealer (creditor) and a farmer (debtor).

Entries are frozen after construction. The only lifecycle change the store
ever makes is flipping ``status`` to disputed; ``mark_disputed()`` models that
as a copy rather than a mutation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from agri_insights.models.fields import repair_number, repair_timestamp
from agri_insights.taxonomy.ledger_taxonomy import EntryKind, EntryStatus


class LedgerEntry(BaseModel):
    """A single dealer ↔ farmer ledger ("khata") entry.

    Attributes:
        id: Store record ID.
        debtor_id: Farmer who owes (or paid) the amount.
        creditor_id: Dealer who extended (or received) the amount.
        amount: Positive magnitude; direction comes from ``kind``.
        kind: Canonical ``EntryKind``. Any accepted spelling is folded on input.
        status: ``active`` or ``disputed``; disputed entries are ignored by
            every calculation.
        occurred_at: UTC timestamp, or ``None`` if missing/unparseable.
        note: Free-form description entered by the dealer.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    debtor_id: str
    creditor_id: str = ""
    amount: float
    kind: EntryKind
    status: EntryStatus = EntryStatus.ACTIVE
    occurred_at: Optional[datetime] = None
    note: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def canonical_kind(cls, v: Any) -> EntryKind:
        return EntryKind.parse(v)

    @field_validator("status", mode="before")
    @classmethod
    def canonical_status(cls, v: Any) -> EntryStatus:
        return EntryStatus.parse(v)

    @field_validator("amount", mode="before")
    @classmethod
    def repair_amount(cls, v: Any) -> float:
        return repair_number(v)

    @field_validator("amount")
    @classmethod
    def validate_amount_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(
                f"Ledger amounts are magnitudes and must be non-negative, got {v}."
            )
        return v

    @field_validator("occurred_at", mode="before")
    @classmethod
    def repair_occurred_at(cls, v: Any) -> Optional[datetime]:
        return repair_timestamp(v)

    @field_validator("note", mode="before")
    @classmethod
    def none_note_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def is_disputed(self) -> bool:
        return self.status == EntryStatus.DISPUTED

    def mark_disputed(self) -> "LedgerEntry":
        """Return a disputed copy of this entry (idempotent)."""
        if self.is_disputed:
            return self
        return self.model_copy(update={"status": EntryStatus.DISPUTED})
