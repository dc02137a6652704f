"""Ledger Entry Domain Entity

Immutable append-only record of a single balance-affecting event on a gift
card. Corrections are new ADJUSTMENT entries, never edits.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from giftledger.domain.money import Money


class EntryKind(str, Enum):
    """Ledger entry kinds"""
    PURCHASE = "purchase"          # Initial value loaded at sale
    RELOAD = "reload"              # Value added to a reloadable card
    REDEMPTION = "redemption"      # Value spent on a service
    REFUND = "refund"              # Value returned to the card
    ADJUSTMENT = "adjustment"      # Signed manual correction
    CANCELLATION = "cancellation"  # Remaining balance forfeited on cancel


CREDIT_KINDS = frozenset({EntryKind.PURCHASE, EntryKind.RELOAD, EntryKind.REFUND})
DEBIT_KINDS = frozenset({EntryKind.REDEMPTION, EntryKind.CANCELLATION})


def signed_amount(kind: EntryKind, amount: Money) -> Money:
    """
    Effect of an entry on the balance

    Credits and debits carry a non-negative amount; the kind gives the sign.
    ADJUSTMENT carries its own sign.
    """
    if kind in DEBIT_KINDS:
        return amount.negate()
    return amount


class LedgerEntry(BaseModel):
    """
    Ledger Entry - Immutable audit record of a balance change

    Domain Rules:
    - Frozen once constructed (append-only ledger)
    - balance_after == balance_before + signed_amount(kind, amount)
    - Credit and debit kinds carry non-negative amounts
    - sequence is assigned by the ledger at append time (1-based, contiguous)
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "b3c1b6a2-7f0e-4d59-9a43-8b0b1f8b6f10",
                "instrument_id": "0f7c2d0e-3a59-4a3f-8f5d-0f3c6b9c2a11",
                "sequence": 2,
                "kind": "redemption",
                "amount": {"amount": 3000, "currency": "USD"},
                "balance_before": {"amount": 10000, "currency": "USD"},
                "balance_after": {"amount": 7000, "currency": "USD"},
                "created_at": "2024-03-01T10:00:00Z",
                "related_transaction_id": None,
                "appointment_id": "appt_123",
                "notes": "",
            }
        },
    )

    id: str = Field(
        ...,
        description="Unique entry identifier"
    )

    instrument_id: str = Field(
        ...,
        description="Gift card the entry belongs to (by id, no back-pointer)"
    )

    sequence: int = Field(
        ...,
        ge=1,
        description="Monotonic per-instrument sequence number"
    )

    kind: EntryKind = Field(
        ...,
        description="Entry kind (purchase, reload, redemption, refund, adjustment, cancellation)"
    )

    amount: Money = Field(
        ...,
        description="Entry amount (sign given by kind except for adjustments)"
    )

    balance_before: Money = Field(
        ...,
        description="Balance before the entry"
    )

    balance_after: Money = Field(
        ...,
        description="Balance after the entry"
    )

    created_at: datetime = Field(
        ...,
        description="Entry timestamp (from the injected clock)"
    )

    related_transaction_id: Optional[str] = Field(
        default=None,
        description="Entry this one refers to (e.g., the redemption being refunded)"
    )

    appointment_id: Optional[str] = Field(
        default=None,
        description="Appointment the entry was recorded against"
    )

    notes: str = Field(
        default="",
        description="Free-text notes"
    )

    @model_validator(mode="after")
    def _check_balance_arithmetic(self) -> "LedgerEntry":
        if self.kind != EntryKind.ADJUSTMENT and self.amount.is_negative():
            raise ValueError(f"{self.kind.value} entries require a non-negative amount")
        expected = self.balance_before.add(signed_amount(self.kind, self.amount))
        if expected != self.balance_after:
            raise ValueError(
                f"balance_after {self.balance_after} does not equal "
                f"balance_before {self.balance_before} + {self.kind.value} {self.amount}"
            )
        return self

    @property
    def signed(self) -> Money:
        return signed_amount(self.kind, self.amount)
