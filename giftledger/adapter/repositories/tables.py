"""SQLModel table definitions

Gift card ledger entries are stored one row per entry with integer minor
units; descriptive fields of cards, promotions and loyalty records are kept
as pydantic JSON alongside the columns used for lookups.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, Column, Index
from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, String, Text, UniqueConstraint


class GiftCardRecord(SQLModel, table=True):
    """Current descriptive state of a gift card (ledger lives in gift_card_transactions)"""

    __tablename__ = "gift_cards"

    id: str = Field(primary_key=True, description="Gift card identifier")

    code: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="Redemption code (upper-case)"
    )

    status: str = Field(index=True, description="Stored lifecycle status")

    currency: str = Field(sa_column=Column(String(3), nullable=False), description="ISO-4217 currency")

    purchaser_id: Optional[str] = Field(default=None, index=True, description="Purchasing client")

    data: str = Field(sa_column=Column(Text, nullable=False), description="GiftCardBase JSON")

    updated_at: datetime = Field(description="Last save (from the injected clock)")


class GiftCardTransactionRecord(SQLModel, table=True):
    """
    Append-only ledger entry row

    Domain Rules:
    - (gift_card_id, sequence) is unique
    - balance_after_minor is never negative
    """

    __tablename__ = "gift_card_transactions"
    __table_args__ = (
        UniqueConstraint("gift_card_id", "sequence", name="uq_gift_card_transactions_sequence"),
        CheckConstraint("balance_after_minor >= 0", name="balance_after_non_negative"),
        Index("ix_gift_card_transactions_created_at", "created_at"),
    )

    id: str = Field(primary_key=True, description="Entry identifier")

    gift_card_id: str = Field(
        sa_column=Column(String, ForeignKey("gift_cards.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Foreign key to gift_cards"
    )

    sequence: int = Field(description="Per-card sequence number (1-based)")

    kind: str = Field(sa_column=Column(String(20), nullable=False), description="Entry kind")

    amount_minor: int = Field(sa_column=Column(BigInteger, nullable=False), description="Amount in minor units")

    balance_before_minor: int = Field(sa_column=Column(BigInteger, nullable=False), description="Balance before")

    balance_after_minor: int = Field(sa_column=Column(BigInteger, nullable=False), description="Balance after")

    currency: str = Field(sa_column=Column(String(3), nullable=False), description="ISO-4217 currency")

    created_at: datetime = Field(description="Entry timestamp")

    related_transaction_id: Optional[str] = Field(default=None, description="Referenced entry")

    appointment_id: Optional[str] = Field(default=None, description="Related appointment")

    notes: str = Field(default="", description="Free-text notes")


class PromotionRecord(SQLModel, table=True):
    __tablename__ = "promotions"

    id: str = Field(primary_key=True, description="Promotion identifier")

    code: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="Promo code (upper-case)"
    )

    data: str = Field(sa_column=Column(Text, nullable=False), description="Promotion JSON")


class PromotionUsageRecord(SQLModel, table=True):
    """Append-only usage record row"""

    __tablename__ = "promotion_usages"
    __table_args__ = (
        Index("ix_promotion_usages_promotion_client", "promotion_id", "client_id"),
    )

    id: str = Field(primary_key=True, description="Usage identifier")

    promotion_id: str = Field(
        sa_column=Column(String, ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to promotions"
    )

    client_id: str = Field(description="Client the discount was granted to")

    created_at: datetime = Field(description="When the discount was applied")

    data: str = Field(sa_column=Column(Text, nullable=False), description="PromotionUsage JSON")


class LoyaltyProgramRecord(SQLModel, table=True):
    __tablename__ = "loyalty_programs"

    id: str = Field(primary_key=True, description="Program identifier")

    data: str = Field(sa_column=Column(Text, nullable=False), description="LoyaltyProgram JSON")


class LoyaltyAccountRecord(SQLModel, table=True):
    __tablename__ = "loyalty_accounts"
    __table_args__ = (
        UniqueConstraint("program_id", "client_id", name="uq_loyalty_accounts_program_client"),
    )

    id: str = Field(primary_key=True, description="Account identifier")

    program_id: str = Field(
        sa_column=Column(String, ForeignKey("loyalty_programs.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to loyalty_programs"
    )

    client_id: str = Field(index=True, description="Client")

    data: str = Field(sa_column=Column(Text, nullable=False), description="ClientLoyaltyAccount JSON")
