"""Data Transfer Objects for Gift Card Use Cases

Pydantic models for command inputs and response outputs. Amounts cross this
boundary as Decimal major units; the domain works in integer minor units.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, model_validator
from giftledger.domain.gift_card import DeliveryMethod


class GiftCardReferenceDTO(BaseModel):
    """
    Identifies a gift card by id or by code

    Exactly one of gift_card_id / code must be given.
    """

    gift_card_id: Optional[str] = Field(
        default=None,
        description="Gift card identifier"
    )

    code: Optional[str] = Field(
        default=None,
        description="Gift card code (case-insensitive)"
    )

    @model_validator(mode="after")
    def _check_reference(self):
        if (self.gift_card_id is None) == (self.code is None):
            raise ValueError("Provide exactly one of gift_card_id or code")
        return self


class PurchaseGiftCardCommandDTO(BaseModel):
    """
    Command DTO for selling a gift card

    Used as input to PurchaseGiftCard use case.
    """

    amount: Decimal = Field(
        ...,
        ge=0,
        description="Initial value in major units"
    )

    currency: Optional[str] = Field(
        default=None,
        description="ISO-4217 currency (defaults to the configured currency)"
    )

    purchaser_id: Optional[str] = Field(
        default=None,
        description="Client buying the card"
    )

    recipient_name: str = Field(default="", description="Recipient name")
    recipient_email: str = Field(default="", description="Recipient email")
    recipient_phone: str = Field(default="", description="Recipient phone")
    message: str = Field(default="", description="Personal message")

    delivery_method: DeliveryMethod = Field(
        default=DeliveryMethod.EMAIL,
        description="How the card reaches the recipient"
    )

    delivery_date: Optional[datetime] = Field(
        default=None,
        description="Scheduled delivery; the card activates then (None = now)"
    )

    is_reloadable: bool = Field(
        default=False,
        description="Whether value can be added later"
    )

    code: Optional[str] = Field(
        default=None,
        description="Custom code (generated when omitted)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "100.00",
                "currency": "USD",
                "purchaser_id": "client_42",
                "recipient_name": "Jane Doe",
                "recipient_email": "jane@example.com",
                "message": "Happy birthday!",
                "delivery_method": "email",
                "is_reloadable": False,
            }
        }


class ActivateGiftCardCommandDTO(GiftCardReferenceDTO):
    activation_date: Optional[datetime] = Field(
        default=None,
        description="Scheduled activation (None = now)"
    )


class RedeemGiftCardCommandDTO(GiftCardReferenceDTO):
    """
    Command DTO for spending value from a gift card

    Used as input to RedeemGiftCard use case.
    """

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount to redeem in major units (must be > 0)"
    )

    currency: Optional[str] = Field(
        default=None,
        description="Currency of the amount (defaults to the card's currency)"
    )

    appointment_id: Optional[str] = Field(
        default=None,
        description="Appointment the redemption pays for"
    )

    notes: str = Field(default="", description="Free-text notes")

    class Config:
        json_schema_extra = {
            "example": {
                "code": "ABCD-EFGH-JKLM",
                "amount": "30.00",
                "appointment_id": "appt_123",
            }
        }


class ReloadGiftCardCommandDTO(GiftCardReferenceDTO):
    amount: Decimal = Field(..., gt=0, description="Amount to add in major units")
    currency: Optional[str] = Field(default=None, description="Currency of the amount")
    notes: str = Field(default="", description="Free-text notes")


class RefundGiftCardCommandDTO(GiftCardReferenceDTO):
    """
    Command DTO for returning redeemed value to a gift card

    The refund references the redemption entry it reverses.
    """

    amount: Decimal = Field(..., gt=0, description="Amount to refund in major units")
    currency: Optional[str] = Field(default=None, description="Currency of the amount")

    related_transaction_id: str = Field(
        ...,
        description="Redemption entry being refunded"
    )

    appointment_id: Optional[str] = Field(default=None, description="Related appointment")
    notes: str = Field(default="", description="Free-text notes")


class AdjustGiftCardCommandDTO(GiftCardReferenceDTO):
    amount: Decimal = Field(
        ...,
        description="Signed correction in major units (negative debits)"
    )
    currency: Optional[str] = Field(default=None, description="Currency of the amount")
    notes: str = Field(..., min_length=1, description="Reason for the correction")


class CancelGiftCardCommandDTO(GiftCardReferenceDTO):
    notes: str = Field(default="", description="Cancellation reason")


class GiftCardStatusCommandDTO(GiftCardReferenceDTO):
    """Command DTO for suspending or resuming a gift card"""


class ValidateRedemptionCommandDTO(GiftCardReferenceDTO):
    amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Amount the caller intends to redeem (None = any)"
    )


class GiftCardResponseDTO(BaseModel):
    """
    Response DTO for a gift card

    status is the effective status at the time of the request.
    """

    gift_card_id: str = Field(..., description="Gift card identifier")
    code: str = Field(..., description="Gift card code")
    status: str = Field(..., description="Effective status")
    currency: str = Field(..., description="ISO-4217 currency")
    initial_value: Decimal = Field(..., description="Value loaded at purchase")
    balance: Decimal = Field(..., description="Current balance")
    total_spent: Decimal = Field(..., description="Redeemed value net of refunds")
    redemption_percentage: Decimal = Field(..., description="Share of the initial value spent")
    purchaser_id: Optional[str] = Field(default=None, description="Purchasing client")
    recipient_name: str = Field(default="", description="Recipient name")
    recipient_email: str = Field(default="", description="Recipient email")
    delivery_method: str = Field(..., description="Delivery method")
    purchase_date: datetime = Field(..., description="Purchase timestamp")
    activation_date: Optional[datetime] = Field(default=None, description="Activation timestamp")
    expiration_date: Optional[datetime] = Field(default=None, description="Expiry timestamp")
    is_reloadable: bool = Field(..., description="Whether value can be added")

    class Config:
        json_schema_extra = {
            "example": {
                "gift_card_id": "0f7c2d0e-3a59-4a3f-8f5d-0f3c6b9c2a11",
                "code": "ABCD-EFGH-JKLM",
                "status": "active",
                "currency": "USD",
                "initial_value": "100.00",
                "balance": "70.00",
                "total_spent": "30.00",
                "redemption_percentage": "30.00",
                "purchaser_id": "client_42",
                "recipient_name": "Jane Doe",
                "recipient_email": "jane@example.com",
                "delivery_method": "email",
                "purchase_date": "2024-03-01T10:00:00Z",
                "activation_date": "2024-03-01T10:00:00Z",
                "expiration_date": "2025-03-01T10:00:00Z",
                "is_reloadable": False,
            }
        }


class GiftCardTransactionResponseDTO(BaseModel):
    """
    Response DTO for a committed ledger entry

    Carries the balance snapshots of the entry and the card status after it.
    """

    transaction_id: str = Field(..., description="Ledger entry identifier")
    gift_card_id: str = Field(..., description="Gift card identifier")
    sequence: int = Field(..., description="Entry sequence number")
    transaction_type: str = Field(..., description="Entry kind")
    amount: Decimal = Field(..., description="Entry amount")
    balance_before: Decimal = Field(..., description="Balance before the entry")
    balance_after: Decimal = Field(..., description="Balance after the entry")
    currency: str = Field(..., description="ISO-4217 currency")
    status: str = Field(..., description="Card status after the entry")
    related_transaction_id: Optional[str] = Field(default=None, description="Referenced entry")
    appointment_id: Optional[str] = Field(default=None, description="Related appointment")
    notes: str = Field(default="", description="Notes")
    created_at: datetime = Field(..., description="Entry timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "transaction_id": "b3c1b6a2-7f0e-4d59-9a43-8b0b1f8b6f10",
                "gift_card_id": "0f7c2d0e-3a59-4a3f-8f5d-0f3c6b9c2a11",
                "sequence": 2,
                "transaction_type": "redemption",
                "amount": "30.00",
                "balance_before": "100.00",
                "balance_after": "70.00",
                "currency": "USD",
                "status": "active",
                "appointment_id": "appt_123",
                "notes": "",
                "created_at": "2024-03-01T10:00:00Z",
            }
        }


class StatusChangeResponseDTO(BaseModel):
    gift_card_id: str = Field(..., description="Gift card identifier")
    status: str = Field(..., description="Effective status after the change")
    activation_date: Optional[datetime] = Field(default=None, description="Activation timestamp")
    transaction: Optional[GiftCardTransactionResponseDTO] = Field(
        default=None,
        description="Entry recorded by the change (cancellation forfeits)"
    )


class BalanceResponseDTO(BaseModel):
    """Response DTO for a balance inquiry"""

    gift_card_id: str = Field(..., description="Gift card identifier")
    code: str = Field(..., description="Gift card code")
    balance: Decimal = Field(..., description="Current balance")
    currency: str = Field(..., description="ISO-4217 currency")
    status: str = Field(..., description="Effective status")
    is_active: bool = Field(..., description="Active with a positive balance")
    expiration_date: Optional[datetime] = Field(default=None, description="Expiry timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "gift_card_id": "0f7c2d0e-3a59-4a3f-8f5d-0f3c6b9c2a11",
                "code": "ABCD-EFGH-JKLM",
                "balance": "70.00",
                "currency": "USD",
                "status": "active",
                "is_active": True,
                "expiration_date": "2025-03-01T10:00:00Z",
            }
        }


class RedemptionCheckDTO(BaseModel):
    """Outcome of a non-mutating redemption check"""

    gift_card_id: str = Field(..., description="Gift card identifier")
    is_valid: bool = Field(..., description="Whether the redemption would be accepted")
    reason: str = Field(..., description="Why not, or 'Valid'")
    error_code: Optional[str] = Field(default=None, description="Code the redemption would fail with")
    max_amount: Optional[Decimal] = Field(default=None, description="Largest amount that can be redeemed")


class ListTransactionsCommandDTO(GiftCardReferenceDTO):
    limit: int = Field(default=50, ge=1, le=500, description="Page size")
    offset: int = Field(default=0, ge=0, description="Entries to skip")


class ListTransactionsResponseDTO(BaseModel):
    gift_card_id: str = Field(..., description="Gift card identifier")
    transactions: list[GiftCardTransactionResponseDTO] = Field(..., description="Entries, oldest first")
    total: int = Field(..., description="Total number of entries")
    limit: int = Field(..., description="Page size")
    offset: int = Field(..., description="Entries skipped")


class FindGiftCardsQueryDTO(BaseModel):
    """
    Query DTO for gift card lookups

    All given criteria must match. expiring_within_days selects active cards
    expiring between now and now + N days.
    """

    code: Optional[str] = Field(default=None, description="Exact code (case-insensitive)")
    purchaser_id: Optional[str] = Field(default=None, description="Purchasing client")
    recipient_email: Optional[str] = Field(default=None, description="Recipient email (case-insensitive)")
    active_only: bool = Field(default=False, description="Only active cards with a balance")
    expiring_within_days: Optional[int] = Field(default=None, ge=0, description="Expiry window")
    search: Optional[str] = Field(default=None, description="Text matched against code, recipient and message")


class GiftCardStatisticsDTO(BaseModel):
    """Aggregate gift card figures"""

    total_sold: int = Field(..., description="Cards sold")
    total_revenue: Decimal = Field(..., description="Sum of initial values")
    total_redeemed: Decimal = Field(..., description="Sum of value spent net of refunds")
    redemption_rate: Decimal = Field(..., description="total_redeemed / total_revenue in percent")
    average_value: Decimal = Field(..., description="Average initial value")
    active_cards: int = Field(..., description="Active cards with a balance")
    expired_cards: int = Field(..., description="Expired cards")
    average_days_to_redemption: Decimal = Field(..., description="Average days from purchase to first redemption")
    currency: str = Field(..., description="Currency of the figures")


class LedgerDiscrepancyDTO(BaseModel):
    """
    Gift card whose stored ledger disagrees with its working balance

    calculated_balance is None when the stored ledger does not replay at all.
    """

    gift_card_id: str = Field(..., description="Gift card identifier")
    cached_balance: Optional[Decimal] = Field(default=None, description="Balance held in the working set")
    calculated_balance: Optional[Decimal] = Field(default=None, description="Balance replayed from the store")
    discrepancy: Optional[Decimal] = Field(default=None, description="cached - calculated")
    reason: str = Field(..., description="What failed")


class ReconciliationResultDTO(BaseModel):
    total_ledgers_checked: int = Field(..., description="Gift cards checked")
    discrepancies_found: int = Field(..., description="Gift cards with a discrepancy")
    discrepancies: list[LedgerDiscrepancyDTO] = Field(default_factory=list, description="Details")
    halted_gift_card_ids: list[str] = Field(default_factory=list, description="Cards halted after the run")
    reconciliation_time: datetime = Field(..., description="When the run started")
    execution_time_ms: int = Field(..., description="Run duration")
