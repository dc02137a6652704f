"""Conversions between gift card entities and response DTOs"""

from datetime import datetime
from libs.result import Result, Return
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.ledger_entry import LedgerEntry
from .dtos import GiftCardReferenceDTO, GiftCardResponseDTO, GiftCardTransactionResponseDTO


def resolve_card_id(registry: GiftCardRegistry, reference: GiftCardReferenceDTO) -> Result[str]:
    """Card id from a command that names the card by id or by code"""
    if reference.gift_card_id is not None:
        return Return.ok(reference.gift_card_id)
    return registry.find_id_by_code(reference.code)


def to_gift_card_dto(card: GiftCard, now: datetime) -> GiftCardResponseDTO:
    return GiftCardResponseDTO(
        gift_card_id=card.id,
        code=card.code,
        status=card.status_at(now).value,
        currency=card.currency,
        initial_value=card.initial_value.to_decimal(),
        balance=card.balance.to_decimal(),
        total_spent=card.total_spent.to_decimal(),
        redemption_percentage=card.redemption_percentage,
        purchaser_id=card.purchaser_id,
        recipient_name=card.recipient_name,
        recipient_email=card.recipient_email,
        delivery_method=card.delivery_method.value,
        purchase_date=card.purchase_date,
        activation_date=card.activation_date,
        expiration_date=card.expiration_date,
        is_reloadable=card.is_reloadable,
    )


def to_transaction_dto(entry: LedgerEntry, card: GiftCard, now: datetime) -> GiftCardTransactionResponseDTO:
    return GiftCardTransactionResponseDTO(
        transaction_id=entry.id,
        gift_card_id=entry.instrument_id,
        sequence=entry.sequence,
        transaction_type=entry.kind.value,
        amount=entry.amount.to_decimal(),
        balance_before=entry.balance_before.to_decimal(),
        balance_after=entry.balance_after.to_decimal(),
        currency=entry.amount.currency,
        status=card.status_at(now).value,
        related_transaction_id=entry.related_transaction_id,
        appointment_id=entry.appointment_id,
        notes=entry.notes,
        created_at=entry.created_at,
    )
