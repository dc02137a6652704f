"""RefundGiftCard Use Case

Returns value from an earlier redemption to the gift card (e.g., a
cancelled appointment that was paid by gift card).
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.money import Money
from .dtos import RefundGiftCardCommandDTO, GiftCardTransactionResponseDTO
from .mappers import resolve_card_id, to_transaction_dto

logger = logging.getLogger(__name__)


class RefundGiftCard:
    """
    Use Case: Refund a redemption back onto a gift card

    Business Rules:
    1. The refund references a redemption on the same card (TRANSACTION_NOT_FOUND)
    2. Refunds against one redemption never exceed it (REFUND_EXCEEDS_REDEMPTION)
    3. A refunded REDEEMED card becomes ACTIVE again
    4. CANCELLED cards are never re-activated (INSTRUMENT_INACTIVE)
    5. Expired cards are rejected (INSTRUMENT_EXPIRED)

    Flow:
    1. Resolve the card by id or code
    2. Under the card's lock: parse amount, refund, verify, persist
    3. Return the committed entry
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock, id_generator: IdGenerator):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator

    def execute(self, command: RefundGiftCardCommandDTO) -> Result[GiftCardTransactionResponseDTO]:
        """
        Execute gift card refund

        Args:
            command: RefundGiftCardCommandDTO with card reference, amount and
                the redemption being refunded

        Returns:
            Result[GiftCardTransactionResponseDTO]: Committed refund or error
        """
        try:
            # Step 1: Resolve card
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            now = self.clock.now()
            entry_id = self.id_generator.new_id()

            # Step 2: Refund under the card's lock
            def refund(card: GiftCard) -> Result[GiftCardTransactionResponseDTO]:
                parsed = Money.parse(command.amount, command.currency or card.currency)
                if parsed.is_err():
                    return parsed
                refunded = card.refund(
                    parsed.value,
                    command.related_transaction_id,
                    now,
                    entry_id,
                    appointment_id=command.appointment_id,
                    notes=command.notes,
                )
                if refunded.is_err():
                    return refunded
                return Return.ok(to_transaction_dto(refunded.value, card, now))

            result = self.registry.mutate(resolved.value, refund)

            # Step 3: Log outcome
            if result.is_ok():
                logger.info(
                    f"Refunded {result.value.amount} {result.value.currency} to gift card "
                    f"{resolved.value} against {command.related_transaction_id}"
                )
            return result

        except Exception as e:
            logger.error(f"Gift card refund failed: {e}")
            return Return.err(
                Error(
                    code="REFUND_GIFT_CARD_FAILED",
                    message="Failed to refund gift card",
                    reason=str(e),
                )
            )
