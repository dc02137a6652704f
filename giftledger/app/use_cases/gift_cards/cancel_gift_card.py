"""CancelGiftCard Use Case

Cancels a gift card for good. Any remaining balance is forfeited through a
CANCELLATION entry so the ledger still explains the final balance of zero.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.domain.gift_card import GiftCard
from .dtos import CancelGiftCardCommandDTO, StatusChangeResponseDTO
from .mappers import resolve_card_id, to_transaction_dto

logger = logging.getLogger(__name__)


class CancelGiftCard:
    """
    Use Case: Cancel a gift card

    Business Rules:
    1. Any status except REDEEMED and CANCELLED can be cancelled
       (INVALID_TRANSITION otherwise)
    2. A positive balance is forfeited with a CANCELLATION entry
    3. CANCELLED is terminal: no later redemption, reload or refund
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock, id_generator: IdGenerator):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator

    def execute(self, command: CancelGiftCardCommandDTO) -> Result[StatusChangeResponseDTO]:
        try:
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            now = self.clock.now()
            entry_id = self.id_generator.new_id()

            def cancel(card: GiftCard) -> Result[StatusChangeResponseDTO]:
                cancelled = card.cancel(now, entry_id, notes=command.notes)
                if cancelled.is_err():
                    return cancelled
                entry = cancelled.value
                return Return.ok(
                    StatusChangeResponseDTO(
                        gift_card_id=card.id,
                        status=card.status.value,
                        activation_date=card.activation_date,
                        transaction=to_transaction_dto(entry, card, now) if entry else None,
                    )
                )

            result = self.registry.mutate(resolved.value, cancel)
            if result.is_ok():
                forfeited = result.value.transaction.amount if result.value.transaction else 0
                logger.info(f"Cancelled gift card {resolved.value}; forfeited {forfeited}")
            return result

        except Exception as e:
            logger.error(f"Gift card cancellation failed: {e}")
            return Return.err(
                Error(
                    code="CANCEL_GIFT_CARD_FAILED",
                    message="Failed to cancel gift card",
                    reason=str(e),
                )
            )
