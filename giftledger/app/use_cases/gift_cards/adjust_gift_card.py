"""AdjustGiftCard Use Case

Records a signed manual correction. Ledger entries are never edited; a
mistake is fixed by a new ADJUSTMENT entry with the reason in its notes.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.money import Money
from .dtos import AdjustGiftCardCommandDTO, GiftCardTransactionResponseDTO
from .mappers import resolve_card_id, to_transaction_dto

logger = logging.getLogger(__name__)


class AdjustGiftCard:
    """
    Use Case: Apply a manual balance correction

    Business Rules:
    1. Positive amounts credit, negative amounts debit
    2. A debit may not exceed the balance (INSUFFICIENT_FUNDS)
    3. CANCELLED cards cannot be adjusted (INSTRUMENT_INACTIVE)
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock, id_generator: IdGenerator):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator

    def execute(self, command: AdjustGiftCardCommandDTO) -> Result[GiftCardTransactionResponseDTO]:
        try:
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            now = self.clock.now()
            entry_id = self.id_generator.new_id()

            def adjust(card: GiftCard) -> Result[GiftCardTransactionResponseDTO]:
                parsed = Money.parse(command.amount, command.currency or card.currency)
                if parsed.is_err():
                    return parsed
                adjusted = card.adjust(parsed.value, now, entry_id, command.notes)
                if adjusted.is_err():
                    return adjusted
                return Return.ok(to_transaction_dto(adjusted.value, card, now))

            result = self.registry.mutate(resolved.value, adjust)
            if result.is_ok():
                logger.warning(
                    f"Manual adjustment of {result.value.amount} {result.value.currency} on gift card "
                    f"{resolved.value}: {command.notes}"
                )
            return result

        except Exception as e:
            logger.error(f"Gift card adjustment failed: {e}")
            return Return.err(
                Error(
                    code="ADJUST_GIFT_CARD_FAILED",
                    message="Failed to adjust gift card",
                    reason=str(e),
                )
            )
