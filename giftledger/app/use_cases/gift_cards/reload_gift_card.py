"""ReloadGiftCard Use Case

Adds value to a reloadable gift card.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.money import Money
from .dtos import ReloadGiftCardCommandDTO, GiftCardTransactionResponseDTO
from .mappers import resolve_card_id, to_transaction_dto

logger = logging.getLogger(__name__)


class ReloadGiftCard:
    """
    Use Case: Reload a gift card

    Business Rules:
    1. Card must be reloadable (NOT_RELOADABLE)
    2. Card must be ACTIVE or REDEEMED; a reloaded REDEEMED card is ACTIVE again
    3. PENDING, SUSPENDED and CANCELLED cards are rejected (INSTRUMENT_INACTIVE)
    4. Expired cards are rejected (INSTRUMENT_EXPIRED)
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock, id_generator: IdGenerator):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator

    def execute(self, command: ReloadGiftCardCommandDTO) -> Result[GiftCardTransactionResponseDTO]:
        try:
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            now = self.clock.now()
            entry_id = self.id_generator.new_id()

            def reload(card: GiftCard) -> Result[GiftCardTransactionResponseDTO]:
                parsed = Money.parse(command.amount, command.currency or card.currency)
                if parsed.is_err():
                    return parsed
                reloaded = card.reload(parsed.value, now, entry_id, notes=command.notes)
                if reloaded.is_err():
                    return reloaded
                return Return.ok(to_transaction_dto(reloaded.value, card, now))

            result = self.registry.mutate(resolved.value, reload)
            if result.is_ok():
                logger.info(
                    f"Reloaded gift card {resolved.value} with {result.value.amount} {result.value.currency}"
                )
            return result

        except Exception as e:
            logger.error(f"Gift card reload failed: {e}")
            return Return.err(
                Error(
                    code="RELOAD_GIFT_CARD_FAILED",
                    message="Failed to reload gift card",
                    reason=str(e),
                )
            )
