"""ActivateGiftCard Use Case"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.domain.gift_card import GiftCard
from .dtos import ActivateGiftCardCommandDTO, StatusChangeResponseDTO
from .mappers import resolve_card_id

logger = logging.getLogger(__name__)


class ActivateGiftCard:
    """
    Use Case: Activate a pending gift card

    Business Rules:
    1. Only PENDING cards can be activated (INVALID_TRANSITION)
    2. A future activation_date schedules the activation; the card reads as
       ACTIVE from that moment on without another call
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: ActivateGiftCardCommandDTO) -> Result[StatusChangeResponseDTO]:
        try:
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            now = self.clock.now()

            def activate(card: GiftCard) -> Result[StatusChangeResponseDTO]:
                activated = card.activate(now, command.activation_date)
                if activated.is_err():
                    return activated
                return Return.ok(
                    StatusChangeResponseDTO(
                        gift_card_id=card.id,
                        status=activated.value.value,
                        activation_date=card.activation_date,
                    )
                )

            result = self.registry.mutate(resolved.value, activate)
            if result.is_ok():
                logger.info(
                    f"Gift card {resolved.value} activation set for {result.value.activation_date} "
                    f"(status={result.value.status})"
                )
            return result

        except Exception as e:
            logger.error(f"Gift card activation failed: {e}")
            return Return.err(
                Error(
                    code="ACTIVATE_GIFT_CARD_FAILED",
                    message="Failed to activate gift card",
                    reason=str(e),
                )
            )
