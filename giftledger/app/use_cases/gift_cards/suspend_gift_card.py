"""SuspendGiftCard / ResumeGiftCard Use Cases

Temporarily blocks and unblocks redemption (e.g., a card reported lost).
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.domain.gift_card import GiftCard
from .dtos import GiftCardStatusCommandDTO, StatusChangeResponseDTO
from .mappers import resolve_card_id

logger = logging.getLogger(__name__)


class SuspendGiftCard:
    """
    Use Case: Suspend an active gift card

    Business Rules:
    1. Only ACTIVE cards can be suspended (INVALID_TRANSITION)
    2. Suspended cards reject redemption and reload (INSTRUMENT_INACTIVE)
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: GiftCardStatusCommandDTO) -> Result[StatusChangeResponseDTO]:
        try:
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)
            now = self.clock.now()

            def suspend(card: GiftCard) -> Result[StatusChangeResponseDTO]:
                suspended = card.suspend(now)
                if suspended.is_err():
                    return suspended
                return Return.ok(StatusChangeResponseDTO(gift_card_id=card.id, status=suspended.value.value))

            result = self.registry.mutate(resolved.value, suspend)
            if result.is_ok():
                logger.info(f"Suspended gift card {resolved.value}")
            return result

        except Exception as e:
            logger.error(f"Gift card suspension failed: {e}")
            return Return.err(
                Error(
                    code="SUSPEND_GIFT_CARD_FAILED",
                    message="Failed to suspend gift card",
                    reason=str(e),
                )
            )


class ResumeGiftCard:
    """
    Use Case: Resume a suspended gift card

    Business Rules:
    1. Only SUSPENDED cards can be resumed (INVALID_TRANSITION)
    2. An expired card stays expired (the transition is rejected)
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: GiftCardStatusCommandDTO) -> Result[StatusChangeResponseDTO]:
        try:
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)
            now = self.clock.now()

            def resume(card: GiftCard) -> Result[StatusChangeResponseDTO]:
                resumed = card.resume(now)
                if resumed.is_err():
                    return resumed
                return Return.ok(StatusChangeResponseDTO(gift_card_id=card.id, status=resumed.value.value))

            result = self.registry.mutate(resolved.value, resume)
            if result.is_ok():
                logger.info(f"Resumed gift card {resolved.value}")
            return result

        except Exception as e:
            logger.error(f"Gift card resume failed: {e}")
            return Return.err(
                Error(
                    code="RESUME_GIFT_CARD_FAILED",
                    message="Failed to resume gift card",
                    reason=str(e),
                )
            )
