"""UpdatePromotion Use Case

Changes a promotion's definition (e.g., switch it off, extend its window).
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.promotion_registry import PromotionRegistry
from .dtos import UpdatePromotionCommandDTO, PromotionResponseDTO
from .mappers import to_promotion_dto

logger = logging.getLogger(__name__)


class UpdatePromotion:
    """
    Use Case: Update a promotion

    Only fields set on the command change. The code and usage history are
    kept; lowering a limit below the current usage simply blocks further use.
    """

    def __init__(self, registry: PromotionRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: UpdatePromotionCommandDTO) -> Result[PromotionResponseDTO]:
        try:
            changes = command.model_dump(exclude_unset=True, exclude={"promotion_id"})
            updated = self.registry.update(command.promotion_id, changes)
            if updated.is_err():
                return Return.err(updated.error)

            usage = self.registry.usage_count(command.promotion_id)
            if usage.is_err():
                return Return.err(usage.error)
            return Return.ok(to_promotion_dto(updated.value, usage.value, self.clock.now()))

        except Exception as e:
            logger.error(f"Promotion update failed: {e}")
            return Return.err(
                Error(
                    code="UPDATE_PROMOTION_FAILED",
                    message="Failed to update promotion",
                    reason=str(e),
                )
            )
