"""ApplyPromotion Use Case

Applies a promotion to a purchase: evaluates it, consumes one use and
records the usage, all under the promotion's lock.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.id_generator import IdGenerator
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.domain.promotion import Eligibility, Promotion
from giftledger.domain.promotion_usage import PromotionUsage
from .dtos import ApplyPromotionCommandDTO, PromotionUsageResponseDTO
from .evaluate_promotion import build_purchase
from .mappers import resolve_promotion_id, to_usage_dto

logger = logging.getLogger(__name__)


class ApplyPromotion:
    """
    Use Case: Apply a promotion

    Business Rules:
    1. Same checks and order as EvaluatePromotion
    2. BOGO / free-service promotions need item_price (REQUIRES_PRICE_LOOKUP)
    3. Limits are enforced atomically: concurrent applications never push a
       promotion past usage_limit_total or a client past
       usage_limit_per_client
    4. A use counts only once its usage record is persisted; on
       PERSISTENCE_FAILED the admitted use is released

    Flow:
    1. Resolve the promotion by id or code
    2. Build the proposed purchase
    3. Under the promotion's lock: evaluate, consume, append usage
    4. Return the usage record
    """

    def __init__(self, registry: PromotionRegistry, clock: Clock, id_generator: IdGenerator):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator

    def execute(self, command: ApplyPromotionCommandDTO) -> Result[PromotionUsageResponseDTO]:
        """
        Execute promotion application

        Args:
            command: ApplyPromotionCommandDTO with promotion reference and purchase

        Returns:
            Result[PromotionUsageResponseDTO]: Recorded usage or error
        """
        try:
            # Step 1: Resolve promotion
            resolved = resolve_promotion_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)
            promotion = self.registry.get(resolved.value)
            if promotion.is_err():
                return Return.err(promotion.error)

            # Step 2: Build proposed purchase
            now = self.clock.now()
            purchase = build_purchase(command, command.currency or promotion.value.currency, now)
            if purchase.is_err():
                return Return.err(purchase.error)

            usage_id = self.id_generator.new_id()

            def build_usage(current: Promotion, eligibility: Eligibility) -> PromotionUsage:
                return PromotionUsage(
                    id=usage_id,
                    promotion_id=current.id,
                    promotion_name=current.name,
                    client_id=command.client_id,
                    discount_amount=eligibility.discount,
                    original_amount=eligibility.original_amount,
                    final_amount=eligibility.final_amount,
                    created_at=now,
                    appointment_id=command.appointment_id,
                    transaction_id=command.transaction_id,
                )

            # Step 3: Evaluate, consume and record
            consumed = self.registry.consume(resolved.value, purchase.value, build_usage)
            if consumed.is_err():
                logger.info(f"Promotion {resolved.value} not applied for {command.client_id}: {consumed.error.code}")
                return Return.err(consumed.error)

            # Step 4: Build response
            return Return.ok(to_usage_dto(consumed.value))

        except Exception as e:
            logger.error(f"Promotion application failed: {e}")
            return Return.err(
                Error(
                    code="APPLY_PROMOTION_FAILED",
                    message="Failed to apply promotion",
                    reason=str(e),
                )
            )
