"""EvaluatePromotion Use Case

Checks whether a promotion applies to a proposed purchase and quotes the
discount, without consuming a use.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.domain.money import Money
from giftledger.domain.promotion import ProposedPurchase
from .dtos import EvaluatePromotionCommandDTO, EligibilityResponseDTO
from .mappers import optional_money, resolve_promotion_id, to_eligibility_dto

logger = logging.getLogger(__name__)


def build_purchase(command, currency: str, now) -> Result[ProposedPurchase]:
    """ProposedPurchase from an evaluate/apply command"""
    amount = Money.parse(command.amount, currency)
    if amount.is_err():
        return Return.err(amount.error)
    item_price = optional_money(command.item_price, currency)
    if item_price.is_err():
        return Return.err(item_price.error)
    return Return.ok(
        ProposedPurchase(
            client_id=command.client_id,
            amount=amount.value,
            service_ids=command.service_ids,
            now=now,
            item_price=item_price.value,
        )
    )


class EvaluatePromotion:
    """
    Use Case: Evaluate a promotion

    Business Rules (first failure wins):
    1. RULE_DISABLED: promotion switched off
    2. OUT_OF_WINDOW: now outside [start_date, end_date]
    3. USAGE_LIMIT_REACHED: total uses exhausted
    4. CLIENT_USAGE_LIMIT_REACHED: client's uses exhausted
    5. BELOW_MINIMUM_PURCHASE: amount under the minimum
    6. SERVICE_NOT_APPLICABLE: no qualifying service in the purchase
    """

    def __init__(self, registry: PromotionRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: EvaluatePromotionCommandDTO) -> Result[EligibilityResponseDTO]:
        try:
            resolved = resolve_promotion_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            promotion = self.registry.get(resolved.value)
            if promotion.is_err():
                return Return.err(promotion.error)

            purchase = build_purchase(command, command.currency or promotion.value.currency, self.clock.now())
            if purchase.is_err():
                return Return.err(purchase.error)

            evaluated = self.registry.evaluate(resolved.value, purchase.value)
            if evaluated.is_err():
                return Return.err(evaluated.error)
            return Return.ok(to_eligibility_dto(promotion.value, evaluated.value))

        except Exception as e:
            logger.error(f"Promotion evaluation failed: {e}")
            return Return.err(
                Error(
                    code="EVALUATE_PROMOTION_FAILED",
                    message="Failed to evaluate promotion",
                    reason=str(e),
                )
            )
