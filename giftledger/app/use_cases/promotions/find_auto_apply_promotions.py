"""FindAutoApplyPromotions Use Case

Finds the auto-apply promotions a purchase qualifies for, best discount
first, so checkout can offer (or apply) the top one.
"""

from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.app.services.settings import LedgerSettings
from .dtos import EligibilityResponseDTO, FindAutoApplyCommandDTO
from .evaluate_promotion import build_purchase
from .mappers import to_eligibility_dto


class FindAutoApplyPromotions:
    """
    Use Case: Eligible auto-apply promotions

    Business Rules:
    1. Only auto_apply promotions in the purchase's currency are considered
    2. Each candidate goes through the full evaluation; ineligible ones are
       left out silently
    3. Ordered by discount, largest first; quotes that still need a price
       lookup come last
    """

    def __init__(self, registry: PromotionRegistry, clock: Clock, settings: LedgerSettings):
        self.registry = registry
        self.clock = clock
        self.settings = settings

    def execute(self, command: FindAutoApplyCommandDTO) -> Result[list[EligibilityResponseDTO]]:
        currency = (command.currency or self.settings.default_currency).upper()
        purchase = build_purchase(command, currency, self.clock.now())
        if purchase.is_err():
            return Return.err(purchase.error)

        promotions = self.registry.all_promotions()
        if promotions.is_err():
            return Return.err(promotions.error)

        eligible = []
        for promotion, _ in promotions.value:
            if not promotion.auto_apply or promotion.currency != currency:
                continue
            evaluated = self.registry.evaluate(promotion.id, purchase.value)
            if evaluated.is_ok():
                eligible.append(to_eligibility_dto(promotion, evaluated.value))

        eligible.sort(
            key=lambda dto: (dto.discount_amount is None, -(dto.discount_amount or 0))
        )
        return Return.ok(eligible)
