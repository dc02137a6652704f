"""Find Promotions Use Case

Lookups over the promotion working set: by code, active, auto-apply,
expiring soon, by type and free-text search.
"""

from datetime import timedelta
from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.domain.promotion import Promotion
from .dtos import FindPromotionsQueryDTO, PromotionResponseDTO
from .mappers import to_promotion_dto


class FindPromotions:
    """
    Query promotions

    Every given criterion must match. Results are ordered by end date,
    soonest first.
    """

    def __init__(self, registry: PromotionRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, query: FindPromotionsQueryDTO) -> Result[list[PromotionResponseDTO]]:
        promotions = self.registry.all_promotions()
        if promotions.is_err():
            return Return.err(promotions.error)

        now = self.clock.now()
        matches = [
            (promotion, usage)
            for promotion, usage in promotions.value
            if self._matches(promotion, usage, query, now)
        ]
        matches.sort(key=lambda pair: pair[0].end_date)
        return Return.ok([to_promotion_dto(promotion, usage, now) for promotion, usage in matches])

    def _matches(self, promotion: Promotion, usage: int, query: FindPromotionsQueryDTO, now) -> bool:
        if query.code is not None and promotion.code != query.code.strip().upper():
            return False
        if query.active_only and not promotion.is_currently_active(now, usage):
            return False
        if query.auto_apply_only and not (promotion.auto_apply and promotion.is_currently_active(now, usage)):
            return False
        if query.promotion_type is not None and promotion.promotion_type != query.promotion_type:
            return False
        if query.expiring_within_days is not None:
            horizon = now + timedelta(days=query.expiring_within_days)
            if not (now < promotion.end_date <= horizon and promotion.is_active):
                return False
        if query.search:
            needle = query.search.lower()
            haystacks = (promotion.name.lower(), promotion.code.lower(), promotion.description.lower())
            if not any(needle in haystack for haystack in haystacks):
                return False
        return True
