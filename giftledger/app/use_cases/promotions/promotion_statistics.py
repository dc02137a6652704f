"""Promotion Statistics Use Cases

Aggregate discount and revenue figures, and a ranking of the best
performing promotions.
"""

from decimal import Decimal, ROUND_HALF_UP
from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.app.services.settings import LedgerSettings
from giftledger.domain.money import Money
from giftledger.domain.promotion_usage import PromotionUsage
from .dtos import (
    PromotionMetric,
    PromotionPerformanceDTO,
    PromotionStatisticsDTO,
    TopPromotionsQueryDTO,
)

CENT = Decimal("0.01")


def _average_percentage(usages: list[PromotionUsage]) -> Decimal:
    if not usages:
        return Decimal("0")
    total = sum(usage.discount_percentage for usage in usages)
    return (total / len(usages)).quantize(CENT, rounding=ROUND_HALF_UP)


def _totals(usages: list[PromotionUsage], currency: str) -> tuple[Money, Money]:
    discount = Money.zero(currency)
    revenue = Money.zero(currency)
    for usage in usages:
        discount = discount.add(usage.discount_amount)
        revenue = revenue.add(usage.final_amount)
    return discount, revenue


class GetPromotionStatistics:
    """
    Use Case: Promotion statistics

    Business Rules:
    1. Figures cover promotions and usages in the default currency
    2. roi = (revenue - discounts) / discounts x 100 (0 without discounts)
    """

    def __init__(self, registry: PromotionRegistry, clock: Clock, settings: LedgerSettings):
        self.registry = registry
        self.clock = clock
        self.settings = settings

    def execute(self) -> Result[PromotionStatisticsDTO]:
        promotions = self.registry.all_promotions()
        if promotions.is_err():
            return Return.err(promotions.error)
        usages = self.registry.all_usages()
        if usages.is_err():
            return Return.err(usages.error)

        now = self.clock.now()
        currency = self.settings.default_currency
        selected = [(promotion, count) for promotion, count in promotions.value if promotion.currency == currency]
        selected_usages = [usage for usage in usages.value if usage.original_amount.currency == currency]

        discount, revenue = _totals(selected_usages, currency)
        roi = Decimal("0")
        if discount.is_positive():
            roi = Decimal(revenue.amount - discount.amount) * 100 / Decimal(discount.amount)

        return Return.ok(
            PromotionStatisticsDTO(
                total_promotions=len(selected),
                active_promotions=sum(1 for promotion, count in selected if promotion.is_currently_active(now, count)),
                total_usages=len(selected_usages),
                total_discount_given=discount.to_decimal(),
                total_revenue=revenue.to_decimal(),
                average_discount_percentage=_average_percentage(selected_usages),
                roi=roi.quantize(CENT, rounding=ROUND_HALF_UP),
                currency=currency,
            )
        )


class GetTopPromotions:
    """
    Use Case: Top performing promotions

    Usages are grouped by promotion and ranked by usage count, revenue
    (sum of final amounts) or total discount.
    """

    def __init__(self, registry: PromotionRegistry):
        self.registry = registry

    def execute(self, query: TopPromotionsQueryDTO) -> Result[list[PromotionPerformanceDTO]]:
        usages = self.registry.all_usages()
        if usages.is_err():
            return Return.err(usages.error)

        grouped: dict[str, list[PromotionUsage]] = {}
        for usage in usages.value:
            grouped.setdefault(usage.promotion_id, []).append(usage)

        performances = []
        for promotion_id, group in grouped.items():
            currency = group[0].original_amount.currency
            discount, revenue = _totals(group, currency)
            performances.append(
                PromotionPerformanceDTO(
                    promotion_id=promotion_id,
                    promotion_name=group[0].promotion_name,
                    total_usages=len(group),
                    total_revenue=revenue.to_decimal(),
                    total_discount=discount.to_decimal(),
                    average_discount_percentage=_average_percentage(group),
                    currency=currency,
                )
            )

        sort_keys = {
            PromotionMetric.USAGES: lambda perf: perf.total_usages,
            PromotionMetric.REVENUE: lambda perf: perf.total_revenue,
            PromotionMetric.DISCOUNT: lambda perf: perf.total_discount,
        }
        performances.sort(key=sort_keys[query.metric], reverse=True)
        return Return.ok(performances[:query.limit])
