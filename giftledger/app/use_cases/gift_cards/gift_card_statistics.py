"""Gift Card Statistics Use Case

Aggregate sales and redemption figures over the gift card working set.
"""

from decimal import Decimal, ROUND_HALF_UP
from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.settings import LedgerSettings
from giftledger.domain.money import Money
from .dtos import GiftCardStatisticsDTO

SECONDS_PER_DAY = Decimal(86400)
CENT = Decimal("0.01")


class GetGiftCardStatistics:
    """
    Use Case: Gift card statistics

    Business Rules:
    1. Figures cover cards in the configured default currency only
    2. redemption_rate = total_redeemed / total_revenue x 100 (0 without revenue)
    3. average_days_to_redemption counts only cards with a redemption
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock, settings: LedgerSettings):
        self.registry = registry
        self.clock = clock
        self.settings = settings

    def execute(self) -> Result[GiftCardStatisticsDTO]:
        cards = self.registry.all_cards()
        if cards.is_err():
            return Return.err(cards.error)

        now = self.clock.now()
        currency = self.settings.default_currency
        selected = [card for card in cards.value if card.currency == currency]

        revenue = Money.zero(currency)
        redeemed = Money.zero(currency)
        redemption_days: list[Decimal] = []
        for card in selected:
            revenue = revenue.add(card.initial_value)
            redeemed = redeemed.add(card.total_spent)
            first_redemption = card.first_redemption_at
            if first_redemption is not None:
                elapsed = Decimal((first_redemption - card.purchase_date).total_seconds())
                redemption_days.append(elapsed / SECONDS_PER_DAY)

        total_sold = len(selected)
        redemption_rate = (
            Decimal(redeemed.amount) * 100 / Decimal(revenue.amount) if revenue.is_positive() else Decimal("0")
        )
        average_value = (
            revenue.to_decimal() / total_sold if total_sold else Decimal("0")
        )
        average_days = (
            sum(redemption_days) / len(redemption_days) if redemption_days else Decimal("0")
        )

        return Return.ok(
            GiftCardStatisticsDTO(
                total_sold=total_sold,
                total_revenue=revenue.to_decimal(),
                total_redeemed=redeemed.to_decimal(),
                redemption_rate=redemption_rate.quantize(CENT, rounding=ROUND_HALF_UP),
                average_value=average_value.quantize(CENT, rounding=ROUND_HALF_UP),
                active_cards=sum(1 for card in selected if card.is_active(now)),
                expired_cards=sum(1 for card in selected if card.is_expired(now)),
                average_days_to_redemption=average_days.quantize(CENT, rounding=ROUND_HALF_UP),
                currency=currency,
            )
        )
