"""Validate Gift Card Redemption Use Case

Answers "would this redemption go through?" without touching the ledger,
e.g. for a checkout screen that shows how much of a bill a card can cover.
"""

from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.domain.errors import ErrorCode
from giftledger.domain.gift_card import GiftCardStatus
from giftledger.domain.money import Money
from .dtos import RedemptionCheckDTO, ValidateRedemptionCommandDTO
from .mappers import resolve_card_id


class ValidateGiftCardRedemption:
    """
    Read-only redemption check

    Applies the same checks as RedeemGiftCard in the same order; the
    answer may be stale by the time a redemption is attempted.
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: ValidateRedemptionCommandDTO) -> Result[RedemptionCheckDTO]:
        resolved = resolve_card_id(self.registry, command)
        if resolved.is_err():
            return Return.err(resolved.error)

        viewed = self.registry.view(resolved.value)
        if viewed.is_err():
            return Return.err(viewed.error)
        card = viewed.value
        status = card.status_at(self.clock.now())
        max_amount = card.balance.to_decimal()

        if status == GiftCardStatus.EXPIRED:
            return self._invalid(card.id, "Gift card has expired", ErrorCode.INSTRUMENT_EXPIRED)
        if status != GiftCardStatus.ACTIVE:
            return self._invalid(card.id, f"Gift card is {status.value}", ErrorCode.INSTRUMENT_INACTIVE)
        if card.balance.is_zero():
            return self._invalid(card.id, "Gift card has no remaining balance", ErrorCode.INSUFFICIENT_FUNDS)

        if command.amount is not None:
            parsed = Money.parse(command.amount, card.currency)
            if parsed.is_err():
                return self._invalid(card.id, parsed.error.message, parsed.error.code)
            if parsed.value > card.balance:
                return Return.ok(
                    RedemptionCheckDTO(
                        gift_card_id=card.id,
                        is_valid=False,
                        reason=f"Insufficient balance. Available: {card.balance}",
                        error_code=ErrorCode.INSUFFICIENT_FUNDS,
                        max_amount=max_amount,
                    )
                )

        return Return.ok(
            RedemptionCheckDTO(gift_card_id=card.id, is_valid=True, reason="Valid", max_amount=max_amount)
        )

    def _invalid(self, card_id: str, reason: str, code: str) -> Result[RedemptionCheckDTO]:
        return Return.ok(RedemptionCheckDTO(gift_card_id=card_id, is_valid=False, reason=reason, error_code=code))
