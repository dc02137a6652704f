"""RedeemGiftCard Use Case

Spends value from a gift card. The balance check, the ledger append and the
save run as one step under the card's lock, so concurrent redemptions can
never overdraw a card.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.money import Money
from .dtos import RedeemGiftCardCommandDTO, GiftCardTransactionResponseDTO
from .mappers import resolve_card_id, to_transaction_dto

logger = logging.getLogger(__name__)


class RedeemGiftCard:
    """
    Use Case: Redeem value from a gift card

    Business Rules:
    1. Card must not be expired (INSTRUMENT_EXPIRED)
    2. Card must be ACTIVE (INSTRUMENT_INACTIVE)
    3. Sufficient balance: balance >= amount (INSUFFICIENT_FUNDS)
    4. A redemption that empties the card moves it to REDEEMED
    5. All-or-nothing: a failed save leaves balance and status unchanged

    Flow:
    1. Resolve the card by id or code
    2. Under the card's lock: parse amount, redeem, verify, persist
    3. Return the committed entry
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock, id_generator: IdGenerator):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator

    def execute(self, command: RedeemGiftCardCommandDTO) -> Result[GiftCardTransactionResponseDTO]:
        """
        Execute gift card redemption

        Args:
            command: RedeemGiftCardCommandDTO with card reference and amount

        Returns:
            Result[GiftCardTransactionResponseDTO]: Committed redemption or error
        """
        try:
            # Step 1: Resolve card
            resolved = resolve_card_id(self.registry, command)
            if resolved.is_err():
                return Return.err(resolved.error)

            now = self.clock.now()
            entry_id = self.id_generator.new_id()

            # Step 2: Redeem under the card's lock
            def redeem(card: GiftCard) -> Result[GiftCardTransactionResponseDTO]:
                parsed = Money.parse(command.amount, command.currency or card.currency)
                if parsed.is_err():
                    return parsed
                redeemed = card.redeem(
                    parsed.value,
                    now,
                    entry_id,
                    appointment_id=command.appointment_id,
                    notes=command.notes,
                )
                if redeemed.is_err():
                    return redeemed
                return Return.ok(to_transaction_dto(redeemed.value, card, now))

            result = self.registry.mutate(resolved.value, redeem)

            # Step 3: Log outcome
            if result.is_ok():
                logger.info(
                    f"Redeemed {result.value.amount} {result.value.currency} from gift card "
                    f"{resolved.value}; balance {result.value.balance_after}"
                )
            else:
                logger.info(f"Redemption on gift card {resolved.value} rejected: {result.error.code}")
            return result

        except Exception as e:
            logger.error(f"Gift card redemption failed: {e}")
            return Return.err(
                Error(
                    code="REDEEM_GIFT_CARD_FAILED",
                    message="Failed to redeem gift card",
                    reason=str(e),
                )
            )
