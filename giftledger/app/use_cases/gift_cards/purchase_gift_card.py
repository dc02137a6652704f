"""PurchaseGiftCard Use Case

Sells a gift card: records the purchase entry, sets the expiry from the
configured term and activates the card (now, or on its delivery date).
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from giftledger.app.services.clock import Clock
from giftledger.app.services.code_generator import GiftCardCodeGenerator
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.app.services.id_generator import IdGenerator
from giftledger.app.services.settings import LedgerSettings
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.gift_card import GiftCard
from giftledger.domain.money import Money
from .dtos import PurchaseGiftCardCommandDTO, GiftCardResponseDTO
from .mappers import to_gift_card_dto

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5


class PurchaseGiftCard:
    """
    Use Case: Sell a gift card

    Business Rules:
    1. The card starts with a PURCHASE entry for its initial value
    2. Expiry = purchase date + configured months (0 = never expires)
    3. Without a future delivery date the card is active immediately;
       otherwise activation is scheduled for the delivery date
    4. Codes are unique; a generated code that collides is regenerated,
       a custom code that collides is rejected (DUPLICATE_CODE)

    Flow:
    1. Parse the amount in the requested (or default) currency
    2. Issue the card with a custom or generated code
    3. Activate or schedule activation
    4. Register and persist the card
    5. Return response
    """

    def __init__(
        self,
        registry: GiftCardRegistry,
        clock: Clock,
        id_generator: IdGenerator,
        settings: LedgerSettings,
        code_generator: Optional[GiftCardCodeGenerator] = None,
    ):
        self.registry = registry
        self.clock = clock
        self.id_generator = id_generator
        self.settings = settings
        self.code_generator = code_generator or GiftCardCodeGenerator(settings.gift_card_code_length)

    def execute(self, command: PurchaseGiftCardCommandDTO) -> Result[GiftCardResponseDTO]:
        """
        Execute gift card purchase

        Args:
            command: PurchaseGiftCardCommandDTO with amount and recipient details

        Returns:
            Result[GiftCardResponseDTO]: The new card, or INVALID_AMOUNT /
            DUPLICATE_CODE / PERSISTENCE_FAILED
        """
        try:
            now = self.clock.now()

            # Step 1: Parse amount
            currency = command.currency or self.settings.default_currency
            parsed = Money.parse(command.amount, currency)
            if parsed.is_err():
                return Return.err(parsed.error)
            initial_value = parsed.value

            card_id = self.id_generator.new_id()
            entry_id = self.id_generator.new_id()
            attempts = 1 if command.code else MAX_CODE_ATTEMPTS

            for _ in range(attempts):
                # Step 2: Issue with a custom or generated code
                code = command.code or self.code_generator.generate()
                issued = GiftCard.issue(
                    card_id=card_id,
                    code=code,
                    initial_value=initial_value,
                    now=now,
                    entry_id=entry_id,
                    purchaser_id=command.purchaser_id,
                    recipient_name=command.recipient_name,
                    recipient_email=command.recipient_email,
                    recipient_phone=command.recipient_phone,
                    message=command.message,
                    delivery_method=command.delivery_method,
                    delivery_date=command.delivery_date,
                    expiration_date=self.settings.expiration_for(now),
                    is_reloadable=command.is_reloadable,
                )
                if issued.is_err():
                    return Return.err(issued.error)
                card = issued.value

                # Step 3: Activate now or on the delivery date
                scheduled = card.delivery_date if card.delivery_date and card.delivery_date > now else None
                activated = card.activate(now, scheduled)
                if activated.is_err():
                    return Return.err(activated.error)

                # Step 4: Register (checks code uniqueness) and persist
                registered = self.registry.add(card)
                if registered.is_ok():
                    logger.info(
                        f"Sold gift card {card.code} for {initial_value} "
                        f"(purchaser={command.purchaser_id}, status={card.status_at(now).value})"
                    )
                    # Step 5: Build response
                    return Return.ok(to_gift_card_dto(card, now))

                if registered.error.code != ErrorCode.DUPLICATE_CODE:
                    return Return.err(registered.error)
                logger.info(f"Gift card code {code} already in use")

            return Return.err(
                make_error(
                    ErrorCode.DUPLICATE_CODE,
                    "Could not allocate a unique gift card code",
                    reason=f"attempts={attempts}",
                )
            )

        except Exception as e:
            logger.error(f"Gift card purchase failed: {e}")
            return Return.err(
                Error(
                    code="PURCHASE_GIFT_CARD_FAILED",
                    message="Failed to purchase gift card",
                    reason=str(e),
                )
            )
