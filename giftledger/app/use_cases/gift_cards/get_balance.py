"""Get Gift Card Balance Use Case

Retrieves a gift card's current balance and effective status.
"""

from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from .dtos import BalanceResponseDTO, GiftCardReferenceDTO
from .mappers import resolve_card_id


class GetGiftCardBalance:
    """
    Get Gift Card Balance Use Case

    Read-only operation. The balance comes from the committed ledger; the
    status is evaluated at the clock's current time, so a card past its
    expiry date reads as expired even before any operation touches it.
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        """
        Initialize GetGiftCardBalance use case

        Args:
            registry: Gift card working set
            clock: Time source for lazy status evaluation
        """
        self.registry = registry
        self.clock = clock

    def execute(self, reference: GiftCardReferenceDTO) -> Result[BalanceResponseDTO]:
        """
        Execute get balance operation

        Args:
            reference: Gift card id or code

        Returns:
            Result[BalanceResponseDTO]: Success with balance data or error

        Errors:
            GIFT_CARD_NOT_FOUND: No card with that id or code
            LEDGER_VIOLATION: The card is halted pending reconciliation
        """
        resolved = resolve_card_id(self.registry, reference)
        if resolved.is_err():
            return Return.err(resolved.error)

        viewed = self.registry.view(resolved.value)
        if viewed.is_err():
            return Return.err(viewed.error)
        card = viewed.value
        now = self.clock.now()

        return Return.ok(
            BalanceResponseDTO(
                gift_card_id=card.id,
                code=card.code,
                balance=card.balance.to_decimal(),
                currency=card.currency,
                status=card.status_at(now).value,
                is_active=card.is_active(now),
                expiration_date=card.expiration_date,
            )
        )
