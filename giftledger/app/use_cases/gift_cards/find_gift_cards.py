"""Find Gift Cards Use Case

Lookups over the gift card working set: by code, purchaser, recipient,
active cards, cards expiring soon and free-text search.
"""

from datetime import timedelta
from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.domain.gift_card import GiftCard
from .dtos import FindGiftCardsQueryDTO, GiftCardResponseDTO
from .mappers import to_gift_card_dto


class FindGiftCards:
    """
    Query gift cards

    Every given criterion must match. Results are ordered newest purchase
    first. Halted cards are left out.
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, query: FindGiftCardsQueryDTO) -> Result[list[GiftCardResponseDTO]]:
        cards = self.registry.all_cards()
        if cards.is_err():
            return Return.err(cards.error)

        now = self.clock.now()
        matches = [card for card in cards.value if self._matches(card, query, now)]
        matches.sort(key=lambda card: card.purchase_date, reverse=True)
        return Return.ok([to_gift_card_dto(card, now) for card in matches])

    def _matches(self, card: GiftCard, query: FindGiftCardsQueryDTO, now) -> bool:
        if query.code is not None and card.code != query.code.strip().upper():
            return False
        if query.purchaser_id is not None and card.purchaser_id != query.purchaser_id:
            return False
        if query.recipient_email is not None and card.recipient_email.lower() != query.recipient_email.lower():
            return False
        if query.active_only and not card.is_active(now):
            return False
        if query.expiring_within_days is not None:
            horizon = now + timedelta(days=query.expiring_within_days)
            if card.expiration_date is None:
                return False
            if not (now < card.expiration_date <= horizon and card.is_active(now)):
                return False
        if query.search:
            needle = query.search.lower()
            haystacks = (card.code.lower(), card.recipient_name.lower(), card.recipient_email.lower())
            if not any(needle in haystack for haystack in haystacks):
                return False
        return True
