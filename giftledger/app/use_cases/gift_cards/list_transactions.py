"""
List Gift Card Transactions Use Case

Retrieves a gift card's ledger entries with pagination.
"""
from libs.result import Result, Return
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from .dtos import ListTransactionsCommandDTO, ListTransactionsResponseDTO
from .mappers import resolve_card_id, to_transaction_dto


class ListGiftCardTransactions:
    """
    Use case: View gift card transactions

    Entries are returned in ledger order (sequence ascending), which is the
    order they were committed in.
    """

    def __init__(self, registry: GiftCardRegistry, clock: Clock):
        self.registry = registry
        self.clock = clock

    def execute(self, command: ListTransactionsCommandDTO) -> Result[ListTransactionsResponseDTO]:
        """
        List ledger entries for a gift card with pagination.

        Args:
            command: Card reference with limit and offset

        Returns:
            Result[ListTransactionsResponseDTO]: Paginated entry list
        """
        resolved = resolve_card_id(self.registry, command)
        if resolved.is_err():
            return Return.err(resolved.error)

        viewed = self.registry.view(resolved.value)
        if viewed.is_err():
            return Return.err(viewed.error)
        card = viewed.value
        now = self.clock.now()

        entries = card.transactions
        page = entries[command.offset:command.offset + command.limit]

        return Return.ok(
            ListTransactionsResponseDTO(
                gift_card_id=card.id,
                transactions=[to_transaction_dto(entry, card, now) for entry in page],
                total=len(entries),
                limit=command.limit,
                offset=command.offset,
            )
        )
