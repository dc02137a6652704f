"""Gift Card Store Interface

Defines the contract for durable gift card persistence. A card is saved as a
whole snapshot (descriptive fields plus every ledger entry); implementations
must treat ledger entries as append-only.
"""

from abc import ABC, abstractmethod
from libs.result import Result
from giftledger.domain.gift_card import GiftCardSnapshot


class GiftCardStore(ABC):
    """
    Repository interface for gift card snapshots

    Implementations convert their own failures into Result errors with code
    PERSISTENCE_FAILED instead of raising.
    """

    @abstractmethod
    def save(self, snapshot: GiftCardSnapshot) -> Result[None]:
        """
        Persist a gift card snapshot

        Args:
            snapshot: Full card state; entries already stored must match

        Returns:
            Result[None]: Ok once durable, PERSISTENCE_FAILED otherwise
        """
        pass

    @abstractmethod
    def load(self, card_id: str) -> Result[GiftCardSnapshot]:
        """
        Load a gift card snapshot

        Args:
            card_id: Gift card identifier

        Returns:
            Result[GiftCardSnapshot]: Snapshot, GIFT_CARD_NOT_FOUND or
            PERSISTENCE_FAILED
        """
        pass

    @abstractmethod
    def list_ids(self) -> Result[list[str]]:
        """
        List the ids of every stored gift card

        Returns:
            Result[list[str]]: Card ids, or PERSISTENCE_FAILED
        """
        pass
