"""Promotion Store Interface

Defines the contract for promotion definitions and their usage records.
Usage records are append-only; per-client and total counters are rebuilt
from them when a promotion is loaded.
"""

from abc import ABC, abstractmethod
from libs.result import Result
from giftledger.domain.promotion import Promotion
from giftledger.domain.promotion_usage import PromotionUsage


class PromotionStore(ABC):
    """Repository interface for promotions and promotion usages"""

    @abstractmethod
    def save_promotion(self, promotion: Promotion) -> Result[None]:
        """
        Insert or replace a promotion definition

        Returns:
            Result[None]: Ok once durable, PERSISTENCE_FAILED otherwise
        """
        pass

    @abstractmethod
    def load_promotion(self, promotion_id: str) -> Result[Promotion]:
        """
        Load a promotion definition

        Returns:
            Result[Promotion]: Promotion, PROMOTION_NOT_FOUND or PERSISTENCE_FAILED
        """
        pass

    @abstractmethod
    def list_usages(self, promotion_id: str) -> Result[list[PromotionUsage]]:
        """
        Load every usage record of a promotion, oldest first

        Returns:
            Result[list[PromotionUsage]]: Usage records, or PERSISTENCE_FAILED
        """
        pass

    @abstractmethod
    def append_usage(self, usage: PromotionUsage) -> Result[None]:
        """
        Append one usage record

        Returns:
            Result[None]: Ok once durable, PERSISTENCE_FAILED otherwise
        """
        pass

    @abstractmethod
    def list_ids(self) -> Result[list[str]]:
        """
        List the ids of every stored promotion

        Returns:
            Result[list[str]]: Promotion ids, or PERSISTENCE_FAILED
        """
        pass
