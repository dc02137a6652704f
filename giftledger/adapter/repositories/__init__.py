from .gift_card_repository import SqlModelGiftCardStore
from .promotion_repository import SqlModelPromotionStore
from .loyalty_repository import SqlModelLoyaltyStore
from .in_memory import InMemoryGiftCardStore, InMemoryPromotionStore, InMemoryLoyaltyStore

__all__ = [
    "SqlModelGiftCardStore",
    "SqlModelPromotionStore",
    "SqlModelLoyaltyStore",
    "InMemoryGiftCardStore",
    "InMemoryPromotionStore",
    "InMemoryLoyaltyStore",
]
