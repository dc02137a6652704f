from .gift_card_store import GiftCardStore
from .promotion_store import PromotionStore
from .loyalty_store import LoyaltyStore

__all__ = [
    "GiftCardStore",
    "PromotionStore",
    "LoyaltyStore",
]
