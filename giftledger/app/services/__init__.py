from .clock import Clock
from .id_generator import IdGenerator
from .code_generator import GiftCardCodeGenerator
from .lock_registry import LockRegistry
from .settings import LedgerSettings
from .gift_card_registry import GiftCardRegistry
from .promotion_registry import PromotionRegistry

__all__ = [
    "Clock",
    "IdGenerator",
    "GiftCardCodeGenerator",
    "LockRegistry",
    "LedgerSettings",
    "GiftCardRegistry",
    "PromotionRegistry",
]
