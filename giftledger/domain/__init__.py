from .errors import ErrorCode, ErrorKind, CurrencyMismatch, error_kind, make_error
from .money import Money, minor_unit_exponent
from .ledger_entry import EntryKind, LedgerEntry, signed_amount
from .ledger import Ledger
from .gift_card import (
    GiftCard,
    GiftCardSnapshot,
    GiftCardStatus,
    GiftCardCheckpoint,
    DeliveryMethod,
    TERMINAL_STATUSES,
)
from .promotion import (
    Promotion,
    PromotionType,
    PromotionAudience,
    DiscountType,
    DiscountQuote,
    ProposedPurchase,
    Eligibility,
    compute_discount,
)
from .promotion_usage import PromotionUsage
from .usage_tracker import UsageTracker, Admission
from .loyalty import (
    LoyaltyProgram,
    LoyaltyTier,
    LoyaltyReward,
    RewardType,
    ClientLoyaltyAccount,
)

__all__ = [
    "ErrorCode",
    "ErrorKind",
    "CurrencyMismatch",
    "error_kind",
    "make_error",
    "Money",
    "minor_unit_exponent",
    "EntryKind",
    "LedgerEntry",
    "signed_amount",
    "Ledger",
    "GiftCard",
    "GiftCardSnapshot",
    "GiftCardStatus",
    "GiftCardCheckpoint",
    "DeliveryMethod",
    "TERMINAL_STATUSES",
    "Promotion",
    "PromotionType",
    "PromotionAudience",
    "DiscountType",
    "DiscountQuote",
    "ProposedPurchase",
    "Eligibility",
    "compute_discount",
    "PromotionUsage",
    "UsageTracker",
    "Admission",
    "LoyaltyProgram",
    "LoyaltyTier",
    "LoyaltyReward",
    "RewardType",
    "ClientLoyaltyAccount",
]
