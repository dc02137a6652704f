"""Gift card use cases"""
from .purchase_gift_card import PurchaseGiftCard
from .activate_gift_card import ActivateGiftCard
from .redeem_gift_card import RedeemGiftCard
from .reload_gift_card import ReloadGiftCard
from .refund_gift_card import RefundGiftCard
from .adjust_gift_card import AdjustGiftCard
from .cancel_gift_card import CancelGiftCard
from .suspend_gift_card import SuspendGiftCard, ResumeGiftCard
from .get_balance import GetGiftCardBalance
from .list_transactions import ListGiftCardTransactions
from .validate_redemption import ValidateGiftCardRedemption
from .find_gift_cards import FindGiftCards
from .gift_card_statistics import GetGiftCardStatistics
from .reconcile_gift_cards import ReconcileGiftCards
from .dtos import (
    GiftCardReferenceDTO,
    PurchaseGiftCardCommandDTO,
    ActivateGiftCardCommandDTO,
    RedeemGiftCardCommandDTO,
    ReloadGiftCardCommandDTO,
    RefundGiftCardCommandDTO,
    AdjustGiftCardCommandDTO,
    CancelGiftCardCommandDTO,
    GiftCardStatusCommandDTO,
    ValidateRedemptionCommandDTO,
    GiftCardResponseDTO,
    GiftCardTransactionResponseDTO,
    StatusChangeResponseDTO,
    BalanceResponseDTO,
    RedemptionCheckDTO,
    ListTransactionsCommandDTO,
    ListTransactionsResponseDTO,
    FindGiftCardsQueryDTO,
    GiftCardStatisticsDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "PurchaseGiftCard",
    "ActivateGiftCard",
    "RedeemGiftCard",
    "ReloadGiftCard",
    "RefundGiftCard",
    "AdjustGiftCard",
    "CancelGiftCard",
    "SuspendGiftCard",
    "ResumeGiftCard",
    "GetGiftCardBalance",
    "ListGiftCardTransactions",
    "ValidateGiftCardRedemption",
    "FindGiftCards",
    "GetGiftCardStatistics",
    "ReconcileGiftCards",
    "GiftCardReferenceDTO",
    "PurchaseGiftCardCommandDTO",
    "ActivateGiftCardCommandDTO",
    "RedeemGiftCardCommandDTO",
    "ReloadGiftCardCommandDTO",
    "RefundGiftCardCommandDTO",
    "AdjustGiftCardCommandDTO",
    "CancelGiftCardCommandDTO",
    "GiftCardStatusCommandDTO",
    "ValidateRedemptionCommandDTO",
    "GiftCardResponseDTO",
    "GiftCardTransactionResponseDTO",
    "StatusChangeResponseDTO",
    "BalanceResponseDTO",
    "RedemptionCheckDTO",
    "ListTransactionsCommandDTO",
    "ListTransactionsResponseDTO",
    "FindGiftCardsQueryDTO",
    "GiftCardStatisticsDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
]
