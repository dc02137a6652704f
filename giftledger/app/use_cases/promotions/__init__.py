"""Promotion use cases"""
from .create_promotion import CreatePromotion
from .update_promotion import UpdatePromotion
from .evaluate_promotion import EvaluatePromotion
from .apply_promotion import ApplyPromotion
from .find_auto_apply_promotions import FindAutoApplyPromotions
from .find_promotions import FindPromotions
from .list_promotion_usages import ListPromotionUsages
from .promotion_statistics import GetPromotionStatistics, GetTopPromotions
from .dtos import (
    PromotionReferenceDTO,
    CreatePromotionCommandDTO,
    UpdatePromotionCommandDTO,
    PromotionResponseDTO,
    EvaluatePromotionCommandDTO,
    ApplyPromotionCommandDTO,
    EligibilityResponseDTO,
    PromotionUsageResponseDTO,
    FindAutoApplyCommandDTO,
    FindPromotionsQueryDTO,
    PromotionStatisticsDTO,
    PromotionMetric,
    TopPromotionsQueryDTO,
    PromotionPerformanceDTO,
)

__all__ = [
    "CreatePromotion",
    "UpdatePromotion",
    "EvaluatePromotion",
    "ApplyPromotion",
    "FindAutoApplyPromotions",
    "FindPromotions",
    "ListPromotionUsages",
    "GetPromotionStatistics",
    "GetTopPromotions",
    "PromotionReferenceDTO",
    "CreatePromotionCommandDTO",
    "UpdatePromotionCommandDTO",
    "PromotionResponseDTO",
    "EvaluatePromotionCommandDTO",
    "ApplyPromotionCommandDTO",
    "EligibilityResponseDTO",
    "PromotionUsageResponseDTO",
    "FindAutoApplyCommandDTO",
    "FindPromotionsQueryDTO",
    "PromotionStatisticsDTO",
    "PromotionMetric",
    "TopPromotionsQueryDTO",
    "PromotionPerformanceDTO",
]
