"""Conversions between promotion entities and response DTOs"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from giftledger.app.services.promotion_registry import PromotionRegistry
from giftledger.domain.money import Money
from giftledger.domain.promotion import Eligibility, Promotion
from giftledger.domain.promotion_usage import PromotionUsage
from .dtos import (
    EligibilityResponseDTO,
    PromotionReferenceDTO,
    PromotionResponseDTO,
    PromotionUsageResponseDTO,
)


def resolve_promotion_id(registry: PromotionRegistry, reference: PromotionReferenceDTO) -> Result[str]:
    if reference.promotion_id is not None:
        return Return.ok(reference.promotion_id)
    return registry.find_id_by_code(reference.code)


def optional_money(value: Optional[Decimal], currency: str) -> Result[Optional[Money]]:
    if value is None:
        return Return.ok(None)
    return Money.parse(value, currency)


def _decimal(value: Optional[Money]) -> Optional[Decimal]:
    return value.to_decimal() if value is not None else None


def to_promotion_dto(promotion: Promotion, total_usage: int, now: datetime) -> PromotionResponseDTO:
    return PromotionResponseDTO(
        promotion_id=promotion.id,
        name=promotion.name,
        code=promotion.code,
        promotion_type=promotion.promotion_type.value,
        discount_type=promotion.discount_type.value,
        discount_value=promotion.discount_value,
        currency=promotion.currency,
        minimum_purchase=_decimal(promotion.minimum_purchase),
        maximum_discount=_decimal(promotion.maximum_discount),
        start_date=promotion.start_date,
        end_date=promotion.end_date,
        usage_limit_total=promotion.usage_limit_total,
        usage_limit_per_client=promotion.usage_limit_per_client,
        total_usage=total_usage,
        remaining_uses=promotion.remaining_uses(total_usage),
        is_active=promotion.is_active,
        is_currently_active=promotion.is_currently_active(now, total_usage),
        auto_apply=promotion.auto_apply,
        requires_code=promotion.requires_code,
        days_until_expiration=promotion.days_until_expiration(now),
    )


def to_eligibility_dto(promotion: Promotion, eligibility: Eligibility) -> EligibilityResponseDTO:
    return EligibilityResponseDTO(
        promotion_id=promotion.id,
        code=promotion.code,
        name=promotion.name,
        currency=eligibility.original_amount.currency,
        original_amount=eligibility.original_amount.to_decimal(),
        discount_amount=_decimal(eligibility.discount),
        final_amount=_decimal(eligibility.final_amount),
        requires_price_lookup=eligibility.quote.requires_price_lookup,
    )


def to_usage_dto(usage: PromotionUsage) -> PromotionUsageResponseDTO:
    return PromotionUsageResponseDTO(
        usage_id=usage.id,
        promotion_id=usage.promotion_id,
        promotion_name=usage.promotion_name,
        client_id=usage.client_id,
        currency=usage.original_amount.currency,
        original_amount=usage.original_amount.to_decimal(),
        discount_amount=usage.discount_amount.to_decimal(),
        final_amount=usage.final_amount.to_decimal(),
        discount_percentage=usage.discount_percentage,
        appointment_id=usage.appointment_id,
        transaction_id=usage.transaction_id,
        created_at=usage.created_at,
    )
