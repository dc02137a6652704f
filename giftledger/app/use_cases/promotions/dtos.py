"""Data Transfer Objects for Promotion Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator
from giftledger.domain.promotion import DiscountType, PromotionAudience, PromotionType


class PromotionReferenceDTO(BaseModel):
    """Identifies a promotion by id or by code (exactly one)"""

    promotion_id: Optional[str] = Field(default=None, description="Promotion identifier")
    code: Optional[str] = Field(default=None, description="Promo code (case-insensitive)")

    @model_validator(mode="after")
    def _check_reference(self):
        if (self.promotion_id is None) == (self.code is None):
            raise ValueError("Provide exactly one of promotion_id or code")
        return self


class CreatePromotionCommandDTO(BaseModel):
    """
    Command DTO for creating a promotion

    Money fields are Decimal major units in the promotion's currency.
    """

    name: str = Field(..., min_length=1, description="Display name")
    description: str = Field(default="", description="Marketing description")
    code: str = Field(..., min_length=1, description="Promo code")
    promotion_type: PromotionType = Field(default=PromotionType.LIMITED_TIME, description="Category")
    discount_type: DiscountType = Field(..., description="How the discount is computed")
    discount_value: Decimal = Field(default=Decimal("0"), ge=0, description="Percent or fixed amount")
    currency: Optional[str] = Field(default=None, description="ISO-4217 currency (defaults to configured)")
    minimum_purchase: Optional[Decimal] = Field(default=None, ge=0, description="Minimum purchase")
    maximum_discount: Optional[Decimal] = Field(default=None, ge=0, description="Discount cap")
    start_date: datetime = Field(..., description="Window start (inclusive)")
    end_date: datetime = Field(..., description="Window end (inclusive)")
    usage_limit_total: Optional[int] = Field(default=None, ge=0, description="Total uses (None = unlimited)")
    usage_limit_per_client: int = Field(default=1, ge=0, description="Uses per client")
    applicable_service_ids: list[str] = Field(default_factory=list, description="Qualifying services")
    is_active: bool = Field(default=True, description="Manual on/off switch")
    requires_code: bool = Field(default=True, description="Client must enter the code")
    auto_apply: bool = Field(default=False, description="Apply automatically at checkout")
    audience: PromotionAudience = Field(default=PromotionAudience.ALL_CLIENTS, description="Target audience")
    terms: str = Field(default="", description="Terms and conditions")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Spring Special",
                "code": "SPRING20",
                "discount_type": "percentage",
                "discount_value": "20",
                "maximum_discount": "15.00",
                "start_date": "2024-03-01T00:00:00",
                "end_date": "2024-05-31T23:59:59",
                "usage_limit_total": 100,
                "usage_limit_per_client": 1,
            }
        }


class UpdatePromotionCommandDTO(BaseModel):
    """
    Command DTO for changing a promotion definition

    Only the fields that are set are changed. Usage counters are kept.
    """

    promotion_id: str = Field(..., description="Promotion identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    description: Optional[str] = Field(default=None, description="Marketing description")
    is_active: Optional[bool] = Field(default=None, description="Manual on/off switch")
    start_date: Optional[datetime] = Field(default=None, description="Window start")
    end_date: Optional[datetime] = Field(default=None, description="Window end")
    usage_limit_total: Optional[int] = Field(default=None, ge=0, description="Total uses")
    usage_limit_per_client: Optional[int] = Field(default=None, ge=0, description="Uses per client")
    auto_apply: Optional[bool] = Field(default=None, description="Apply automatically")
    terms: Optional[str] = Field(default=None, description="Terms and conditions")


class PromotionResponseDTO(BaseModel):
    promotion_id: str = Field(..., description="Promotion identifier")
    name: str = Field(..., description="Display name")
    code: str = Field(..., description="Promo code")
    promotion_type: str = Field(..., description="Category")
    discount_type: str = Field(..., description="Discount computation")
    discount_value: Decimal = Field(..., description="Percent or fixed amount")
    currency: str = Field(..., description="ISO-4217 currency")
    minimum_purchase: Optional[Decimal] = Field(default=None, description="Minimum purchase")
    maximum_discount: Optional[Decimal] = Field(default=None, description="Discount cap")
    start_date: datetime = Field(..., description="Window start")
    end_date: datetime = Field(..., description="Window end")
    usage_limit_total: Optional[int] = Field(default=None, description="Total uses allowed")
    usage_limit_per_client: int = Field(..., description="Uses per client")
    total_usage: int = Field(..., description="Uses so far")
    remaining_uses: Optional[int] = Field(default=None, description="Uses left (None = unlimited)")
    is_active: bool = Field(..., description="Manual on/off switch")
    is_currently_active: bool = Field(..., description="Enabled, in window and under the limit")
    auto_apply: bool = Field(..., description="Applied automatically")
    requires_code: bool = Field(..., description="Client must enter the code")
    days_until_expiration: int = Field(..., description="Whole days until end_date")


class EvaluatePromotionCommandDTO(PromotionReferenceDTO):
    """
    Command DTO for checking a promotion against a proposed purchase

    item_price is the price of the free item for BOGO and free-service
    promotions.
    """

    client_id: str = Field(..., description="Client making the purchase")
    amount: Decimal = Field(..., ge=0, description="Purchase amount before discount")
    currency: Optional[str] = Field(default=None, description="Currency (defaults to the promotion's)")
    service_ids: list[str] = Field(default_factory=list, description="Services in the purchase")
    item_price: Optional[Decimal] = Field(default=None, ge=0, description="Price of the free item")


class ApplyPromotionCommandDTO(EvaluatePromotionCommandDTO):
    appointment_id: Optional[str] = Field(default=None, description="Related appointment")
    transaction_id: Optional[str] = Field(default=None, description="Related payment transaction")

    class Config:
        json_schema_extra = {
            "example": {
                "code": "SPRING20",
                "client_id": "client_42",
                "amount": "100.00",
                "service_ids": ["swedish_60"],
                "appointment_id": "appt_77",
            }
        }


class EligibilityResponseDTO(BaseModel):
    """Successful evaluation with the computed discount"""

    promotion_id: str = Field(..., description="Promotion identifier")
    code: str = Field(..., description="Promo code")
    name: str = Field(..., description="Promotion name")
    currency: str = Field(..., description="ISO-4217 currency")
    original_amount: Decimal = Field(..., description="Purchase amount before discount")
    discount_amount: Optional[Decimal] = Field(default=None, description="Discount (None = needs price lookup)")
    final_amount: Optional[Decimal] = Field(default=None, description="Amount after discount")
    requires_price_lookup: bool = Field(default=False, description="Caller must supply item_price")


class PromotionUsageResponseDTO(BaseModel):
    usage_id: str = Field(..., description="Usage record identifier")
    promotion_id: str = Field(..., description="Promotion identifier")
    promotion_name: str = Field(..., description="Promotion name")
    client_id: str = Field(..., description="Client")
    currency: str = Field(..., description="ISO-4217 currency")
    original_amount: Decimal = Field(..., description="Amount before discount")
    discount_amount: Decimal = Field(..., description="Discount granted")
    final_amount: Decimal = Field(..., description="Amount after discount")
    discount_percentage: Decimal = Field(..., description="Discount as percent of the original")
    appointment_id: Optional[str] = Field(default=None, description="Related appointment")
    transaction_id: Optional[str] = Field(default=None, description="Related payment transaction")
    created_at: datetime = Field(..., description="When the discount was applied")


class FindAutoApplyCommandDTO(BaseModel):
    client_id: str = Field(..., description="Client making the purchase")
    amount: Decimal = Field(..., ge=0, description="Purchase amount before discount")
    currency: Optional[str] = Field(default=None, description="Currency (defaults to configured)")
    service_ids: list[str] = Field(default_factory=list, description="Services in the purchase")
    item_price: Optional[Decimal] = Field(default=None, ge=0, description="Price of the free item")


class FindPromotionsQueryDTO(BaseModel):
    """All given criteria must match"""

    code: Optional[str] = Field(default=None, description="Exact code (case-insensitive)")
    active_only: bool = Field(default=False, description="Only currently active promotions")
    auto_apply_only: bool = Field(default=False, description="Only auto-apply promotions")
    expiring_within_days: Optional[int] = Field(default=None, ge=0, description="Ending within N days")
    promotion_type: Optional[PromotionType] = Field(default=None, description="Category")
    search: Optional[str] = Field(default=None, description="Text matched against name, code and description")


class PromotionStatisticsDTO(BaseModel):
    total_promotions: int = Field(..., description="Promotions defined")
    active_promotions: int = Field(..., description="Currently active promotions")
    total_usages: int = Field(..., description="Usage records")
    total_discount_given: Decimal = Field(..., description="Sum of discounts")
    total_revenue: Decimal = Field(..., description="Sum of final amounts")
    average_discount_percentage: Decimal = Field(..., description="Mean discount percent per usage")
    roi: Decimal = Field(..., description="(revenue - discounts) / discounts x 100")
    currency: str = Field(..., description="Currency of the figures")


class PromotionMetric(str, Enum):
    USAGES = "usages"
    REVENUE = "revenue"
    DISCOUNT = "discount"


class TopPromotionsQueryDTO(BaseModel):
    metric: PromotionMetric = Field(default=PromotionMetric.USAGES, description="Ranking metric")
    limit: int = Field(default=5, ge=1, le=100, description="Promotions to return")


class PromotionPerformanceDTO(BaseModel):
    promotion_id: str = Field(..., description="Promotion identifier")
    promotion_name: str = Field(..., description="Promotion name")
    total_usages: int = Field(..., description="Usage records")
    total_revenue: Decimal = Field(..., description="Sum of final amounts")
    total_discount: Decimal = Field(..., description="Sum of discounts")
    average_discount_percentage: Decimal = Field(..., description="Mean discount percent")
    currency: str = Field(..., description="ISO-4217 currency")
