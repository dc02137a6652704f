"""Promotion Usage Domain Entity

Immutable audit record of one applied discount.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from giftledger.domain.money import Money


class PromotionUsage(BaseModel):
    """
    Promotion Usage - Record of a discount applied to a purchase

    Domain Rules:
    - Frozen once constructed
    - final_amount == original_amount - discount_amount
    - One record per admitted use; the usage tracker counts are derived from
      these records when a promotion is loaded
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "5a0a8c1e-2b0c-4c55-9a0e-7b1c7c2f9d31",
                "promotion_id": "promo_spring",
                "promotion_name": "Spring Special",
                "client_id": "client_42",
                "discount_amount": {"amount": 1500, "currency": "USD"},
                "original_amount": {"amount": 10000, "currency": "USD"},
                "final_amount": {"amount": 8500, "currency": "USD"},
                "created_at": "2024-04-02T15:30:00Z",
                "appointment_id": "appt_77",
                "transaction_id": None,
            }
        },
    )

    id: str = Field(..., description="Unique usage identifier")
    promotion_id: str = Field(..., description="Promotion that was applied")
    promotion_name: str = Field(default="", description="Promotion name at the time of use")
    client_id: str = Field(..., description="Client the discount was granted to")
    discount_amount: Money = Field(..., description="Discount granted")
    original_amount: Money = Field(..., description="Purchase amount before discount")
    final_amount: Money = Field(..., description="Purchase amount after discount")
    created_at: datetime = Field(..., description="When the discount was applied")
    appointment_id: Optional[str] = Field(default=None, description="Related appointment")
    transaction_id: Optional[str] = Field(default=None, description="Related payment transaction")

    @property
    def discount_percentage(self) -> Decimal:
        """Discount as a percent of the original amount (0 when the original is 0)"""
        if self.original_amount.is_zero():
            return Decimal("0")
        percentage = Decimal(self.discount_amount.amount) * 100 / Decimal(self.original_amount.amount)
        return percentage.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
