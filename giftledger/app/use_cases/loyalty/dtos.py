"""Data Transfer Objects for Loyalty Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from giftledger.domain.loyalty import RewardType


class LoyaltyTierDTO(BaseModel):
    name: str = Field(..., min_length=1, description="Tier name")
    points_required: int = Field(..., ge=0, description="Total points needed")
    benefits: list[str] = Field(default_factory=list, description="Benefit descriptions")
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Standing discount")


class LoyaltyRewardDTO(BaseModel):
    name: str = Field(..., min_length=1, description="Reward name")
    description: str = Field(default="", description="Reward description")
    points_cost: int = Field(..., gt=0, description="Points spent to redeem")
    reward_type: RewardType = Field(..., description="Kind of reward")
    value: Decimal = Field(default=Decimal("0"), ge=0, description="Monetary value")
    is_active: bool = Field(default=True, description="Redeemable")


class CreateLoyaltyProgramCommandDTO(BaseModel):
    """
    Command DTO for defining a loyalty program

    Reward values are in the configured default currency.
    """

    name: str = Field(..., min_length=1, description="Program name")
    description: str = Field(default="", description="Program description")
    points_per_dollar: Decimal = Field(default=Decimal("1"), ge=0, description="Points per major unit spent")
    points_expire_days: Optional[int] = Field(default=None, ge=1, description="Point lifetime in days")
    tiers: list[LoyaltyTierDTO] = Field(default_factory=list, description="Membership tiers")
    rewards: list[LoyaltyRewardDTO] = Field(default_factory=list, description="Redeemable rewards")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Spa Circle",
                "points_per_dollar": "1",
                "tiers": [
                    {"name": "Silver", "points_required": 500},
                    {"name": "Gold", "points_required": 1500, "discount_percentage": "10"},
                ],
                "rewards": [
                    {"name": "$10 off", "points_cost": 200, "reward_type": "discount", "value": "10.00"},
                ],
            }
        }


class AwardLoyaltyPointsCommandDTO(BaseModel):
    program_id: str = Field(..., description="Loyalty program")
    client_id: str = Field(..., description="Client who made the purchase")
    amount: Decimal = Field(..., ge=0, description="Purchase amount in major units")
    currency: Optional[str] = Field(default=None, description="Currency (defaults to configured)")


class RedeemLoyaltyRewardCommandDTO(BaseModel):
    program_id: str = Field(..., description="Loyalty program")
    client_id: str = Field(..., description="Client redeeming")
    reward_id: str = Field(..., description="Reward to redeem")


class LoyaltyProgramResponseDTO(BaseModel):
    program_id: str = Field(..., description="Program identifier")
    name: str = Field(..., description="Program name")
    is_active: bool = Field(..., description="Points are being awarded")
    points_per_dollar: Decimal = Field(..., description="Points per major unit spent")
    tier_names: list[str] = Field(..., description="Tiers, lowest first")
    reward_ids: list[str] = Field(..., description="Reward identifiers")


class LoyaltyAccountResponseDTO(BaseModel):
    account_id: str = Field(..., description="Account identifier")
    program_id: str = Field(..., description="Program identifier")
    client_id: str = Field(..., description="Client")
    total_points: int = Field(..., description="Points counted towards tiers")
    available_points: int = Field(..., description="Points available to spend")
    lifetime_points: int = Field(..., description="All points ever earned")
    current_tier: Optional[str] = Field(default=None, description="Current tier name")
    points_to_next_tier: int = Field(..., description="Points needed for the next tier")
    points_awarded: int = Field(default=0, description="Points credited by this operation")
    join_date: datetime = Field(..., description="When the client joined")
    last_activity_date: Optional[datetime] = Field(default=None, description="Last earn or redeem")
