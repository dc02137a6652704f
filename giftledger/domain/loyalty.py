"""Loyalty Program Domain Entities

Points earned on purchases, tiers unlocked by accumulated points, and
rewards redeemed against available points.
"""

from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from libs.result import Result, Return
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.money import Money


class RewardType(str, Enum):
    DISCOUNT = "discount"
    FREE_SERVICE = "free_service"
    UPGRADE = "upgrade"
    GIFT_CARD = "gift_card"


class LoyaltyTier(BaseModel):
    id: str = Field(..., description="Tier identifier")
    name: str = Field(..., description="Tier name (e.g., Silver)")
    points_required: int = Field(..., ge=0, description="Total points needed to reach the tier")
    benefits: list[str] = Field(default_factory=list, description="Benefit descriptions")
    discount_percentage: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Standing discount for members of the tier"
    )


class LoyaltyReward(BaseModel):
    id: str = Field(..., description="Reward identifier")
    name: str = Field(..., description="Reward name")
    description: str = Field(default="", description="Reward description")
    points_cost: int = Field(..., gt=0, description="Points spent to redeem")
    reward_type: RewardType = Field(..., description="Kind of reward")
    value: Money = Field(..., description="Monetary value of the reward")
    is_active: bool = Field(default=True, description="Whether the reward can be redeemed")


class LoyaltyProgram(BaseModel):
    """
    Loyalty Program - Points earning rules with tiers and rewards

    Domain Rules:
    - points earned = floor(purchase amount in major units x points_per_dollar)
    - A client's tier is the highest tier whose points_required <= total points
    """

    id: str = Field(..., description="Program identifier")
    name: str = Field(..., description="Program name")
    description: str = Field(default="", description="Program description")
    is_active: bool = Field(default=True, description="Whether points are being awarded")
    points_per_dollar: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Points earned per major currency unit spent"
    )
    points_expire_days: Optional[int] = Field(
        default=None,
        ge=1,
        description="Days until earned points expire (None = never)"
    )
    tiers: list[LoyaltyTier] = Field(default_factory=list, description="Membership tiers")
    rewards: list[LoyaltyReward] = Field(default_factory=list, description="Redeemable rewards")

    def sorted_tiers(self) -> list[LoyaltyTier]:
        return sorted(self.tiers, key=lambda tier: tier.points_required)

    def tier_for(self, points: int) -> Optional[LoyaltyTier]:
        qualifying = [tier for tier in self.sorted_tiers() if points >= tier.points_required]
        return qualifying[-1] if qualifying else None

    def points_to_next_tier(self, points: int) -> int:
        """Points still needed for the next tier (0 at the highest tier)"""
        for tier in self.sorted_tiers():
            if tier.points_required > points:
                return tier.points_required - points
        return 0

    def points_earned(self, amount: Money) -> int:
        earned = amount.to_decimal() * self.points_per_dollar
        return max(0, int(earned.to_integral_value(rounding=ROUND_FLOOR)))

    def find_reward(self, reward_id: str) -> Optional[LoyaltyReward]:
        return next((reward for reward in self.rewards if reward.id == reward_id), None)


class ClientLoyaltyAccount(BaseModel):
    """
    Client Loyalty Account - A client's points balance in one program

    Domain Rules:
    - total_points and lifetime_points only grow
    - available_points = total earned - points spent on rewards, never negative
    - Updates return a new account; the original is left untouched
    """

    id: str = Field(..., description="Account identifier")
    client_id: str = Field(..., description="Client the account belongs to")
    program_id: str = Field(..., description="Program the account belongs to")
    total_points: int = Field(default=0, ge=0, description="Points counted towards tiers")
    available_points: int = Field(default=0, ge=0, description="Points available to spend")
    lifetime_points: int = Field(default=0, ge=0, description="All points ever earned")
    current_tier: Optional[LoyaltyTier] = Field(default=None, description="Current tier")
    points_to_next_tier: int = Field(default=0, ge=0, description="Points needed for the next tier")
    join_date: datetime = Field(..., description="When the client joined the program")
    last_activity_date: Optional[datetime] = Field(default=None, description="Last earn or redeem")

    def add_points(self, points: int, program: LoyaltyProgram, now: datetime) -> "ClientLoyaltyAccount":
        """Credit points and recalculate the tier"""
        total = self.total_points + points
        return self.model_copy(
            update={
                "total_points": total,
                "available_points": self.available_points + points,
                "lifetime_points": self.lifetime_points + points,
                "current_tier": program.tier_for(total),
                "points_to_next_tier": program.points_to_next_tier(total),
                "last_activity_date": now,
            }
        )

    def redeem_reward(self, reward: LoyaltyReward, now: datetime) -> Result["ClientLoyaltyAccount"]:
        """
        Spend points on a reward

        Returns:
            Result[ClientLoyaltyAccount]: Updated account, or REWARD_INACTIVE /
            INSUFFICIENT_POINTS
        """
        if not reward.is_active:
            return Return.err(
                make_error(
                    ErrorCode.REWARD_INACTIVE,
                    f"Reward {reward.name} is not available",
                )
            )
        if self.available_points < reward.points_cost:
            return Return.err(
                make_error(
                    ErrorCode.INSUFFICIENT_POINTS,
                    f"Insufficient points. Required: {reward.points_cost}, Available: {self.available_points}",
                    reason=f"available={self.available_points}, required={reward.points_cost}",
                )
            )
        return Return.ok(
            self.model_copy(
                update={
                    "available_points": self.available_points - reward.points_cost,
                    "last_activity_date": now,
                }
            )
        )
