"""Loyalty use cases"""
from .create_loyalty_program import CreateLoyaltyProgram
from .award_loyalty_points import AwardLoyaltyPoints
from .redeem_loyalty_reward import RedeemLoyaltyReward
from .get_loyalty_account import GetLoyaltyAccount
from .dtos import (
    LoyaltyTierDTO,
    LoyaltyRewardDTO,
    CreateLoyaltyProgramCommandDTO,
    AwardLoyaltyPointsCommandDTO,
    RedeemLoyaltyRewardCommandDTO,
    LoyaltyProgramResponseDTO,
    LoyaltyAccountResponseDTO,
)

__all__ = [
    "CreateLoyaltyProgram",
    "AwardLoyaltyPoints",
    "RedeemLoyaltyReward",
    "GetLoyaltyAccount",
    "LoyaltyTierDTO",
    "LoyaltyRewardDTO",
    "CreateLoyaltyProgramCommandDTO",
    "AwardLoyaltyPointsCommandDTO",
    "RedeemLoyaltyRewardCommandDTO",
    "LoyaltyProgramResponseDTO",
    "LoyaltyAccountResponseDTO",
]
