"""Unit tests for loyalty programs and client accounts"""

from datetime import datetime
from decimal import Decimal

from giftledger.domain.errors import ErrorCode
from giftledger.domain.loyalty import (
    ClientLoyaltyAccount,
    LoyaltyProgram,
    LoyaltyReward,
    LoyaltyTier,
    RewardType,
)
from giftledger.domain.money import Money

NOW = datetime(2024, 3, 1, 10, 0, 0)


def build_program() -> LoyaltyProgram:
    return LoyaltyProgram(
        id="program-1",
        name="Glow Rewards",
        points_per_dollar=Decimal("1"),
        tiers=[
            LoyaltyTier(id="gold", name="Gold", points_required=500),
            LoyaltyTier(id="silver", name="Silver", points_required=100),
            LoyaltyTier(id="bronze", name="Bronze", points_required=0),
        ],
        rewards=[
            LoyaltyReward(
                id="reward-1",
                name="Free Blowout",
                points_cost=120,
                reward_type=RewardType.FREE_SERVICE,
                value=Money.of("35.00"),
            ),
        ],
    )


def new_account() -> ClientLoyaltyAccount:
    return ClientLoyaltyAccount(id="acct-1", client_id="client-1", program_id="program-1", join_date=NOW)


class TestLoyaltyProgram:
    def test_points_are_floored(self):
        program = build_program()

        assert program.points_earned(Money.of("150.75")) == 150

    def test_tier_is_highest_reached(self):
        program = build_program()

        assert program.tier_for(0).name == "Bronze"
        assert program.tier_for(150).name == "Silver"
        assert program.tier_for(500).name == "Gold"
        assert program.points_to_next_tier(150) == 350
        assert program.points_to_next_tier(900) == 0


class TestClientLoyaltyAccount:
    def test_add_points_updates_tier_and_leaves_original_untouched(self):
        # Arrange
        program = build_program()
        account = new_account()

        # Act
        updated = account.add_points(150, program, NOW)

        # Assert
        assert updated.total_points == 150
        assert updated.available_points == 150
        assert updated.lifetime_points == 150
        assert updated.current_tier.name == "Silver"
        assert updated.points_to_next_tier == 350
        assert account.total_points == 0

    def test_redeem_reward_spends_available_points_only(self):
        program = build_program()
        account = new_account().add_points(150, program, NOW)

        result = account.redeem_reward(program.find_reward("reward-1"), NOW)

        assert result.value.available_points == 30
        assert result.value.total_points == 150

    def test_redeem_with_insufficient_points(self):
        program = build_program()
        account = new_account().add_points(100, program, NOW)

        result = account.redeem_reward(program.find_reward("reward-1"), NOW)

        assert result.error.code == ErrorCode.INSUFFICIENT_POINTS

    def test_inactive_reward_cannot_be_redeemed(self):
        program = build_program()
        reward = program.find_reward("reward-1").model_copy(update={"is_active": False})
        account = new_account().add_points(500, program, NOW)

        assert account.redeem_reward(reward, NOW).error.code == ErrorCode.REWARD_INACTIVE
