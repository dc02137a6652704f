"""RedeemLoyaltyReward Use Case"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.repositories.loyalty_store import LoyaltyStore
from giftledger.app.services.clock import Clock
from giftledger.app.services.lock_registry import LockRegistry
from giftledger.domain.errors import ErrorCode, make_error
from .dtos import LoyaltyAccountResponseDTO, RedeemLoyaltyRewardCommandDTO
from .mappers import account_lock_key, to_account_dto

logger = logging.getLogger(__name__)


class RedeemLoyaltyReward:
    """
    Use Case: Spend points on a reward

    Business Rules:
    1. Reward must belong to the program (REWARD_NOT_FOUND)
    2. Reward must be active (REWARD_INACTIVE)
    3. Client must hold enough available points (INSUFFICIENT_POINTS);
       a client without an account has none
    4. Tier is unaffected; it follows total points, not available points
    """

    def __init__(self, store: LoyaltyStore, clock: Clock, locks: LockRegistry):
        self.store = store
        self.clock = clock
        self.locks = locks

    def execute(self, command: RedeemLoyaltyRewardCommandDTO) -> Result[LoyaltyAccountResponseDTO]:
        try:
            program = self.store.load_program(command.program_id)
            if program.is_err():
                return Return.err(program.error)

            reward = program.value.find_reward(command.reward_id)
            if reward is None:
                return Return.err(
                    make_error(ErrorCode.REWARD_NOT_FOUND, f"Reward {command.reward_id} not found")
                )

            with self.locks.locked(account_lock_key(command.program_id, command.client_id)):
                loaded = self.store.load_account(command.program_id, command.client_id)
                if loaded.is_err():
                    return Return.err(loaded.error)
                if loaded.value is None:
                    return Return.err(
                        make_error(
                            ErrorCode.INSUFFICIENT_POINTS,
                            f"Insufficient points. Required: {reward.points_cost}, Available: 0",
                            reason=f"available=0, required={reward.points_cost}",
                        )
                    )

                redeemed = loaded.value.redeem_reward(reward, self.clock.now())
                if redeemed.is_err():
                    return Return.err(redeemed.error)
                saved = self.store.save_account(redeemed.value)
                if saved.is_err():
                    return Return.err(saved.error)

            logger.info(f"Client {command.client_id} redeemed reward {reward.name} for {reward.points_cost} points")
            return Return.ok(to_account_dto(redeemed.value))

        except Exception as e:
            logger.error(f"Loyalty reward redemption failed: {e}")
            return Return.err(
                Error(
                    code="REDEEM_LOYALTY_REWARD_FAILED",
                    message="Failed to redeem loyalty reward",
                    reason=str(e),
                )
            )
