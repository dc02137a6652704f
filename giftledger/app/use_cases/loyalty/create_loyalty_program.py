"""CreateLoyaltyProgram Use Case"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.repositories.loyalty_store import LoyaltyStore
from giftledger.app.services.id_generator import IdGenerator
from giftledger.app.services.settings import LedgerSettings
from giftledger.domain.loyalty import LoyaltyProgram, LoyaltyReward, LoyaltyTier
from giftledger.domain.money import Money
from .dtos import CreateLoyaltyProgramCommandDTO, LoyaltyProgramResponseDTO
from .mappers import to_program_dto

logger = logging.getLogger(__name__)


class CreateLoyaltyProgram:
    def __init__(self, store: LoyaltyStore, id_generator: IdGenerator, settings: LedgerSettings):
        self.store = store
        self.id_generator = id_generator
        self.settings = settings

    def execute(self, command: CreateLoyaltyProgramCommandDTO) -> Result[LoyaltyProgramResponseDTO]:
        try:
            rewards = []
            for reward in command.rewards:
                value = Money.parse(reward.value, self.settings.default_currency)
                if value.is_err():
                    return Return.err(value.error)
                rewards.append(
                    LoyaltyReward(
                        id=self.id_generator.new_id(),
                        value=value.value,
                        **reward.model_dump(exclude={"value"}),
                    )
                )

            program = LoyaltyProgram(
                id=self.id_generator.new_id(),
                name=command.name,
                description=command.description,
                points_per_dollar=command.points_per_dollar,
                points_expire_days=command.points_expire_days,
                tiers=[LoyaltyTier(id=self.id_generator.new_id(), **tier.model_dump()) for tier in command.tiers],
                rewards=rewards,
            )

            saved = self.store.save_program(program)
            if saved.is_err():
                return Return.err(saved.error)

            logger.info(f"Created loyalty program {program.name} ({len(program.tiers)} tiers, {len(rewards)} rewards)")
            return Return.ok(to_program_dto(program))

        except Exception as e:
            logger.error(f"Loyalty program creation failed: {e}")
            return Return.err(
                Error(
                    code="CREATE_LOYALTY_PROGRAM_FAILED",
                    message="Failed to create loyalty program",
                    reason=str(e),
                )
            )
