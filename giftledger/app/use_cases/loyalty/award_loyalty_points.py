"""AwardLoyaltyPoints Use Case

Credits points for a purchase, creating the client's account on first
purchase.
"""

import logging
from libs.result import Result, Return, Error
from giftledger.app.repositories.loyalty_store import LoyaltyStore
from giftledger.app.services.clock import Clock
from giftledger.app.services.id_generator import IdGenerator
from giftledger.app.services.lock_registry import LockRegistry
from giftledger.app.services.settings import LedgerSettings
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.loyalty import ClientLoyaltyAccount
from giftledger.domain.money import Money
from .dtos import AwardLoyaltyPointsCommandDTO, LoyaltyAccountResponseDTO
from .mappers import account_lock_key, to_account_dto

logger = logging.getLogger(__name__)


class AwardLoyaltyPoints:
    """
    Use Case: Award points for a purchase

    Business Rules:
    1. Program must be active (PROGRAM_INACTIVE)
    2. points = floor(amount x points_per_dollar)
    3. Tier and points-to-next-tier are recalculated from total points
    4. Award and save for one (program, client) run under that account's lock

    Flow:
    1. Load program
    2. Parse amount and compute points
    3. Under the account lock: load or create the account, credit, save
    """

    def __init__(
        self,
        store: LoyaltyStore,
        clock: Clock,
        id_generator: IdGenerator,
        settings: LedgerSettings,
        locks: LockRegistry,
    ):
        self.store = store
        self.clock = clock
        self.id_generator = id_generator
        self.settings = settings
        self.locks = locks

    def execute(self, command: AwardLoyaltyPointsCommandDTO) -> Result[LoyaltyAccountResponseDTO]:
        try:
            # Step 1: Load program
            program = self.store.load_program(command.program_id)
            if program.is_err():
                return Return.err(program.error)
            if not program.value.is_active:
                return Return.err(
                    make_error(ErrorCode.PROGRAM_INACTIVE, f"Loyalty program {program.value.name} is not active")
                )

            # Step 2: Compute points
            amount = Money.parse(command.amount, command.currency or self.settings.default_currency)
            if amount.is_err():
                return Return.err(amount.error)
            points = program.value.points_earned(amount.value)

            # Step 3: Credit the account
            now = self.clock.now()
            with self.locks.locked(account_lock_key(command.program_id, command.client_id)):
                loaded = self.store.load_account(command.program_id, command.client_id)
                if loaded.is_err():
                    return Return.err(loaded.error)
                account = loaded.value or ClientLoyaltyAccount(
                    id=self.id_generator.new_id(),
                    client_id=command.client_id,
                    program_id=command.program_id,
                    points_to_next_tier=program.value.points_to_next_tier(0),
                    join_date=now,
                )
                updated = account.add_points(points, program.value, now)
                saved = self.store.save_account(updated)
                if saved.is_err():
                    return Return.err(saved.error)

            logger.info(
                f"Awarded {points} points to {command.client_id} in program {command.program_id}; "
                f"available {updated.available_points}"
            )
            return Return.ok(to_account_dto(updated, points_awarded=points))

        except Exception as e:
            logger.error(f"Loyalty award failed: {e}")
            return Return.err(
                Error(
                    code="AWARD_LOYALTY_POINTS_FAILED",
                    message="Failed to award loyalty points",
                    reason=str(e),
                )
            )
