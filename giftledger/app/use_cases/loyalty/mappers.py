"""Conversions between loyalty entities and response DTOs"""

from giftledger.domain.loyalty import ClientLoyaltyAccount, LoyaltyProgram
from .dtos import LoyaltyAccountResponseDTO, LoyaltyProgramResponseDTO


def account_lock_key(program_id: str, client_id: str) -> str:
    return f"loyalty:{program_id}:{client_id}"


def to_program_dto(program: LoyaltyProgram) -> LoyaltyProgramResponseDTO:
    return LoyaltyProgramResponseDTO(
        program_id=program.id,
        name=program.name,
        is_active=program.is_active,
        points_per_dollar=program.points_per_dollar,
        tier_names=[tier.name for tier in program.sorted_tiers()],
        reward_ids=[reward.id for reward in program.rewards],
    )


def to_account_dto(account: ClientLoyaltyAccount, points_awarded: int = 0) -> LoyaltyAccountResponseDTO:
    return LoyaltyAccountResponseDTO(
        account_id=account.id,
        program_id=account.program_id,
        client_id=account.client_id,
        total_points=account.total_points,
        available_points=account.available_points,
        lifetime_points=account.lifetime_points,
        current_tier=account.current_tier.name if account.current_tier else None,
        points_to_next_tier=account.points_to_next_tier,
        points_awarded=points_awarded,
        join_date=account.join_date,
        last_activity_date=account.last_activity_date,
    )
