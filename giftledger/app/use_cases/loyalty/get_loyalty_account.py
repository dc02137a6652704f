"""GetLoyaltyAccount Use Case"""

from libs.result import Result, Return
from giftledger.app.repositories.loyalty_store import LoyaltyStore
from giftledger.domain.errors import ErrorCode, make_error
from .dtos import LoyaltyAccountResponseDTO
from .mappers import to_account_dto


class GetLoyaltyAccount:
    def __init__(self, store: LoyaltyStore):
        self.store = store

    def execute(self, program_id: str, client_id: str) -> Result[LoyaltyAccountResponseDTO]:
        loaded = self.store.load_account(program_id, client_id)
        if loaded.is_err():
            return Return.err(loaded.error)
        if loaded.value is None:
            return Return.err(
                make_error(
                    ErrorCode.LOYALTY_ACCOUNT_NOT_FOUND,
                    f"Client {client_id} has no account in program {program_id}",
                )
            )
        return Return.ok(to_account_dto(loaded.value))
