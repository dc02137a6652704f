"""Loyalty Store Interface

Defines the contract for loyalty programs and client loyalty accounts.
"""

from abc import ABC, abstractmethod
from typing import Optional
from libs.result import Result
from giftledger.domain.loyalty import ClientLoyaltyAccount, LoyaltyProgram


class LoyaltyStore(ABC):
    """Repository interface for loyalty programs and accounts"""

    @abstractmethod
    def save_program(self, program: LoyaltyProgram) -> Result[None]:
        pass

    @abstractmethod
    def load_program(self, program_id: str) -> Result[LoyaltyProgram]:
        """
        Load a loyalty program

        Returns:
            Result[LoyaltyProgram]: Program, LOYALTY_PROGRAM_NOT_FOUND or
            PERSISTENCE_FAILED
        """
        pass

    @abstractmethod
    def save_account(self, account: ClientLoyaltyAccount) -> Result[None]:
        pass

    @abstractmethod
    def load_account(self, program_id: str, client_id: str) -> Result[Optional[ClientLoyaltyAccount]]:
        """
        Load a client's account in a program

        Returns:
            Result[Optional[ClientLoyaltyAccount]]: Account, None when the
            client has not joined yet, or PERSISTENCE_FAILED
        """
        pass
