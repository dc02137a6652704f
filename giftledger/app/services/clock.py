"""Clock Interface

Every timestamp in the ledger comes from an injected clock so that expiry,
activation and promotion windows can be tested deterministically.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Source of the current time (naive UTC)"""

    @abstractmethod
    def now(self) -> datetime:
        """
        Current time

        Returns:
            Naive datetime in UTC
        """
        pass
