"""Usage Tracker

Per-promotion usage counters with an atomic check-and-increment.
"""

import logging
import threading
from typing import Iterable, Optional
from pydantic import BaseModel
from libs.result import Result, Return
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.promotion_usage import PromotionUsage

logger = logging.getLogger(__name__)


class Admission(BaseModel):
    """A consumed use, with the counters as they stand after it"""

    rule_id: str
    client_id: str
    client_count: int
    total_count: int


class UsageTracker:
    """
    Usage counters for one promotion

    Domain Rules:
    - total_count == sum(per_client_counts)
    - try_consume() checks both limits and increments both counters as one
      step; a rejected call changes nothing
    - release() undoes exactly one admitted use
    """

    def __init__(self, rule_id: str, per_client_counts: Optional[dict[str, int]] = None):
        self.rule_id = rule_id
        self._per_client: dict[str, int] = dict(per_client_counts or {})
        self._total = sum(self._per_client.values())
        self._lock = threading.Lock()

    @classmethod
    def from_usages(cls, rule_id: str, usages: Iterable[PromotionUsage]) -> "UsageTracker":
        counts: dict[str, int] = {}
        for usage in usages:
            counts[usage.client_id] = counts.get(usage.client_id, 0) + 1
        return cls(rule_id, counts)

    @property
    def total_count(self) -> int:
        return self._total

    @property
    def per_client_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._per_client)

    def count_for(self, client_id: str) -> int:
        return self._per_client.get(client_id, 0)

    def try_consume(
        self,
        client_id: str,
        total_limit: Optional[int],
        per_client_limit: int,
    ) -> Result[Admission]:
        """
        Admit one use if both limits allow it

        Args:
            client_id: Client consuming the use
            total_limit: Total uses allowed (None = unlimited)
            per_client_limit: Uses allowed per client

        Returns:
            Result[Admission]: Counters after the increment, or
            USAGE_LIMIT_REACHED / CLIENT_USAGE_LIMIT_REACHED
        """
        with self._lock:
            if total_limit is not None and self._total >= total_limit:
                return Return.err(
                    make_error(
                        ErrorCode.USAGE_LIMIT_REACHED,
                        "Promotion has reached its usage limit",
                        reason=f"rule_id={self.rule_id}, total_count={self._total}, limit={total_limit}",
                    )
                )

            client_count = self._per_client.get(client_id, 0)
            if client_count >= per_client_limit:
                return Return.err(
                    make_error(
                        ErrorCode.CLIENT_USAGE_LIMIT_REACHED,
                        "Client has reached the usage limit for this promotion",
                        reason=f"rule_id={self.rule_id}, client_count={client_count}, limit={per_client_limit}",
                    )
                )

            self._per_client[client_id] = client_count + 1
            self._total += 1
            return Return.ok(
                Admission(
                    rule_id=self.rule_id,
                    client_id=client_id,
                    client_count=client_count + 1,
                    total_count=self._total,
                )
            )

    def release(self, client_id: str) -> None:
        """Undo one admitted use for client_id"""
        with self._lock:
            client_count = self._per_client.get(client_id, 0)
            if client_count == 0:
                logger.warning(f"Release without admission on rule {self.rule_id} for client {client_id}")
                return
            if client_count == 1:
                del self._per_client[client_id]
            else:
                self._per_client[client_id] = client_count - 1
            self._total -= 1
