"""Promotion Registry

In-memory working set of promotions, their usage trackers and usage records,
in front of a PromotionStore. Consuming a promotion runs under the
promotion's lock:

    evaluate -> try_consume -> append usage -> (release on failure)
"""

import logging
import threading
from typing import Callable, Optional, TypeVar
from libs.result import Result, Return
from giftledger.app.repositories.promotion_store import PromotionStore
from giftledger.app.services.lock_registry import LockRegistry
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.promotion import Eligibility, Promotion, ProposedPurchase
from giftledger.domain.promotion_usage import PromotionUsage
from giftledger.domain.usage_tracker import UsageTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PromotionRegistry:
    """
    Working set of promotions keyed by id, with a code index

    Domain Rules:
    - Promotion codes are unique (case-insensitive)
    - A usage is counted only once its record is durable; a failed append
      releases the admitted use
    """

    def __init__(self, store: PromotionStore, locks: Optional[LockRegistry] = None):
        self._store = store
        self._locks = locks or LockRegistry()
        self._promotions: dict[str, Promotion] = {}
        self._trackers: dict[str, UsageTracker] = {}
        self._usages: dict[str, list[PromotionUsage]] = {}
        self._codes: dict[str, str] = {}
        self._index_lock = threading.Lock()
        self._loaded_all = False

    # Loading

    def load_all(self) -> Result[int]:
        listed = self._call_store(self._store.list_ids)
        if listed.is_err():
            return Return.err(listed.error)
        for promotion_id in listed.value:
            with self._locks.locked(promotion_id):
                loaded = self._load(promotion_id)
            if loaded.is_err():
                return Return.err(loaded.error)
        self._loaded_all = True
        return Return.ok(len(self._promotions))

    def _ensure_loaded(self) -> Result[int]:
        if self._loaded_all:
            return Return.ok(len(self._promotions))
        return self.load_all()

    def _load(self, promotion_id: str) -> Result[Promotion]:
        """Load one promotion and its usages (caller holds the promotion's lock)"""
        cached = self._promotions.get(promotion_id)
        if cached is not None:
            return Return.ok(cached)

        loaded = self._call_store(lambda: self._store.load_promotion(promotion_id))
        if loaded.is_err():
            return Return.err(loaded.error)
        usages = self._call_store(lambda: self._store.list_usages(promotion_id))
        if usages.is_err():
            return Return.err(usages.error)

        promotion = loaded.value
        self._promotions[promotion_id] = promotion
        self._usages[promotion_id] = list(usages.value)
        self._trackers[promotion_id] = UsageTracker.from_usages(promotion_id, usages.value)
        with self._index_lock:
            self._codes[promotion.code] = promotion_id
        return Return.ok(promotion)

    # Registration

    def add(self, promotion: Promotion) -> Result[Promotion]:
        """
        Register and persist a new promotion

        Returns:
            Result[Promotion]: The promotion, DUPLICATE_CODE or PERSISTENCE_FAILED
        """
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)

        with self._index_lock:
            if promotion.code in self._codes or promotion.id in self._promotions:
                return Return.err(
                    make_error(
                        ErrorCode.DUPLICATE_CODE,
                        f"Promotion code {promotion.code} is already in use",
                        reason=f"promotion_id={promotion.id}",
                    )
                )
            self._codes[promotion.code] = promotion.id

        with self._locks.locked(promotion.id):
            saved = self._call_store(lambda: self._store.save_promotion(promotion))
            if saved.is_err():
                with self._index_lock:
                    self._codes.pop(promotion.code, None)
                return Return.err(saved.error)
            self._promotions[promotion.id] = promotion
            self._usages[promotion.id] = []
            self._trackers[promotion.id] = UsageTracker(promotion.id)

        logger.info(f"Registered promotion {promotion.id} ({promotion.code})")
        return Return.ok(promotion)

    def update(self, promotion_id: str, changes: dict) -> Result[Promotion]:
        """
        Replace fields of a promotion definition (e.g., is_active, end_date)

        Usage counters are untouched. The code cannot be changed.
        """
        with self._locks.locked(promotion_id):
            loaded = self._load(promotion_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            current = loaded.value

            try:
                updated = Promotion.model_validate(
                    {**current.model_dump(), **changes, "id": current.id, "code": current.code}
                )
            except ValueError as e:
                return Return.err(
                    make_error(ErrorCode.INVALID_DEFINITION, "Invalid promotion update", reason=str(e))
                )

            saved = self._call_store(lambda: self._store.save_promotion(updated))
            if saved.is_err():
                logger.warning(f"Promotion {promotion_id} update not persisted: {saved.error}")
                return Return.err(saved.error)
            self._promotions[promotion_id] = updated

        logger.info(f"Updated promotion {promotion_id}: {sorted(changes)}")
        return Return.ok(updated)

    # Evaluation and consumption

    def evaluate(self, promotion_id: str, purchase: ProposedPurchase) -> Result[Eligibility]:
        """Evaluate against the current counters without consuming a use"""
        with self._locks.locked(promotion_id):
            loaded = self._load(promotion_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            tracker = self._trackers[promotion_id]
            return loaded.value.evaluate(
                purchase, tracker.total_count, tracker.count_for(purchase.client_id)
            )

    def consume(
        self,
        promotion_id: str,
        purchase: ProposedPurchase,
        build_usage: Callable[[Promotion, Eligibility], PromotionUsage],
    ) -> Result[PromotionUsage]:
        """
        Evaluate, admit and record one use of a promotion

        Args:
            promotion_id: Promotion identifier
            purchase: Proposed purchase
            build_usage: Builds the usage record from the promotion and the
                successful evaluation

        Returns:
            Result[PromotionUsage]: The durable usage record, an evaluation
            error, REQUIRES_PRICE_LOOKUP or PERSISTENCE_FAILED
        """
        with self._locks.locked(promotion_id):
            loaded = self._load(promotion_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            promotion = loaded.value
            tracker = self._trackers[promotion_id]
            client_id = purchase.client_id

            evaluated = promotion.evaluate(purchase, tracker.total_count, tracker.count_for(client_id))
            if evaluated.is_err():
                return Return.err(evaluated.error)
            eligibility = evaluated.value
            if eligibility.quote.requires_price_lookup:
                return Return.err(
                    make_error(
                        ErrorCode.REQUIRES_PRICE_LOOKUP,
                        f"Promotion {promotion.code} needs the price of the free item",
                        reason=f"discount_type={promotion.discount_type.value}",
                    )
                )

            admitted = tracker.try_consume(
                client_id, promotion.usage_limit_total, promotion.usage_limit_per_client
            )
            if admitted.is_err():
                return Return.err(admitted.error)

            try:
                usage = build_usage(promotion, eligibility)
            except Exception:
                tracker.release(client_id)
                raise
            appended = self._call_store(lambda: self._store.append_usage(usage))
            if appended.is_err():
                tracker.release(client_id)
                logger.warning(
                    f"Released use of promotion {promotion_id} by {client_id} after persistence failure: "
                    f"{appended.error}"
                )
                return Return.err(appended.error)

            self._usages[promotion_id].append(usage)

        logger.info(
            f"Promotion {promotion.code} applied for client {client_id}: "
            f"{usage.discount_amount} off {usage.original_amount}"
        )
        return Return.ok(usage)

    # Reads

    def get(self, promotion_id: str) -> Result[Promotion]:
        with self._locks.locked(promotion_id):
            return self._load(promotion_id)

    def find_id_by_code(self, code: str) -> Result[str]:
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)
        normalized = code.strip().upper()
        with self._index_lock:
            promotion_id = self._codes.get(normalized)
        if promotion_id is None:
            return Return.err(
                make_error(ErrorCode.PROMOTION_NOT_FOUND, f"Promotion with code {normalized} not found")
            )
        return Return.ok(promotion_id)

    def usage_count(self, promotion_id: str) -> Result[int]:
        with self._locks.locked(promotion_id):
            loaded = self._load(promotion_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            return Return.ok(self._trackers[promotion_id].total_count)

    def usages(self, promotion_id: str) -> Result[list[PromotionUsage]]:
        with self._locks.locked(promotion_id):
            loaded = self._load(promotion_id)
            if loaded.is_err():
                return Return.err(loaded.error)
            return Return.ok(list(self._usages[promotion_id]))

    def all_promotions(self) -> Result[list[tuple[Promotion, int]]]:
        """Every promotion with its total usage count"""
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)
        with self._index_lock:
            promotion_ids = list(self._codes.values())

        promotions = []
        for promotion_id in promotion_ids:
            with self._locks.locked(promotion_id):
                promotion = self._promotions.get(promotion_id)
                if promotion is None:
                    continue
                promotions.append((promotion, self._trackers[promotion_id].total_count))
        return Return.ok(promotions)

    def all_usages(self) -> Result[list[PromotionUsage]]:
        ready = self._ensure_loaded()
        if ready.is_err():
            return Return.err(ready.error)
        usages = []
        for promotion_id in list(self._usages):
            with self._locks.locked(promotion_id):
                usages.extend(self._usages[promotion_id])
        return Return.ok(sorted(usages, key=lambda usage: usage.created_at))

    # Store access

    def _call_store(self, call: Callable[[], Result[T]]) -> Result[T]:
        try:
            return call()
        except Exception as e:
            logger.error(f"Promotion store raised: {e}")
            return Return.err(
                make_error(
                    ErrorCode.PERSISTENCE_FAILED,
                    "Promotion store failed",
                    reason=str(e),
                )
            )
