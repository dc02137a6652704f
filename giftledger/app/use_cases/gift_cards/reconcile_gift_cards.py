"""ReconcileGiftCards Use Case

Replays every stored gift card ledger and compares it with the balance held
in the working set, to detect corrupted histories and lost writes.
"""

import logging
import time
from libs.result import Result, Return, Error
from giftledger.app.repositories.gift_card_store import GiftCardStore
from giftledger.app.services.clock import Clock
from giftledger.app.services.gift_card_registry import GiftCardRegistry
from giftledger.domain.errors import ErrorCode
from giftledger.domain.gift_card import GiftCard
from .dtos import LedgerDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileGiftCards:
    """
    Use Case: Reconcile gift card ledgers

    Business Rules:
    1. Checks every gift card in the store
    2. The stored ledger must replay cleanly (sequence, continuity, floor)
    3. The working-set ledger must replay to its cached balance; a card
       failing this is halted by the registry
    4. Stored and working-set balances must agree
    5. Does NOT write to the store

    Flow:
    1. List stored gift cards
    2. For each card:
       a. Replay the stored ledger
       b. Verify the working-set ledger
       c. Compare the two balances, record any discrepancy
    3. Return reconciliation result
    """

    def __init__(self, registry: GiftCardRegistry, store: GiftCardStore, clock: Clock):
        self.registry = registry
        self.store = store
        self.clock = clock

    def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute gift card reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = self.clock.now()

        try:
            logger.info("Starting gift card ledger reconciliation")

            # Step 1: List stored cards
            listed = self.store.list_ids()
            if listed.is_err():
                return Return.err(listed.error)
            card_ids = listed.value
            logger.info(f"Found {len(card_ids)} gift card ledgers to reconcile")

            # Step 2: Check each card
            discrepancies: list[LedgerDiscrepancyDTO] = []
            for card_id in card_ids:
                discrepancy = self._check(card_id)
                if discrepancy is not None:
                    discrepancies.append(discrepancy)
                    logger.warning(
                        f"Discrepancy found for gift card {card_id}: "
                        f"cached_balance={discrepancy.cached_balance}, "
                        f"calculated_balance={discrepancy.calculated_balance}, "
                        f"reason={discrepancy.reason}"
                    )

            # Step 3: Build response
            execution_time_ms = int((time.time() - start_time) * 1000)
            response = ReconciliationResultDTO(
                total_ledgers_checked=len(card_ids),
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                halted_gift_card_ids=self.registry.halted_ids(),
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {len(card_ids)} gift cards in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {len(card_ids)} gift cards balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Gift card reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile gift card ledgers",
                    reason=str(e),
                )
            )

    def _check(self, card_id: str):
        # Stored history
        loaded = self.store.load(card_id)
        if loaded.is_err():
            return LedgerDiscrepancyDTO(gift_card_id=card_id, reason=str(loaded.error))
        stored = GiftCard.from_snapshot(loaded.value)
        calculated = stored.value.balance.to_decimal() if stored.is_ok() else None

        # Working-set history
        verified = self.registry.verify(card_id)
        cached = verified.value.to_decimal() if verified.is_ok() else None

        if stored.is_err():
            return LedgerDiscrepancyDTO(
                gift_card_id=card_id,
                cached_balance=cached,
                reason=f"Stored ledger does not replay: {stored.error.reason or stored.error.message}",
            )
        if verified.is_err():
            reason = (
                "Gift card is halted"
                if verified.error.code == ErrorCode.LEDGER_VIOLATION
                else str(verified.error)
            )
            return LedgerDiscrepancyDTO(
                gift_card_id=card_id,
                calculated_balance=calculated,
                reason=f"{reason}: {verified.error.reason or verified.error.message}",
            )
        if cached != calculated:
            return LedgerDiscrepancyDTO(
                gift_card_id=card_id,
                cached_balance=cached,
                calculated_balance=calculated,
                discrepancy=cached - calculated,
                reason="Stored balance differs from working balance",
            )
        return None
