"""Gift Card Ledger Reconciliation Worker

Periodically replays every stored gift card ledger and compares it with
the working balances. Can be run as a standalone script or integrated with
a scheduler.
"""

import logging
import threading
from typing import Optional

from config import ApplicationConfig
from giftledger.adapter.services import SystemClock
from giftledger.app.services.clock import Clock
from giftledger.app.use_cases.gift_cards import ReconcileGiftCards, ReconciliationResultDTO
from giftledger.depends import Container

logger = logging.getLogger(__name__)


class LedgerReconcilerWorker:
    """
    Background worker for gift card ledger reconciliation

    Features:
    - Compares stored ledgers against working balances
    - Logs discrepancies and halted cards for investigation
    - Can run once or continuously
    - Configurable interval (default: daily)

    Usage:
        # Run once
        worker = LedgerReconcilerWorker()
        result = worker.run_once()

        # Run continuously
        worker = LedgerReconcilerWorker()
        worker.run_forever(interval_seconds=86400)  # Daily
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        container: Optional[Container] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            container: Pre-built stores and registries (built from db_uri if omitted)
            clock: Time source (defaults to the system clock)
        """
        self.container = container or Container(db_uri=db_uri)
        self.clock = clock or SystemClock()
        self._stop = threading.Event()

        logger.info("LedgerReconcilerWorker initialized")

    def run_once(self) -> ReconciliationResultDTO:
        """
        Run reconciliation once

        Returns:
            ReconciliationResultDTO with reconciliation results

        Raises:
            RuntimeError: If the reconciliation itself could not run
        """
        if not self.container.settings.reconciliation_enabled:
            logger.info("Ledger reconciliation is disabled, skipping")
            return ReconciliationResultDTO(
                total_ledgers_checked=0,
                discrepancies_found=0,
                discrepancies=[],
                reconciliation_time=self.clock.now(),
                execution_time_ms=0,
            )

        use_case = ReconcileGiftCards(
            registry=self.container.gift_cards,
            store=self.container.gift_card_store,
            clock=self.clock,
        )

        result = use_case.execute()

        if result.is_err():
            logger.error(f"Reconciliation failed: {result.error.message}")
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        response = result.value

        # Log discrepancies with severity
        if response.discrepancies_found > 0:
            logger.error(
                f"ALERT: {response.discrepancies_found} gift card ledger discrepancies found!"
            )
            for d in response.discrepancies:
                logger.error(
                    f"  - Gift card {d.gift_card_id}: "
                    f"expected={d.calculated_balance}, actual={d.cached_balance}, "
                    f"diff={d.discrepancy}, reason={d.reason}"
                )
        if response.halted_gift_card_ids:
            logger.critical(f"Halted gift cards: {', '.join(response.halted_gift_card_ids)}")

        return response

    def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Run reconciliation continuously at specified interval

        Args:
            interval_seconds: Seconds between runs (defaults to the configured interval)
        """
        interval_seconds = interval_seconds or self.container.settings.reconciliation_interval_seconds
        logger.info(
            f"Starting continuous ledger reconciliation with {interval_seconds}s interval"
        )

        while not self._stop.is_set():
            try:
                result = self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Checked {result.total_ledgers_checked} ledgers, "
                    f"found {result.discrepancies_found} discrepancies "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            self._stop.wait(interval_seconds)

    def stop(self):
        """Ask run_forever to return after the current cycle"""
        self._stop.set()

    def shutdown(self):
        """Cleanup resources"""
        self.stop()
        self.container.shutdown()
        logger.info("LedgerReconcilerWorker shutdown complete")


def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m giftledger.worker.ledger_reconciler --once

        # Run continuously (default: configured interval)
        python -m giftledger.worker.ledger_reconciler

        # Run continuously with custom interval (in seconds)
        python -m giftledger.worker.ledger_reconciler --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Gift Card Ledger Reconciliation Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=None,
        help="Interval between runs in seconds (default: RECONCILIATION_INTERVAL_SECONDS)"
    )
    parser.add_argument(
        "--db-uri", default=None, help="Database URI (default: DB_URI from env.yaml)"
    )
    args = parser.parse_args()

    worker = LedgerReconcilerWorker(db_uri=args.db_uri)

    try:
        if args.once:
            result = worker.run_once()
            print(f"Reconciliation complete:")
            print(f"  Total ledgers checked: {result.total_ledgers_checked}")
            print(f"  Discrepancies found: {result.discrepancies_found}")
            print(f"  Execution time: {result.execution_time_ms}ms")
            if result.discrepancies:
                print("\nDiscrepancies:")
                for d in result.discrepancies:
                    print(
                        f"  - Gift card {d.gift_card_id}: "
                        f"expected={d.calculated_balance}, "
                        f"actual={d.cached_balance}, "
                        f"reason={d.reason}"
                    )
        else:
            worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        worker.shutdown()


if __name__ == "__main__":
    main()
