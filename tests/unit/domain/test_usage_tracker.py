"""Unit tests for the UsageTracker"""

import threading
from datetime import datetime

from giftledger.domain.errors import ErrorCode
from giftledger.domain.money import Money
from giftledger.domain.promotion_usage import PromotionUsage
from giftledger.domain.usage_tracker import UsageTracker


class TestUsageTracker:
    def test_limits_are_enforced_in_order(self):
        """
        Given: total limit 2, per-client limit 1
        When: Clients A, A, B, C try to consume in sequence
        Then: A ok, A per-client limit, B ok, C total limit
        """
        # Arrange
        tracker = UsageTracker("promo-1")

        # Act
        results = [tracker.try_consume(client, 2, 1) for client in ("A", "A", "B", "C")]

        # Assert
        assert results[0].is_ok()
        assert results[1].error.code == ErrorCode.CLIENT_USAGE_LIMIT_REACHED
        assert results[2].value.total_count == 2
        assert results[3].error.code == ErrorCode.USAGE_LIMIT_REACHED
        assert tracker.total_count == 2
        assert tracker.per_client_counts == {"A": 1, "B": 1}

    def test_release_undoes_one_use(self):
        tracker = UsageTracker("promo-1", {"A": 2})

        tracker.release("A")

        assert tracker.count_for("A") == 1
        assert tracker.total_count == 1

    def test_release_without_admission_is_ignored(self):
        tracker = UsageTracker("promo-1")

        tracker.release("ghost")

        assert tracker.total_count == 0

    def test_from_usages_counts_per_client(self):
        usages = [
            PromotionUsage(
                id=f"u{i}",
                promotion_id="promo-1",
                client_id=client,
                discount_amount=Money.of("1.00"),
                original_amount=Money.of("10.00"),
                final_amount=Money.of("9.00"),
                created_at=datetime(2024, 3, 1),
            )
            for i, client in enumerate(["A", "B", "A"])
        ]

        tracker = UsageTracker.from_usages("promo-1", usages)

        assert tracker.per_client_counts == {"A": 2, "B": 1}
        assert tracker.total_count == 3

    def test_concurrent_consumers_never_exceed_total_limit(self):
        # Arrange
        tracker = UsageTracker("promo-1")
        admitted = []
        barrier = threading.Barrier(25)

        def consume(client_id):
            barrier.wait()
            if tracker.try_consume(client_id, 10, 1).is_ok():
                admitted.append(client_id)

        threads = [threading.Thread(target=consume, args=(f"client-{i}",)) for i in range(25)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Assert
        assert len(admitted) == 10
        assert tracker.total_count == 10
        assert sum(tracker.per_client_counts.values()) == 10
