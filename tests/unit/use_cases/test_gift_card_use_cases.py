"""Unit tests for gift card use cases

Tests cover:
- Purchase: expiry, scheduled activation, code uniqueness
- Redemption until empty and the REDEEMED transition
- All-or-nothing rollback when the store rejects a write
- Concurrent redemptions never overdraw a card
- Refund, reload, cancel, lookups and statistics
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from libs.result import Return
from giftledger.app.use_cases.gift_cards import (
    CancelGiftCard,
    CancelGiftCardCommandDTO,
    FindGiftCards,
    FindGiftCardsQueryDTO,
    GetGiftCardBalance,
    GetGiftCardStatistics,
    GiftCardReferenceDTO,
    GiftCardStatusCommandDTO,
    ListGiftCardTransactions,
    ListTransactionsCommandDTO,
    PurchaseGiftCard,
    PurchaseGiftCardCommandDTO,
    RedeemGiftCard,
    RedeemGiftCardCommandDTO,
    RefundGiftCard,
    RefundGiftCardCommandDTO,
    ReloadGiftCard,
    ReloadGiftCardCommandDTO,
    SuspendGiftCard,
    ValidateGiftCardRedemption,
    ValidateRedemptionCommandDTO,
)
from giftledger.domain.errors import ErrorCode, make_error


@pytest.fixture
def purchase_use_case(gift_card_registry, clock, id_generator, settings):
    return PurchaseGiftCard(registry=gift_card_registry, clock=clock, id_generator=id_generator, settings=settings)


@pytest.fixture
def redeem_use_case(gift_card_registry, clock, id_generator):
    return RedeemGiftCard(registry=gift_card_registry, clock=clock, id_generator=id_generator)


@pytest.fixture
def balance_use_case(gift_card_registry, clock):
    return GetGiftCardBalance(registry=gift_card_registry, clock=clock)


@pytest.fixture
def sold_card(purchase_use_case):
    """An active, non-reloadable 100.00 USD card with code GIFT-0001-TEST"""
    result = purchase_use_case.execute(
        PurchaseGiftCardCommandDTO(amount=Decimal("100.00"), purchaser_id="client_42", code="gift-0001-test")
    )
    assert result.is_ok()
    return result.value


def redeem(use_case, amount: str, code: str = "GIFT-0001-TEST"):
    return use_case.execute(RedeemGiftCardCommandDTO(code=code, amount=Decimal(amount)))


class TestPurchaseGiftCard:
    def test_purchase_activates_immediately_and_sets_expiry(self, sold_card):
        """
        Given: No delivery date
        When: A 100.00 card is purchased
        Then: The card is active with expiry one year out
        """
        # Assert
        assert sold_card.gift_card_id == "id-1"
        assert sold_card.code == "GIFT-0001-TEST"
        assert sold_card.status == "active"
        assert sold_card.balance == Decimal("100.00")
        assert sold_card.expiration_date == datetime(2025, 3, 1, 10, 0, 0)

    def test_future_delivery_schedules_activation(self, purchase_use_case, clock):
        # Arrange
        delivery = clock.now() + timedelta(days=5)

        # Act
        result = purchase_use_case.execute(
            PurchaseGiftCardCommandDTO(amount=Decimal("50.00"), delivery_date=delivery)
        )

        # Assert
        assert result.value.status == "pending"
        assert result.value.activation_date == delivery

    @pytest.mark.parametrize(
        "delivery, status, activation",
        [
            (datetime(2024, 3, 1, 7, 0, tzinfo=timezone(timedelta(hours=-5))), "pending", datetime(2024, 3, 1, 12, 0)),
            (datetime(2024, 3, 1, 4, 0, tzinfo=timezone(timedelta(hours=-5))), "active", datetime(2024, 3, 1, 10, 0)),
        ],
    )
    def test_delivery_date_with_offset(self, purchase_use_case, delivery, status, activation):
        """
        Given: A delivery date with a UTC offset, two hours after or one hour before now
        When: The card is purchased
        Then: It is compared in UTC, so activation is scheduled or immediate
        """
        # Act
        result = purchase_use_case.execute(
            PurchaseGiftCardCommandDTO(amount=Decimal("50.00"), delivery_date=delivery)
        )

        # Assert
        assert result.is_ok(), result.error
        assert result.value.status == status
        assert result.value.activation_date == activation

    def test_duplicate_custom_code_is_rejected(self, purchase_use_case, sold_card):
        result = purchase_use_case.execute(
            PurchaseGiftCardCommandDTO(amount=Decimal("10.00"), code="GIFT-0001-test")
        )

        assert result.is_err()
        assert result.error.code == ErrorCode.DUPLICATE_CODE

    def test_colliding_generated_code_is_regenerated(self, gift_card_registry, clock, id_generator, settings):
        # Arrange
        code_generator = MagicMock()
        code_generator.generate.side_effect = ["AAAA-BBBB-CCCC", "AAAA-BBBB-CCCC", "DDDD-EEEE-FFFF"]
        use_case = PurchaseGiftCard(gift_card_registry, clock, id_generator, settings, code_generator=code_generator)

        # Act
        first = use_case.execute(PurchaseGiftCardCommandDTO(amount=Decimal("10.00")))
        second = use_case.execute(PurchaseGiftCardCommandDTO(amount=Decimal("10.00")))

        # Assert
        assert first.value.code == "AAAA-BBBB-CCCC"
        assert second.value.code == "DDDD-EEEE-FFFF"
        assert code_generator.generate.call_count == 3

    def test_amount_with_excess_precision_is_invalid(self, purchase_use_case):
        result = purchase_use_case.execute(PurchaseGiftCardCommandDTO(amount=Decimal("10.001")))

        assert result.error.code == ErrorCode.INVALID_AMOUNT


class TestRedeemGiftCard:
    def test_redeem_to_zero_then_reject(self, redeem_use_case, sold_card):
        """
        Given: An active 100.00 card
        When: 30.00, 70.00 and 0.01 are redeemed by code
        Then: 70.00 active, 0.00 redeemed, then INSTRUMENT_INACTIVE
        """
        # Act
        first = redeem(redeem_use_case, "30.00")
        second = redeem(redeem_use_case, "70.00")
        third = redeem(redeem_use_case, "0.01")

        # Assert
        assert first.value.balance_before == Decimal("100.00")
        assert first.value.balance_after == Decimal("70.00")
        assert first.value.status == "active"
        assert second.value.balance_after == Decimal("0.00")
        assert second.value.status == "redeemed"
        assert third.error.code == ErrorCode.INSTRUMENT_INACTIVE

    def test_unknown_code(self, redeem_use_case):
        result = redeem(redeem_use_case, "1.00", code="NOPE-NOPE-NOPE")

        assert result.error.code == ErrorCode.GIFT_CARD_NOT_FOUND

    def test_insufficient_funds(self, redeem_use_case, sold_card):
        result = redeem(redeem_use_case, "100.01")

        assert result.error.code == ErrorCode.INSUFFICIENT_FUNDS

    def test_expired_card_is_rejected_lazily(self, redeem_use_case, balance_use_case, clock, sold_card):
        # Arrange
        clock.advance(days=400)

        # Act
        result = redeem(redeem_use_case, "1.00")
        balance = balance_use_case.execute(GiftCardReferenceDTO(code="GIFT-0001-TEST"))

        # Assert
        assert result.error.code == ErrorCode.INSTRUMENT_EXPIRED
        assert balance.value.status == "expired"
        assert balance.value.is_active is False

    @pytest.mark.parametrize(
        "failure",
        [
            {"return_value": Return.err(make_error(ErrorCode.PERSISTENCE_FAILED, "disk full"))},
            {"side_effect": RuntimeError("connection lost")},
        ],
    )
    def test_failed_save_rolls_back(self, redeem_use_case, balance_use_case, gift_card_store, sold_card, failure):
        """
        Given: An active 100.00 card
        When: The store rejects (or raises on) the redemption's save
        Then: PERSISTENCE_FAILED, and balance and history are unchanged
        """
        # Act
        with patch.object(gift_card_store, "save", **failure):
            result = redeem(redeem_use_case, "40.00")

        # Assert
        assert result.error.code == ErrorCode.PERSISTENCE_FAILED
        balance = balance_use_case.execute(GiftCardReferenceDTO(code="GIFT-0001-TEST"))
        assert balance.value.balance == Decimal("100.00")
        assert len(gift_card_store.load(sold_card.gift_card_id).value.transactions) == 1

        # The card keeps working once the store recovers
        assert redeem(redeem_use_case, "40.00").value.balance_after == Decimal("60.00")

    def test_concurrent_redemptions_never_overdraw(self, redeem_use_case, balance_use_case, sold_card):
        """
        Given: A 100.00 card
        When: 20 threads each redeem 10.00 at once
        Then: Exactly 10 succeed and the balance ends at 0.00
        """
        # Arrange
        barrier = threading.Barrier(20)
        outcomes = []
        outcomes_lock = threading.Lock()

        def worker():
            barrier.wait()
            result = redeem(redeem_use_case, "10.00")
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(20)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Assert
        succeeded = [result for result in outcomes if result.is_ok()]
        failed = [result for result in outcomes if result.is_err()]
        assert len(succeeded) == 10
        assert {result.error.code for result in failed} <= {
            ErrorCode.INSUFFICIENT_FUNDS,
            ErrorCode.INSTRUMENT_INACTIVE,
        }
        assert sorted(result.value.balance_after for result in succeeded) == [
            Decimal(n * 10) for n in range(10)
        ]
        balance = balance_use_case.execute(GiftCardReferenceDTO(code="GIFT-0001-TEST"))
        assert balance.value.balance == Decimal("0.00")
        assert balance.value.status == "redeemed"


class TestRefundReloadCancel:
    def test_refund_against_redemption(self, gift_card_registry, clock, id_generator, redeem_use_case, sold_card):
        # Arrange
        redemption = redeem(redeem_use_case, "30.00").value
        use_case = RefundGiftCard(gift_card_registry, clock, id_generator)

        # Act
        refunded = use_case.execute(
            RefundGiftCardCommandDTO(
                gift_card_id=sold_card.gift_card_id,
                amount=Decimal("20.00"),
                related_transaction_id=redemption.transaction_id,
            )
        )
        too_much = use_case.execute(
            RefundGiftCardCommandDTO(
                gift_card_id=sold_card.gift_card_id,
                amount=Decimal("10.01"),
                related_transaction_id=redemption.transaction_id,
            )
        )

        # Assert
        assert refunded.value.transaction_type == "refund"
        assert refunded.value.balance_after == Decimal("90.00")
        assert refunded.value.related_transaction_id == redemption.transaction_id
        assert too_much.error.code == ErrorCode.REFUND_EXCEEDS_REDEMPTION

    def test_reload_non_reloadable_card(self, gift_card_registry, clock, id_generator, sold_card):
        use_case = ReloadGiftCard(gift_card_registry, clock, id_generator)

        result = use_case.execute(ReloadGiftCardCommandDTO(code="GIFT-0001-TEST", amount=Decimal("5.00")))

        assert result.error.code == ErrorCode.NOT_RELOADABLE

    def test_reload_redeemed_card(self, purchase_use_case, redeem_use_case, gift_card_registry, clock, id_generator):
        # Arrange
        purchase_use_case.execute(
            PurchaseGiftCardCommandDTO(amount=Decimal("25.00"), code="RELO-AD00-0001", is_reloadable=True)
        )
        redeem(redeem_use_case, "25.00", code="RELO-AD00-0001")
        use_case = ReloadGiftCard(gift_card_registry, clock, id_generator)

        # Act
        result = use_case.execute(ReloadGiftCardCommandDTO(code="RELO-AD00-0001", amount=Decimal("40.00")))

        # Assert
        assert result.value.balance_after == Decimal("40.00")
        assert result.value.status == "active"

    def test_cancel_forfeits_balance(self, gift_card_registry, clock, id_generator, redeem_use_case, sold_card):
        # Arrange
        use_case = CancelGiftCard(gift_card_registry, clock, id_generator)

        # Act
        result = use_case.execute(CancelGiftCardCommandDTO(code="GIFT-0001-TEST", notes="Reported stolen"))

        # Assert
        assert result.value.status == "cancelled"
        assert result.value.transaction.transaction_type == "cancellation"
        assert result.value.transaction.amount == Decimal("100.00")
        assert result.value.transaction.balance_after == Decimal("0.00")
        assert redeem(redeem_use_case, "1.00").error.code == ErrorCode.INSTRUMENT_INACTIVE

    def test_suspended_card_fails_validation(self, gift_card_registry, clock, sold_card):
        SuspendGiftCard(gift_card_registry, clock).execute(GiftCardStatusCommandDTO(code="GIFT-0001-TEST"))

        check = ValidateGiftCardRedemption(gift_card_registry, clock).execute(
            ValidateRedemptionCommandDTO(code="GIFT-0001-TEST", amount=Decimal("5.00"))
        )

        assert check.value.is_valid is False
        assert check.value.error_code == ErrorCode.INSTRUMENT_INACTIVE


class TestGiftCardQueries:
    def test_validate_reports_max_amount(self, gift_card_registry, clock, sold_card):
        use_case = ValidateGiftCardRedemption(gift_card_registry, clock)

        result = use_case.execute(ValidateRedemptionCommandDTO(code="GIFT-0001-TEST", amount=Decimal("150.00")))

        assert result.value.is_valid is False
        assert result.value.error_code == ErrorCode.INSUFFICIENT_FUNDS
        assert result.value.max_amount == Decimal("100.00")

    def test_list_transactions_is_paginated_in_ledger_order(
        self, gift_card_registry, clock, redeem_use_case, sold_card
    ):
        # Arrange
        for amount in ("10.00", "20.00", "30.00"):
            redeem(redeem_use_case, amount)
        use_case = ListGiftCardTransactions(gift_card_registry, clock)

        # Act
        result = use_case.execute(ListTransactionsCommandDTO(code="GIFT-0001-TEST", limit=2, offset=1))

        # Assert
        page = result.value
        assert page.total == 4
        assert [entry.sequence for entry in page.transactions] == [2, 3]
        assert [entry.amount for entry in page.transactions] == [Decimal("10.00"), Decimal("20.00")]

    def test_find_by_purchaser_and_expiring(self, gift_card_registry, clock, purchase_use_case, sold_card):
        # Arrange
        purchase_use_case.execute(PurchaseGiftCardCommandDTO(amount=Decimal("20.00"), purchaser_id="client_7"))
        use_case = FindGiftCards(gift_card_registry, clock)

        # Act
        by_purchaser = use_case.execute(FindGiftCardsQueryDTO(purchaser_id="client_42"))
        clock.advance(days=350)
        expiring = use_case.execute(FindGiftCardsQueryDTO(expiring_within_days=30))

        # Assert
        assert [card.code for card in by_purchaser.value] == ["GIFT-0001-TEST"]
        assert len(expiring.value) == 2

    def test_statistics(self, gift_card_registry, clock, settings, purchase_use_case, redeem_use_case, sold_card):
        # Arrange
        purchase_use_case.execute(PurchaseGiftCardCommandDTO(amount=Decimal("50.00")))
        clock.advance(days=2)
        redeem(redeem_use_case, "30.00")

        # Act
        result = GetGiftCardStatistics(gift_card_registry, clock, settings).execute()

        # Assert
        stats = result.value
        assert stats.total_sold == 2
        assert stats.total_revenue == Decimal("150.00")
        assert stats.total_redeemed == Decimal("30.00")
        assert stats.redemption_rate == Decimal("20.00")
        assert stats.average_value == Decimal("75.00")
        assert stats.active_cards == 2
        assert stats.expired_cards == 0
        assert stats.average_days_to_redemption == Decimal("2.00")
