"""Integration tests for SqlModelGiftCardStore

Tests cover:
- Ledgers written through the registry survive a restart
- Saves that would rewrite stored history are rejected
- Duplicate codes are caught against stored cards
"""

from decimal import Decimal

import pytest

from giftledger.app.use_cases.gift_cards import (
    CancelGiftCard,
    CancelGiftCardCommandDTO,
    GetGiftCardBalance,
    GiftCardReferenceDTO,
    ListGiftCardTransactions,
    ListTransactionsCommandDTO,
    PurchaseGiftCard,
    PurchaseGiftCardCommandDTO,
    RedeemGiftCard,
    RedeemGiftCardCommandDTO,
    RefundGiftCard,
    RefundGiftCardCommandDTO,
)
from giftledger.domain.errors import ErrorCode


@pytest.fixture
def card(container, clock, id_generator):
    """100.00 card, 30.00 redeemed, 10.00 of that refunded"""
    purchased = PurchaseGiftCard(container.gift_cards, clock, id_generator, container.settings).execute(
        PurchaseGiftCardCommandDTO(amount=Decimal("100.00"), code="SQL-CARD-0001", purchaser_id="client_42")
    )
    assert purchased.is_ok(), purchased.error
    redeemed = RedeemGiftCard(container.gift_cards, clock, id_generator).execute(
        RedeemGiftCardCommandDTO(code="SQL-CARD-0001", amount=Decimal("30.00"), appointment_id="appt_1")
    )
    assert redeemed.is_ok(), redeemed.error
    refunded = RefundGiftCard(container.gift_cards, clock, id_generator).execute(
        RefundGiftCardCommandDTO(
            code="SQL-CARD-0001",
            amount=Decimal("10.00"),
            related_transaction_id=redeemed.value.transaction_id,
        )
    )
    assert refunded.is_ok(), refunded.error
    return purchased.value


class TestGiftCardPersistence:
    def test_ledger_survives_restart(self, card, restarted, clock):
        """
        Given: A card with purchase, redemption and refund entries
        When: A fresh container loads it from the database
        Then: The balance and the full ledger are restored
        """
        # Arrange
        fresh = restarted()

        # Act
        balance = GetGiftCardBalance(fresh.gift_cards, clock).execute(GiftCardReferenceDTO(code="sql-card-0001"))
        history = ListGiftCardTransactions(fresh.gift_cards, clock).execute(
            ListTransactionsCommandDTO(gift_card_id=card.gift_card_id)
        )

        # Assert
        assert balance.value.balance == Decimal("80.00")
        assert balance.value.status == "active"
        assert history.value.total == 3
        assert [entry.transaction_type for entry in history.value.transactions] == [
            "purchase",
            "redemption",
            "refund",
        ]
        assert [entry.sequence for entry in history.value.transactions] == [1, 2, 3]
        assert history.value.transactions[1].appointment_id == "appt_1"
        assert history.value.transactions[2].balance_after == Decimal("80.00")

    def test_operations_continue_after_restart(self, card, restarted, clock, id_generator):
        # Arrange
        fresh = restarted()

        # Act
        result = RedeemGiftCard(fresh.gift_cards, clock, id_generator).execute(
            RedeemGiftCardCommandDTO(code="SQL-CARD-0001", amount=Decimal("80.00"))
        )

        # Assert
        assert result.value.sequence == 4
        assert result.value.balance_after == Decimal("0.00")
        assert result.value.status == "redeemed"
        stored = fresh.gift_card_store.load(card.gift_card_id).value
        assert len(stored.transactions) == 4

    def test_cancellation_is_stored(self, card, container, restarted, clock, id_generator):
        # Arrange
        CancelGiftCard(container.gift_cards, clock, id_generator).execute(
            CancelGiftCardCommandDTO(gift_card_id=card.gift_card_id, notes="Fraud report")
        )

        # Act
        balance = GetGiftCardBalance(restarted().gift_cards, clock).execute(
            GiftCardReferenceDTO(gift_card_id=card.gift_card_id)
        )

        # Assert
        assert balance.value.status == "cancelled"
        assert balance.value.balance == Decimal("0.00")

    def test_duplicate_code_across_restart(self, card, restarted, clock, id_generator):
        fresh = restarted()

        result = PurchaseGiftCard(fresh.gift_cards, clock, id_generator, fresh.settings).execute(
            PurchaseGiftCardCommandDTO(amount=Decimal("25.00"), code="sql-card-0001")
        )

        assert result.error.code == ErrorCode.DUPLICATE_CODE


class TestConflictingHistory:
    def test_truncated_snapshot_is_rejected(self, card, container):
        """
        Given: Three stored ledger entries
        When: A snapshot holding only the purchase entry is saved
        Then: PERSISTENCE_FAILED and the stored ledger is unchanged
        """
        # Arrange
        stored = container.gift_card_store.load(card.gift_card_id).value
        truncated = stored.model_copy(update={"transactions": stored.transactions[:1]})

        # Act
        result = container.gift_card_store.save(truncated)

        # Assert
        assert result.error.code == ErrorCode.PERSISTENCE_FAILED
        assert "conflicts with the snapshot" in result.error.message
        assert len(container.gift_card_store.load(card.gift_card_id).value.transactions) == 3

    def test_rewritten_entry_is_rejected(self, card, container):
        # Arrange
        stored = container.gift_card_store.load(card.gift_card_id).value
        forged = stored.transactions[-1].model_copy(update={"id": "forged-entry"})
        rewritten = stored.model_copy(update={"transactions": stored.transactions[:-1] + [forged]})

        # Act
        result = container.gift_card_store.save(rewritten)

        # Assert
        assert result.error.code == ErrorCode.PERSISTENCE_FAILED

    def test_missing_card(self, container):
        result = container.gift_card_store.load("missing")

        assert result.error.code == ErrorCode.GIFT_CARD_NOT_FOUND
