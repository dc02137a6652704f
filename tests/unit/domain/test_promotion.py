"""Unit tests for Promotion evaluation and discount computation"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from giftledger.domain.errors import ErrorCode
from giftledger.domain.money import Money
from giftledger.domain.promotion import DiscountType, ProposedPurchase, Promotion, compute_discount

NOW = datetime(2024, 3, 1, 10, 0, 0)


def make_promotion(**overrides) -> Promotion:
    fields = dict(
        id="promo-1",
        name="Spring Special",
        code="spring20",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("20"),
        maximum_discount=Money.of("15.00"),
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=30),
        usage_limit_total=2,
        usage_limit_per_client=1,
    )
    fields.update(overrides)
    return Promotion(**fields)


def purchase(amount: str = "100.00", client_id: str = "A", now: datetime = NOW, **overrides) -> ProposedPurchase:
    return ProposedPurchase(client_id=client_id, amount=Money.of(amount), now=now, **overrides)


class TestComputeDiscount:
    def test_percentage_is_capped_by_maximum_discount(self):
        """
        Given: 20% off with a 15.00 cap
        When: The purchase is 100.00
        Then: The discount is 15.00 (not 20.00)
        """
        # Act
        quote = compute_discount(
            DiscountType.PERCENTAGE, Decimal("20"), Money.of("100.00"), maximum_discount=Money.of("15.00")
        )

        # Assert
        assert quote.discount == Money.of("15.00")
        assert quote.requires_price_lookup is False

    def test_fixed_amount_never_exceeds_purchase(self):
        quote = compute_discount(DiscountType.FIXED_AMOUNT, Decimal("25.00"), Money.of("18.00"))

        assert quote.discount == Money.of("18.00")

    def test_bogo_without_item_price_requires_lookup(self):
        quote = compute_discount(DiscountType.BOGO, Decimal("0"), Money.of("80.00"))

        assert quote.discount is None
        assert quote.requires_price_lookup is True

    def test_free_service_uses_item_price(self):
        quote = compute_discount(
            DiscountType.FREE_SERVICE, Decimal("0"), Money.of("80.00"), item_price=Money.of("35.00")
        )

        assert quote.discount == Money.of("35.00")


class TestPromotionEvaluate:
    def test_eligible_purchase_carries_discount(self):
        # Arrange
        promotion = make_promotion()

        # Act
        result = promotion.evaluate(purchase(), total_count=0, client_count=0)

        # Assert
        assert result.is_ok()
        assert result.value.discount == Money.of("15.00")
        assert result.value.final_amount == Money.of("85.00")

    @pytest.mark.parametrize(
        "overrides, total_count, client_count, expected",
        [
            ({"is_active": False}, 5, 5, ErrorCode.RULE_DISABLED),
            ({"start_date": NOW + timedelta(days=1), "end_date": NOW + timedelta(days=2)}, 5, 5, ErrorCode.OUT_OF_WINDOW),
            ({}, 2, 1, ErrorCode.USAGE_LIMIT_REACHED),
            ({}, 1, 1, ErrorCode.CLIENT_USAGE_LIMIT_REACHED),
            ({"minimum_purchase": Money.of("150.00")}, 0, 0, ErrorCode.BELOW_MINIMUM_PURCHASE),
            ({"applicable_service_ids": ["svc-massage"]}, 0, 0, ErrorCode.SERVICE_NOT_APPLICABLE),
        ],
    )
    def test_first_failing_check_wins(self, overrides, total_count, client_count, expected):
        promotion = make_promotion(**overrides)

        result = promotion.evaluate(purchase(service_ids=["svc-facial"]), total_count, client_count)

        assert result.error.code == expected

    def test_window_bounds_are_inclusive(self):
        promotion = make_promotion(start_date=NOW, end_date=NOW + timedelta(days=1))

        assert promotion.evaluate(purchase(now=NOW), 0, 0).is_ok()
        assert promotion.evaluate(purchase(now=NOW + timedelta(days=1)), 0, 0).is_ok()

    def test_other_currency_is_rejected(self):
        promotion = make_promotion()
        eur_purchase = ProposedPurchase(client_id="A", amount=Money.of("100.00", "EUR"), now=NOW)

        assert promotion.evaluate(eur_purchase, 0, 0).error.code == ErrorCode.CURRENCY_MISMATCH

    def test_unlimited_total_usage(self):
        promotion = make_promotion(usage_limit_total=None, usage_limit_per_client=10)

        assert promotion.evaluate(purchase(), total_count=1000, client_count=3).is_ok()
        assert promotion.remaining_uses(1000) is None


class TestPromotionDefinition:
    def test_code_is_normalized(self):
        assert make_promotion(code="  spring20 ").code == "SPRING20"

    def test_end_before_start_is_rejected(self):
        with pytest.raises(ValidationError):
            make_promotion(start_date=NOW, end_date=NOW - timedelta(seconds=1))

    def test_percentage_above_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            make_promotion(discount_value=Decimal("120"))

    def test_days_until_expiration(self):
        promotion = make_promotion(end_date=NOW + timedelta(days=6, hours=5))

        assert promotion.days_until_expiration(NOW) == 6
        assert not promotion.is_expired(NOW)

    @pytest.mark.parametrize(
        "currency, value",
        [
            ("USD", "5.555"),
            ("JPY", "0.5"),
        ],
    )
    def test_fixed_amount_finer_than_currency_is_rejected(self, currency, value):
        with pytest.raises(ValidationError):
            make_promotion(
                discount_type=DiscountType.FIXED_AMOUNT,
                discount_value=Decimal(value),
                currency=currency,
                maximum_discount=None,
            )

    def test_fixed_amount_in_minor_units_is_accepted(self):
        promotion = make_promotion(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("5.55"))

        assert promotion.quote(Money.of("100.00")).discount == Money.of("5.55")


class TestPromotionTimestamps:
    def test_aware_window_is_stored_as_naive_utc(self):
        """
        Given: Window bounds with UTC offsets
        When: The promotion is built
        Then: Bounds are naive UTC and compare with the clock's time
        """
        # Arrange
        eastern = timezone(timedelta(hours=-5))

        # Act
        promotion = make_promotion(
            start_date=datetime(2024, 2, 29, 19, 0, tzinfo=eastern),
            end_date=datetime(2024, 3, 31, 0, 0, tzinfo=timezone.utc),
        )

        # Assert
        assert promotion.start_date == datetime(2024, 3, 1, 0, 0)
        assert promotion.end_date == datetime(2024, 3, 31, 0, 0)
        assert promotion.is_currently_active(NOW)
        assert promotion.days_until_expiration(NOW) == 29

    def test_aware_evaluation_time(self):
        promotion = make_promotion()
        now = datetime(2024, 3, 1, 5, 0, tzinfo=timezone(timedelta(hours=-5)))

        result = promotion.evaluate(purchase(now=now), total_count=0, client_count=0)

        assert result.value.discount == Money.of("15.00")
