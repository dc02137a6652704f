"""Unit tests for promotion use cases

Tests cover:
- Usage limits across clients (total and per client)
- Released use when the usage record cannot be built or stored
- Windows given with UTC offsets
- BOGO promotions and price lookup
- Auto-apply ranking, lookups, definition updates and statistics
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from libs.result import Return
from giftledger.app.use_cases.promotions import (
    ApplyPromotion,
    ApplyPromotionCommandDTO,
    CreatePromotion,
    CreatePromotionCommandDTO,
    EvaluatePromotion,
    EvaluatePromotionCommandDTO,
    FindAutoApplyCommandDTO,
    FindAutoApplyPromotions,
    FindPromotions,
    FindPromotionsQueryDTO,
    GetPromotionStatistics,
    GetTopPromotions,
    ListPromotionUsages,
    PromotionMetric,
    TopPromotionsQueryDTO,
    UpdatePromotion,
    UpdatePromotionCommandDTO,
)
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.money import Money
from giftledger.domain.promotion import DiscountType, ProposedPurchase


@pytest.fixture
def create_use_case(promotion_registry, clock, id_generator, settings):
    return CreatePromotion(registry=promotion_registry, clock=clock, id_generator=id_generator, settings=settings)


@pytest.fixture
def apply_use_case(promotion_registry, clock, id_generator):
    return ApplyPromotion(registry=promotion_registry, clock=clock, id_generator=id_generator)


@pytest.fixture
def make_promotion(create_use_case, clock):
    """Factory creating a promotion valid from yesterday for 30 days"""

    def factory(**overrides):
        fields = dict(
            name="Spring Special",
            code="SPRING20",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            maximum_discount=Decimal("15.00"),
            start_date=clock.now() - timedelta(days=1),
            end_date=clock.now() + timedelta(days=30),
            usage_limit_total=2,
            usage_limit_per_client=1,
        )
        fields.update(overrides)
        result = create_use_case.execute(CreatePromotionCommandDTO(**fields))
        assert result.is_ok(), result.error
        return result.value

    return factory


def apply(use_case, client_id: str, amount: str = "100.00", code: str = "SPRING20", **extra):
    return use_case.execute(
        ApplyPromotionCommandDTO(code=code, client_id=client_id, amount=Decimal(amount), **extra)
    )


class TestCreateAndUpdatePromotion:
    def test_create_returns_definition(self, make_promotion):
        promotion = make_promotion(code="spring20")

        assert promotion.code == "SPRING20"
        assert promotion.currency == "USD"
        assert promotion.maximum_discount == Decimal("15.00")
        assert promotion.total_usage == 0
        assert promotion.remaining_uses == 2
        assert promotion.is_currently_active is True

    def test_duplicate_code(self, make_promotion, create_use_case, clock):
        make_promotion()

        result = create_use_case.execute(
            CreatePromotionCommandDTO(
                name="Copy",
                code="Spring20",
                discount_type=DiscountType.FIXED_AMOUNT,
                discount_value=Decimal("5"),
                start_date=clock.now(),
                end_date=clock.now() + timedelta(days=1),
            )
        )

        assert result.error.code == ErrorCode.DUPLICATE_CODE

    def test_window_ending_before_start_is_invalid(self, create_use_case, clock):
        result = create_use_case.execute(
            CreatePromotionCommandDTO(
                name="Broken",
                code="BROKEN",
                discount_type=DiscountType.PERCENTAGE,
                discount_value=Decimal("10"),
                start_date=clock.now(),
                end_date=clock.now() - timedelta(days=1),
            )
        )

        assert result.error.code == ErrorCode.INVALID_DEFINITION

    def test_disabling_blocks_further_use(self, make_promotion, promotion_registry, apply_use_case, clock):
        # Arrange
        promotion = make_promotion()
        use_case = UpdatePromotion(promotion_registry, clock)

        # Act
        updated = use_case.execute(UpdatePromotionCommandDTO(promotion_id=promotion.promotion_id, is_active=False))

        # Assert
        assert updated.value.is_active is False
        assert updated.value.code == "SPRING20"
        assert apply(apply_use_case, "A").error.code == ErrorCode.RULE_DISABLED

    def test_invalid_update_is_rejected(self, make_promotion, promotion_registry, clock):
        promotion = make_promotion()

        result = UpdatePromotion(promotion_registry, clock).execute(
            UpdatePromotionCommandDTO(promotion_id=promotion.promotion_id, end_date=clock.now() - timedelta(days=5))
        )

        assert result.error.code == ErrorCode.INVALID_DEFINITION

    def test_aware_window_is_normalised(self, create_use_case, apply_use_case, promotion_registry, clock):
        """
        Given: A window given with UTC offsets that covers the clock's time
        When: The promotion is created, evaluated and applied
        Then: Stored bounds are naive UTC and the discount is granted
        """
        # Arrange
        command = CreatePromotionCommandDTO(
            name="Spring Special",
            code="SPRING20",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            maximum_discount=Decimal("15.00"),
            start_date=datetime(2024, 2, 29, 19, 0, tzinfo=timezone(timedelta(hours=-5))),
            end_date=datetime(2024, 3, 31, tzinfo=timezone.utc),
        )

        # Act
        created = create_use_case.execute(command)
        evaluated = EvaluatePromotion(promotion_registry, clock).execute(
            EvaluatePromotionCommandDTO(code="SPRING20", client_id="A", amount=Decimal("100.00"))
        )
        applied = apply(apply_use_case, "A")

        # Assert
        assert created.is_ok(), created.error
        assert created.value.start_date == datetime(2024, 3, 1)
        assert created.value.end_date == datetime(2024, 3, 31)
        assert created.value.is_currently_active is True
        assert evaluated.value.discount_amount == Decimal("15.00")
        assert applied.value.discount_amount == Decimal("15.00")

    def test_fixed_amount_finer_than_cents_is_invalid(self, create_use_case, clock):
        result = create_use_case.execute(
            CreatePromotionCommandDTO(
                name="Odd Cents",
                code="ODD",
                discount_type=DiscountType.FIXED_AMOUNT,
                discount_value=Decimal("5.555"),
                start_date=clock.now(),
                end_date=clock.now() + timedelta(days=1),
            )
        )

        assert result.error.code == ErrorCode.INVALID_DEFINITION

    def test_fixed_amount_update_finer_than_cents_is_invalid(self, make_promotion, promotion_registry):
        promotion = make_promotion()

        result = promotion_registry.update(
            promotion.promotion_id,
            {"discount_type": DiscountType.FIXED_AMOUNT, "discount_value": Decimal("5.555"), "maximum_discount": None},
        )

        assert result.error.code == ErrorCode.INVALID_DEFINITION
        assert promotion_registry.get(promotion.promotion_id).value.discount_type == DiscountType.PERCENTAGE

    def test_failed_response_does_not_take_the_code(self, create_use_case, clock):
        """
        Given: Building the response fails during creation
        When: The same code is created again
        Then: The first attempt fails and the retry succeeds
        """
        # Arrange
        command = CreatePromotionCommandDTO(
            name="Spring Special",
            code="SPRING20",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            start_date=clock.now(),
            end_date=clock.now() + timedelta(days=30),
        )

        # Act
        with patch(
            "giftledger.app.use_cases.promotions.create_promotion.to_promotion_dto",
            side_effect=RuntimeError("mapper broke"),
        ):
            failed = create_use_case.execute(command)
        retried = create_use_case.execute(command)

        # Assert
        assert failed.error.code == "CREATE_PROMOTION_FAILED"
        assert retried.is_ok(), retried.error
        assert retried.value.code == "SPRING20"


class TestApplyPromotion:
    def test_limits_across_clients(self, make_promotion, apply_use_case, promotion_registry):
        """
        Given: 20% off capped at 15.00, total limit 2, one use per client
        When: Clients A, A, B, C apply it to 100.00 purchases in turn
        Then: A gets 15.00 off, A is refused, B gets 15.00 off, C is refused
        """
        # Arrange
        promotion = make_promotion()

        # Act
        results = [apply(apply_use_case, client) for client in ("A", "A", "B", "C")]

        # Assert
        assert results[0].value.discount_amount == Decimal("15.00")
        assert results[0].value.final_amount == Decimal("85.00")
        assert results[1].error.code == ErrorCode.CLIENT_USAGE_LIMIT_REACHED
        assert results[2].value.discount_amount == Decimal("15.00")
        assert results[3].error.code == ErrorCode.USAGE_LIMIT_REACHED
        assert promotion_registry.usage_count(promotion.promotion_id).value == 2

    def test_failed_usage_append_releases_the_use(self, make_promotion, apply_use_case, promotion_registry, promotion_store):
        """
        Given: A promotion with one use per client
        When: Storing the usage record fails
        Then: PERSISTENCE_FAILED and the client can still use the promotion
        """
        # Arrange
        promotion = make_promotion()
        failure = Return.err(make_error(ErrorCode.PERSISTENCE_FAILED, "db down"))

        # Act
        with patch.object(promotion_store, "append_usage", return_value=failure):
            failed = apply(apply_use_case, "A")
        retried = apply(apply_use_case, "A")

        # Assert
        assert failed.error.code == ErrorCode.PERSISTENCE_FAILED
        assert retried.is_ok()
        assert promotion_registry.usage_count(promotion.promotion_id).value == 1
        assert len(promotion_store.list_usages(promotion.promotion_id).value) == 1

    def test_concurrent_clients_never_exceed_total_limit(self, make_promotion, apply_use_case, promotion_registry):
        # Arrange
        promotion = make_promotion(usage_limit_total=10)
        barrier = threading.Barrier(30)
        outcomes = []
        outcomes_lock = threading.Lock()

        def worker(client_id):
            barrier.wait()
            result = apply(apply_use_case, client_id)
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker, args=(f"client-{i}",)) for i in range(30)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Assert
        assert sum(1 for result in outcomes if result.is_ok()) == 10
        assert {result.error.code for result in outcomes if result.is_err()} == {ErrorCode.USAGE_LIMIT_REACHED}
        assert promotion_registry.usage_count(promotion.promotion_id).value == 10

    def test_bogo_requires_item_price(self, make_promotion, apply_use_case):
        # Arrange
        make_promotion(code="BOGO", discount_type=DiscountType.BOGO, discount_value=Decimal("0"), maximum_discount=None)

        # Act
        without_price = apply(apply_use_case, "A", amount="80.00", code="BOGO")
        with_price = apply(apply_use_case, "A", amount="80.00", code="BOGO", item_price=Decimal("35.00"))

        # Assert
        assert without_price.error.code == ErrorCode.REQUIRES_PRICE_LOOKUP
        assert with_price.value.discount_amount == Decimal("35.00")
        assert with_price.value.final_amount == Decimal("45.00")

    def test_evaluate_does_not_consume(self, make_promotion, promotion_registry, clock, apply_use_case):
        # Arrange
        promotion = make_promotion()
        use_case = EvaluatePromotion(promotion_registry, clock)
        command = EvaluatePromotionCommandDTO(code="spring20", client_id="A", amount=Decimal("40.00"))

        # Act
        first = use_case.execute(command)
        second = use_case.execute(command)

        # Assert
        assert first.value.discount_amount == Decimal("8.00")
        assert second.value.final_amount == Decimal("32.00")
        assert promotion_registry.usage_count(promotion.promotion_id).value == 0

    def test_expired_promotion_is_out_of_window(self, make_promotion, apply_use_case, clock):
        make_promotion()
        clock.advance(days=31)

        assert apply(apply_use_case, "A").error.code == ErrorCode.OUT_OF_WINDOW

    def test_failed_usage_build_releases_the_use(self, make_promotion, apply_use_case, promotion_registry):
        """
        Given: A promotion with one use per client
        When: Building the usage record raises
        Then: APPLY_PROMOTION_FAILED and the client can still use the promotion
        """
        # Arrange
        promotion = make_promotion()

        # Act
        with patch(
            "giftledger.app.use_cases.promotions.apply_promotion.PromotionUsage",
            side_effect=RuntimeError("usage broke"),
        ):
            failed = apply(apply_use_case, "A")
        retried = apply(apply_use_case, "A")

        # Assert
        assert failed.error.code == "APPLY_PROMOTION_FAILED"
        assert retried.is_ok(), retried.error
        assert promotion_registry.usage_count(promotion.promotion_id).value == 1

    def test_consume_reraises_after_release(self, make_promotion, promotion_registry, clock):
        # Arrange
        promotion = make_promotion()
        purchase = ProposedPurchase(client_id="A", amount=Money.of("100.00"), now=clock.now())

        def broken_usage(current, eligibility):
            raise RuntimeError("usage broke")

        # Act
        with pytest.raises(RuntimeError):
            promotion_registry.consume(promotion.promotion_id, purchase, broken_usage)

        # Assert
        assert promotion_registry.usage_count(promotion.promotion_id).value == 0
        assert promotion_registry.evaluate(promotion.promotion_id, purchase).is_ok()

    def test_unexpected_evaluation_error(self, make_promotion, promotion_registry, clock):
        make_promotion()
        command = EvaluatePromotionCommandDTO(code="SPRING20", client_id="A", amount=Decimal("40.00"))

        with patch.object(promotion_registry, "evaluate", side_effect=RuntimeError("registry broke")):
            result = EvaluatePromotion(promotion_registry, clock).execute(command)

        assert result.error.code == "EVALUATE_PROMOTION_FAILED"
        assert result.error.reason == "registry broke"


class TestPromotionQueries:
    def test_auto_apply_best_discount_first(self, make_promotion, promotion_registry, clock, settings):
        """
        Given: Auto-apply 20% and fixed 5.00 promotions, plus a code-only one
        When: A 50.00 purchase looks for auto-apply promotions
        Then: [10.00, 5.00] in that order; the code-only promotion is left out
        """
        # Arrange
        make_promotion(code="FIVE", discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("5"),
                       maximum_discount=None, auto_apply=True)
        make_promotion(code="AUTO20", maximum_discount=None, auto_apply=True)
        make_promotion(code="MANUAL30", discount_value=Decimal("30"), maximum_discount=None)
        use_case = FindAutoApplyPromotions(promotion_registry, clock, settings)

        # Act
        result = use_case.execute(FindAutoApplyCommandDTO(client_id="A", amount=Decimal("50.00")))

        # Assert
        assert [dto.code for dto in result.value] == ["AUTO20", "FIVE"]
        assert [dto.discount_amount for dto in result.value] == [Decimal("10.00"), Decimal("5.00")]

    def test_find_promotions_by_search_and_expiry(self, make_promotion, promotion_registry, clock):
        # Arrange
        make_promotion(code="SOON", name="Flash Sale", end_date=clock.now() + timedelta(days=3))
        make_promotion(code="LATER", name="Summer Glow")
        use_case = FindPromotions(promotion_registry, clock)

        # Act
        expiring = use_case.execute(FindPromotionsQueryDTO(expiring_within_days=7))
        searched = use_case.execute(FindPromotionsQueryDTO(search="glow"))
        everything = use_case.execute(FindPromotionsQueryDTO())

        # Assert
        assert [dto.code for dto in expiring.value] == ["SOON"]
        assert [dto.code for dto in searched.value] == ["LATER"]
        assert [dto.code for dto in everything.value] == ["SOON", "LATER"]

    def test_list_usages_newest_first(self, make_promotion, promotion_registry, apply_use_case, clock):
        # Arrange
        promotion = make_promotion(usage_limit_total=None)
        apply(apply_use_case, "A")
        clock.advance(hours=1)
        apply(apply_use_case, "B")

        # Act
        result = ListPromotionUsages(promotion_registry).execute(promotion.promotion_id)
        only_a = ListPromotionUsages(promotion_registry).execute(promotion.promotion_id, client_id="A")

        # Assert
        assert [usage.client_id for usage in result.value] == ["B", "A"]
        assert [usage.client_id for usage in only_a.value] == ["A"]

    def test_statistics(self, make_promotion, promotion_registry, apply_use_case, clock, settings):
        """
        Given: Two 15.00 discounts on 100.00 purchases
        When: Statistics are computed
        Then: discounts 30.00, revenue 170.00, roi 466.67, average 15.00%
        """
        # Arrange
        make_promotion()
        apply(apply_use_case, "A")
        apply(apply_use_case, "B")

        # Act
        result = GetPromotionStatistics(promotion_registry, clock, settings).execute()

        # Assert
        stats = result.value
        assert stats.total_promotions == 1
        assert stats.active_promotions == 0
        assert stats.total_usages == 2
        assert stats.total_discount_given == Decimal("30.00")
        assert stats.total_revenue == Decimal("170.00")
        assert stats.roi == Decimal("466.67")
        assert stats.average_discount_percentage == Decimal("15.00")

    def test_top_promotions_by_usage(self, make_promotion, promotion_registry, apply_use_case):
        # Arrange
        make_promotion(usage_limit_total=None)
        make_promotion(code="FIVE", name="Five Off", discount_type=DiscountType.FIXED_AMOUNT,
                       discount_value=Decimal("5"), maximum_discount=None, usage_limit_total=None)
        for client in ("A", "B", "C"):
            apply(apply_use_case, client, code="FIVE")
        apply(apply_use_case, "A")

        # Act
        result = GetTopPromotions(promotion_registry).execute(
            TopPromotionsQueryDTO(metric=PromotionMetric.USAGES, limit=1)
        )

        # Assert
        assert len(result.value) == 1
        assert result.value[0].promotion_name == "Five Off"
        assert result.value[0].total_usages == 3
        assert result.value[0].total_discount == Decimal("15.00")
