"""Promotion Domain Entity

Time-windowed, usage-limited discount rule. Evaluation is stateless: usage
counters are owned by the UsageTracker and passed in.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from libs.result import Result, Return
from giftledger.domain.errors import ErrorCode, make_error
from giftledger.domain.money import Money
from giftledger.domain.timestamps import to_naive_utc

SECONDS_PER_DAY = 86400


class DiscountType(str, Enum):
    """How a promotion's discount is computed"""
    PERCENTAGE = "percentage"      # discount_value percent of the purchase
    FIXED_AMOUNT = "fixed_amount"  # discount_value in major currency units
    BOGO = "bogo"                  # one item free, price looked up by caller
    FREE_SERVICE = "free_service"  # one service free, price looked up by caller


PRICE_LOOKUP_TYPES = frozenset({DiscountType.BOGO, DiscountType.FREE_SERVICE})


class PromotionType(str, Enum):
    SEASONAL = "seasonal"
    NEW_CLIENT = "new_client"
    REFERRAL = "referral"
    BIRTHDAY = "birthday"
    LOYALTY = "loyalty"
    PACKAGE_DEAL = "package_deal"
    LIMITED_TIME = "limited_time"
    BULK_DISCOUNT = "bulk_discount"
    CLEARANCE = "clearance"


class PromotionAudience(str, Enum):
    ALL_CLIENTS = "all_clients"
    NEW_CLIENTS = "new_clients"
    EXISTING_CLIENTS = "existing_clients"
    VIP_CLIENTS = "vip_clients"
    DORMANT_CLIENTS = "dormant_clients"
    SPECIFIC_CLIENTS = "specific_clients"


class DiscountQuote(BaseModel):
    """
    Outcome of the discount computation

    discount is None only when requires_price_lookup is True (BOGO and
    free-service promotions without a caller-supplied item price).
    """

    model_config = ConfigDict(frozen=True)

    discount: Optional[Money] = None
    requires_price_lookup: bool = False


class ProposedPurchase(BaseModel):
    """A purchase a promotion is evaluated against"""

    client_id: str = Field(..., description="Client making the purchase")
    amount: Money = Field(..., description="Purchase amount before discount")
    service_ids: list[str] = Field(default_factory=list, description="Services in the purchase")
    now: datetime = Field(..., description="Evaluation time (from the injected clock)")
    item_price: Optional[Money] = Field(
        default=None,
        description="Price of the free item for BOGO / free-service promotions"
    )

    @field_validator("now")
    @classmethod
    def _normalize_now(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class Eligibility(BaseModel):
    """Successful evaluation carrying the computed discount"""

    model_config = ConfigDict(frozen=True)

    promotion_id: str
    original_amount: Money
    quote: DiscountQuote

    @property
    def discount(self) -> Optional[Money]:
        return self.quote.discount

    @property
    def final_amount(self) -> Optional[Money]:
        if self.quote.discount is None:
            return None
        return self.original_amount.subtract(self.quote.discount).value


def compute_discount(
    discount_type: DiscountType,
    discount_value: Decimal,
    amount: Money,
    maximum_discount: Optional[Money] = None,
    item_price: Optional[Money] = None,
) -> DiscountQuote:
    """
    Pure discount computation

    - percentage: min(amount x rate, maximum_discount)
    - fixed amount: min(fixed, amount, maximum_discount)
    - BOGO / free service: min(item_price, amount, maximum_discount); without
      an item price the quote only signals that a price lookup is required

    The discount never exceeds the purchase amount.
    """
    if discount_type == DiscountType.PERCENTAGE:
        discount = amount.percentage_of(discount_value)
    elif discount_type == DiscountType.FIXED_AMOUNT:
        discount = Money.of(discount_value, amount.currency)
    elif item_price is None:
        return DiscountQuote(discount=None, requires_price_lookup=True)
    else:
        discount = item_price

    if maximum_discount is not None:
        discount = discount.minimum(maximum_discount)
    discount = discount.minimum(amount)
    if discount.is_negative():
        discount = Money.zero(amount.currency)
    return DiscountQuote(discount=discount, requires_price_lookup=False)


class Promotion(BaseModel):
    """
    Promotion - Discount eligibility rule

    Domain Rules:
    - Active iff is_active, start_date <= now <= end_date and the total usage
      limit (if any) has not been reached
    - Evaluation checks run in a fixed order and stop at the first failure
    - applicable_service_ids empty means every service qualifies
    - Money fields share the promotion's currency
    """

    id: str = Field(
        ...,
        description="Unique promotion identifier"
    )

    name: str = Field(
        ...,
        description="Display name"
    )

    description: str = Field(
        default="",
        description="Marketing description"
    )

    code: str = Field(
        ...,
        min_length=1,
        description="Promo code (stored upper-case)"
    )

    promotion_type: PromotionType = Field(
        default=PromotionType.LIMITED_TIME,
        description="Promotion category"
    )

    discount_type: DiscountType = Field(
        ...,
        description="How the discount is computed"
    )

    discount_value: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Percent for percentage promotions, major units for fixed amount"
    )

    currency: str = Field(
        default="USD",
        pattern=r"^[A-Z]{3}$",
        description="ISO-4217 currency code"
    )

    minimum_purchase: Optional[Money] = Field(
        default=None,
        description="Minimum purchase amount (None = no minimum)"
    )

    maximum_discount: Optional[Money] = Field(
        default=None,
        description="Cap on the discount (None = uncapped)"
    )

    start_date: datetime = Field(
        ...,
        description="Window start (inclusive)"
    )

    end_date: datetime = Field(
        ...,
        description="Window end (inclusive)"
    )

    usage_limit_total: Optional[int] = Field(
        default=None,
        ge=0,
        description="Total uses allowed across all clients (None = unlimited)"
    )

    usage_limit_per_client: int = Field(
        default=1,
        ge=0,
        description="Uses allowed per client"
    )

    applicable_service_ids: list[str] = Field(
        default_factory=list,
        description="Qualifying services (empty = all)"
    )

    is_active: bool = Field(
        default=True,
        description="Manual on/off switch"
    )

    requires_code: bool = Field(
        default=True,
        description="Client must enter the code"
    )

    auto_apply: bool = Field(
        default=False,
        description="Applied automatically at checkout when eligible"
    )

    audience: PromotionAudience = Field(
        default=PromotionAudience.ALL_CLIENTS,
        description="Target audience"
    )

    terms: str = Field(
        default="",
        description="Terms and conditions"
    )

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_dates(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def _check_consistency(self) -> "Promotion":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount_value must be between 0 and 100")
        if self.discount_type == DiscountType.FIXED_AMOUNT:
            # Raises ValueError for values finer than the currency's minor unit
            Money.of(self.discount_value, self.currency)
        for name in ("minimum_purchase", "maximum_discount"):
            value = getattr(self, name)
            if value is not None and value.currency != self.currency:
                raise ValueError(f"{name} must be in {self.currency}")
        return self

    # Derived reads

    def has_reached_usage_limit(self, total_usage: int) -> bool:
        return self.usage_limit_total is not None and total_usage >= self.usage_limit_total

    def remaining_uses(self, total_usage: int) -> Optional[int]:
        if self.usage_limit_total is None:
            return None
        return max(0, self.usage_limit_total - total_usage)

    def in_window(self, now: datetime) -> bool:
        return self.start_date <= now <= self.end_date

    def is_currently_active(self, now: datetime, total_usage: int = 0) -> bool:
        return self.is_active and self.in_window(now) and not self.has_reached_usage_limit(total_usage)

    def is_expired(self, now: datetime) -> bool:
        return now > self.end_date

    def days_until_expiration(self, now: datetime) -> int:
        return int((self.end_date - now).total_seconds() // SECONDS_PER_DAY)

    def quote(self, amount: Money, item_price: Optional[Money] = None) -> DiscountQuote:
        return compute_discount(
            self.discount_type,
            self.discount_value,
            amount,
            maximum_discount=self.maximum_discount,
            item_price=item_price,
        )

    # Evaluation

    def evaluate(
        self,
        purchase: ProposedPurchase,
        total_count: int,
        client_count: int,
    ) -> Result[Eligibility]:
        """
        Decide whether the promotion applies to a proposed purchase

        Checks, in order (first failure wins):
            1. RULE_DISABLED
            2. OUT_OF_WINDOW
            3. USAGE_LIMIT_REACHED
            4. CLIENT_USAGE_LIMIT_REACHED
            5. BELOW_MINIMUM_PURCHASE
            6. SERVICE_NOT_APPLICABLE

        Args:
            purchase: The proposed purchase
            total_count: Uses recorded so far across all clients
            client_count: Uses recorded so far by purchase.client_id

        Returns:
            Result[Eligibility]: Eligibility with the discount quote, or the
            first failing check
        """
        if purchase.amount.currency != self.currency:
            return self._reject(
                ErrorCode.CURRENCY_MISMATCH,
                f"Promotion {self.code} is in {self.currency}, purchase is in {purchase.amount.currency}",
            )

        if not self.is_active:
            return self._reject(ErrorCode.RULE_DISABLED, f"Promotion {self.code} is not active")

        if not self.in_window(purchase.now):
            return self._reject(
                ErrorCode.OUT_OF_WINDOW,
                f"Promotion {self.code} is only valid from {self.start_date} to {self.end_date}",
                reason=f"now={purchase.now}",
            )

        if self.has_reached_usage_limit(total_count):
            return self._reject(
                ErrorCode.USAGE_LIMIT_REACHED,
                f"Promotion {self.code} has reached its usage limit",
                reason=f"total_count={total_count}, limit={self.usage_limit_total}",
            )

        if client_count >= self.usage_limit_per_client:
            return self._reject(
                ErrorCode.CLIENT_USAGE_LIMIT_REACHED,
                f"Client has already used promotion {self.code}",
                reason=f"client_count={client_count}, limit={self.usage_limit_per_client}",
            )

        if self.minimum_purchase is not None and purchase.amount < self.minimum_purchase:
            return self._reject(
                ErrorCode.BELOW_MINIMUM_PURCHASE,
                f"Minimum purchase of {self.minimum_purchase} required",
                reason=f"amount={purchase.amount.amount}",
            )

        if self.applicable_service_ids and not set(purchase.service_ids) & set(self.applicable_service_ids):
            return self._reject(
                ErrorCode.SERVICE_NOT_APPLICABLE,
                f"Promotion {self.code} does not apply to the selected services",
            )

        return Return.ok(
            Eligibility(
                promotion_id=self.id,
                original_amount=purchase.amount,
                quote=self.quote(purchase.amount, purchase.item_price),
            )
        )

    def _reject(self, code: str, message: str, reason: Optional[str] = None) -> Result:
        return Return.err(make_error(code, message, reason=reason))
