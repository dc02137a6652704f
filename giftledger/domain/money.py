"""Money Value Object

Fixed-point amount in integer minor units (cents for USD) tagged with an
ISO-4217 currency code. All balance-affecting arithmetic is exact.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union
from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from libs.result import Result, Return
from giftledger.domain.errors import CurrencyMismatch, ErrorCode, make_error

# Currencies whose minor unit is not 1/100
MINOR_UNIT_EXPONENTS: dict[str, int] = {
    "JPY": 0,
    "KRW": 0,
    "BHD": 3,
    "KWD": 3,
    "OMR": 3,
}
DEFAULT_EXPONENT = 2


def minor_unit_exponent(currency: str) -> int:
    return MINOR_UNIT_EXPONENTS.get(currency.upper(), DEFAULT_EXPONENT)


class Money(BaseModel):
    """
    Money - Immutable amount in minor units

    Domain Rules:
    - amount is an integer count of minor units (no floating point)
    - currency is an upper-case ISO-4217 code
    - Combining different currencies is a programming error (CurrencyMismatch)
    - subtract() refuses to go below zero unless overdraft is requested
    """

    model_config = ConfigDict(frozen=True)

    amount: StrictInt = Field(
        ...,
        description="Amount in minor units (e.g., cents)"
    )

    currency: str = Field(
        default="USD",
        pattern=r"^[A-Z]{3}$",
        description="ISO-4217 currency code"
    )

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    # Constructors

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(amount=0, currency=currency)

    @classmethod
    def of(cls, value: Union[Decimal, str, int], currency: str = "USD") -> "Money":
        """
        Build Money from a major-unit value ("30.00", Decimal("30.00"), 30)

        Raises:
            TypeError: If value is a float
            ValueError: If value has more precision than the currency allows
        """
        if isinstance(value, float):
            raise TypeError("Money.of() does not accept float; use Decimal or str")
        exponent = minor_unit_exponent(currency)
        scaled = Decimal(value).scaleb(exponent)
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"{value} cannot be represented in {currency} minor units (exponent {exponent})"
            )
        return cls(amount=int(scaled), currency=currency)

    @classmethod
    def parse(cls, value: Union[Decimal, str, int], currency: str = "USD") -> Result["Money"]:
        """Like of(), but reports unrepresentable input as INVALID_AMOUNT"""
        try:
            return Return.ok(cls.of(value, currency))
        except (TypeError, ValueError, ArithmeticError) as e:
            return Return.err(
                make_error(
                    ErrorCode.INVALID_AMOUNT,
                    f"{value} is not a valid {currency} amount",
                    reason=str(e),
                )
            )

    def to_decimal(self) -> Decimal:
        """Major-unit Decimal with the currency's number of places"""
        return Decimal(self.amount).scaleb(-minor_unit_exponent(self.currency))

    # Arithmetic

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatch(self.currency, other.currency)

    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: "Money", allow_overdraft: bool = False) -> Result["Money"]:
        """
        Subtract other from self

        Returns:
            Result[Money]: Difference, or INSUFFICIENT_FUNDS when it would be
            negative and allow_overdraft is False
        """
        self._check_currency(other)
        difference = self.amount - other.amount
        if difference < 0 and not allow_overdraft:
            return Return.err(
                make_error(
                    ErrorCode.INSUFFICIENT_FUNDS,
                    f"Insufficient funds. Required: {other}, Available: {self}",
                    reason=f"available={self.amount}, required={other.amount}",
                )
            )
        return Return.ok(Money(amount=difference, currency=self.currency))

    def negate(self) -> "Money":
        return Money(amount=-self.amount, currency=self.currency)

    def percentage_of(self, rate: Union[Decimal, str, int]) -> "Money":
        """
        rate percent of this amount, rounded half-up to the minor unit

        Money.of("100.00").percentage_of(20) -> 20.00
        """
        if isinstance(rate, float):
            raise TypeError("percentage_of() does not accept float; use Decimal or str")
        portion = Decimal(self.amount) * Decimal(rate) / Decimal(100)
        return Money(
            amount=int(portion.quantize(Decimal(1), rounding=ROUND_HALF_UP)),
            currency=self.currency,
        )

    def minimum(self, other: "Money") -> "Money":
        self._check_currency(other)
        return self if self.amount <= other.amount else other

    # Comparison

    def compare(self, other: "Money") -> int:
        """-1, 0 or 1 as self is less than, equal to or greater than other"""
        self._check_currency(other)
        return (self.amount > other.amount) - (self.amount < other.amount)

    def __lt__(self, other: "Money") -> bool:
        return self.compare(other) < 0

    def __le__(self, other: "Money") -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: "Money") -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: "Money") -> bool:
        return self.compare(other) >= 0

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        return f"{self.to_decimal()} {self.currency}"
