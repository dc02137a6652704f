"""Error codes for gift card and promotion operations

Three kinds of failure are distinguished:

- validation: expected, recoverable business outcomes (insufficient funds,
  expired card, usage limit reached). Returned to the caller as-is.
- ledger_violation: a corrupted ledger invariant. The affected gift card is
  halted and must be reconciled manually.
- persistence: the durable store rejected a write. In-memory state has
  already been rolled back; the caller may retry.
"""

from typing import Optional
from libs.result import Error


class ErrorCode:
    """Error code constants used in Error.code"""

    # Gift card validation
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INSTRUMENT_INACTIVE = "INSTRUMENT_INACTIVE"
    INSTRUMENT_EXPIRED = "INSTRUMENT_EXPIRED"
    NOT_RELOADABLE = "NOT_RELOADABLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
    DUPLICATE_CODE = "DUPLICATE_CODE"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    REFUND_EXCEEDS_REDEMPTION = "REFUND_EXCEEDS_REDEMPTION"

    # Promotion validation
    RULE_DISABLED = "RULE_DISABLED"
    OUT_OF_WINDOW = "OUT_OF_WINDOW"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"
    CLIENT_USAGE_LIMIT_REACHED = "CLIENT_USAGE_LIMIT_REACHED"
    BELOW_MINIMUM_PURCHASE = "BELOW_MINIMUM_PURCHASE"
    SERVICE_NOT_APPLICABLE = "SERVICE_NOT_APPLICABLE"
    REQUIRES_PRICE_LOOKUP = "REQUIRES_PRICE_LOOKUP"
    INVALID_DEFINITION = "INVALID_DEFINITION"

    # Loyalty validation
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
    REWARD_INACTIVE = "REWARD_INACTIVE"
    PROGRAM_INACTIVE = "PROGRAM_INACTIVE"

    # Lookups
    GIFT_CARD_NOT_FOUND = "GIFT_CARD_NOT_FOUND"
    PROMOTION_NOT_FOUND = "PROMOTION_NOT_FOUND"
    LOYALTY_PROGRAM_NOT_FOUND = "LOYALTY_PROGRAM_NOT_FOUND"
    LOYALTY_ACCOUNT_NOT_FOUND = "LOYALTY_ACCOUNT_NOT_FOUND"
    REWARD_NOT_FOUND = "REWARD_NOT_FOUND"

    # Fatal to the affected instrument
    LEDGER_VIOLATION = "LEDGER_VIOLATION"

    # Durable store failure (after in-memory rollback)
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"


class ErrorKind:
    VALIDATION = "validation"
    LEDGER_VIOLATION = "ledger_violation"
    PERSISTENCE = "persistence"


def error_kind(code: str) -> str:
    """Classify an error code into validation, ledger_violation or persistence"""
    if code == ErrorCode.LEDGER_VIOLATION:
        return ErrorKind.LEDGER_VIOLATION
    if code == ErrorCode.PERSISTENCE_FAILED:
        return ErrorKind.PERSISTENCE
    return ErrorKind.VALIDATION


def make_error(code: str, message: str, reason: Optional[str] = None) -> Error:
    return Error(code=code, message=message, reason=reason)


class CurrencyMismatch(ValueError):
    """Raised when Money values of different currencies are combined"""

    def __init__(self, left: str, right: str):
        super().__init__(f"Currency mismatch: {left} vs {right}")
        self.left = left
        self.right = right
