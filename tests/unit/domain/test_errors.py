"""Unit tests for error classification"""

import pytest

from giftledger.domain.errors import ErrorCode, ErrorKind, error_kind


@pytest.mark.parametrize(
    "code, kind",
    [
        (ErrorCode.LEDGER_VIOLATION, ErrorKind.LEDGER_VIOLATION),
        (ErrorCode.PERSISTENCE_FAILED, ErrorKind.PERSISTENCE),
        (ErrorCode.INSUFFICIENT_FUNDS, ErrorKind.VALIDATION),
        (ErrorCode.USAGE_LIMIT_REACHED, ErrorKind.VALIDATION),
        ("APPLY_PROMOTION_FAILED", ErrorKind.VALIDATION),
    ],
)
def test_error_kind(code, kind):
    assert error_kind(code) == kind


def test_plain_string_codes_are_classified():
    assert error_kind("LEDGER_VIOLATION") == ErrorKind.LEDGER_VIOLATION
    assert error_kind("PERSISTENCE_FAILED") == ErrorKind.PERSISTENCE
