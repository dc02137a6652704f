"""Result type for use-case outcomes

Expected business outcomes (insufficient funds, expired card, usage limit
reached, ...) are returned as values instead of being raised:

    result = use_case.execute(command)
    if result.is_err():
        print(result.error.code)
    else:
        print(result.value)
"""

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class Error(BaseModel):
    """
    Error payload carried by a failed Result

    Attributes:
        code: Machine readable error code (e.g., "INSUFFICIENT_FUNDS")
        message: Human readable message
        reason: Optional detail for logs and audit
    """

    code: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable error message")
    reason: Optional[str] = Field(default=None, description="Additional error context")

    def __str__(self) -> str:
        if self.reason:
            return f"{self.code}: {self.message} ({self.reason})"
        return f"{self.code}: {self.message}"


class Result(Generic[T]):
    """Outcome of an operation: either a value or an Error, never both"""

    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        if error is not None and value is not None:
            raise ValueError("Result cannot carry both a value and an error")
        self._value = value
        self._error = error

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Cannot read value of a failed result: {self._error}")
        return self._value

    @property
    def error(self) -> Optional[Error]:
        return self._error

    def __repr__(self) -> str:
        if self.is_err():
            return f"Result(error={self._error!r})"
        return f"Result(value={self._value!r})"


class Return:
    """Constructors for Result values"""

    @staticmethod
    def ok(value: T = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result:
        return Result(error=error)
