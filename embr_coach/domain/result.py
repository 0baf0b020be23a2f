"""
Result type for failures that are part of normal operation.

A coaching call that hits a 500 or an unreachable endpoint is not exceptional:
the caller always has a fallback ready. Returning ``Result.err`` keeps that
path visible in signatures instead of hiding it in ``except`` blocks.
"""

from collections.abc import Callable
from typing import Generic, TypeVar

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """Either a value or an error, never both."""

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error

    def unwrap_or_else(self, recover: Callable[[ErrorT], ValueT]) -> ValueT:
        """Return the value, or compute a replacement from the error."""
        if self._error is not None:
            return recover(self._error)
        return self._value  # type: ignore[return-value]
