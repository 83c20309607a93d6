"""
Result type returned by every upstream call.
"""
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from gateway.errors import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """
    Either a value (`ok`) or an error kind (`err`), never both.

    Aggregators branch on `is_ok` instead of catching exceptions, which lets
    one failed slot degrade to None while the rest of the document survives.
    """
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def ok(cls, value: T, status: int = 200) -> "FetchResult[T]":
        return cls(value=value, status=status)

    @classmethod
    def err(
        cls,
        kind: ErrorKind,
        message: Optional[str] = None,
        status: Optional[int] = None,
    ) -> "FetchResult[Any]":
        return cls(error=kind, message=message or kind.value, status=status)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def value_or(self, default: Any = None) -> Any:
        """The value when ok, otherwise `default`."""
        return self.value if self.is_ok else default

    def map(self, fn: Callable[[T], Any]) -> "FetchResult[Any]":
        """Apply `fn` to the value of an ok result; errors pass through."""
        if not self.is_ok:
            return self
        return FetchResult.ok(fn(self.value), status=self.status or 200)
