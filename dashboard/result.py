"""
Success-or-error result returned by fetches and the settled pattern
"""
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or the error that prevented it.

    Use the ``success`` and ``failure`` constructors rather than building
    instances directly.
    """

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Outcome[Any]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        return "fulfilled" if self.ok else "rejected"

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value
