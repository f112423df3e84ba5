"""
Error taxonomy for the retrying fetcher
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    STATUS = "status"
    TIMEOUT = "timeout"
    PARSE = "parse"


class FetchError(Exception):
    """Terminal or per-attempt failure of a JSON fetch.

    Callers branch on ``kind`` rather than on the message text. ``attempts``
    is filled in by the fetcher once the error becomes terminal.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        url: str = "",
        status_code: Optional[int] = None,
        elapsed_ms: Optional[float] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.url = url
        self.status_code = status_code
        self.elapsed_ms = elapsed_ms
        self.attempts = attempts

    @property
    def retryable(self) -> bool:
        """Parse failures mean the upstream broke its contract; retrying cannot help."""
        return self.kind is not ErrorKind.PARSE

    @classmethod
    def timeout(cls, url: str, timeout: float, elapsed_ms: float = None) -> "FetchError":
        return cls(
            ErrorKind.TIMEOUT,
            f"Request timed out after {int(timeout * 1000)}ms",
            url=url,
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def status(cls, url: str, status_code: int, reason: str, elapsed_ms: float = None) -> "FetchError":
        return cls(
            ErrorKind.STATUS,
            f"HTTP {status_code}: {reason}",
            url=url,
            status_code=status_code,
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def parse(cls, url: str, message: str) -> "FetchError":
        return cls(ErrorKind.PARSE, message, url=url)

    def __repr__(self) -> str:
        return f"FetchError(kind={self.kind.value!r}, message={self.message!r}, url={self.url!r})"
