"""Error taxonomy for the fetch path, plus a small result type."""

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class CursorMeterError(Exception):
    """Base class for every error the refresh cycle knows how to display."""


class NoCredentialError(CursorMeterError):
    """Raised when no session token is stored and the prompt was cancelled."""


class TransportError(CursorMeterError):
    """Raised when the vendor API is unreachable."""


class HttpError(CursorMeterError):
    """Raised when the vendor API answers with a non-2xx status."""

    def __init__(self, status: int, body_prefix: str) -> None:
        self.status = status
        self.body_prefix = body_prefix
        super().__init__(f"HTTP {status}: {body_prefix}")


class AuthError(HttpError):
    """401-class response: the stored session token is no longer accepted."""


class ParseError(CursorMeterError):
    """Raised when a response body is not well-formed JSON."""


class ShapeError(CursorMeterError):
    """Raised when JSON does not match the expected record shape."""


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one I/O call: either a value or the error that replaced it."""

    value: T | None = None
    error: CursorMeterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CursorMeterError) -> "FetchResult[T]":
        return cls(error=error)


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> FetchResult[T]:
    """Run an I/O call and capture a known failure as a result."""
    try:
        return FetchResult.success(fn(*args, **kwargs))
    except CursorMeterError as exc:
        return FetchResult.failure(exc)
