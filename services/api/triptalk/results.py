"""
Result values returned by every store operation.

Stores never raise for domain failures (duplicate, missing entity, bad
input, wrong actor). They return a `Result` carrying either the value or a
`StoreError`, and the request gateway translates the error kind into an HTTP
status. Infrastructure failures (database unreachable, driver errors) are
still exceptions and surface as a generic 500.
"""
import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    AUTHORIZATION = "authorization"
    SELF_REFERENCE = "self_reference"
    STATE = "state"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class StoreError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def success(value: T = None) -> Result[T]:
    return Result(value=value)


def failure(kind: ErrorKind, message: str) -> Result:
    return Result(error=StoreError(kind=kind, message=message))
