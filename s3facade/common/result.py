"""Explicit success/failure values returned by the storage facade.

Validation problems and backend errors never escape the facade as
exceptions. They come back as a failed :class:`Result` carrying an
:class:`ErrorKind`, so callers branch on the value instead of catching.
The only hard failure is :class:`ContractViolationError`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar

from s3facade.infra.storage.client import StorageError

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    BACKEND = "backend_error"
    CONTRACT_VIOLATION = "contract_violation"


class ContractViolationError(StorageError, ValueError):
    """Raised when a caller asks for an operation the backend cannot express."""


@dataclass(frozen=True, slots=True)
class StorageFailure:
    kind: ErrorKind
    message: str
    cause: BaseException | None = None


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Either a value (possibly ``None`` for "nothing found") or a failure."""

    value: T | None = None
    error: StorageFailure | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def empty(cls) -> "Result[T]":
        return cls()

    @classmethod
    def invalid(cls, message: str) -> "Result[T]":
        return cls(error=StorageFailure(ErrorKind.VALIDATION, message))

    @classmethod
    def backend_error(
        cls, message: str, cause: BaseException | None = None
    ) -> "Result[T]":
        return cls(error=StorageFailure(ErrorKind.BACKEND, message, cause))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        """True when there is no value, whether or not the call failed."""
        return self.value is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    def value_or(self, default: T) -> T:
        if self.value is None:
            return default
        return self.value

    def unwrap(self) -> T:
        """Return the value or raise :class:`StorageError` for failures and empties."""
        if self.error is not None:
            raise StorageError(self.error.message) from self.error.cause
        if self.value is None:
            raise StorageError("Result holds no value")
        return self.value

    def __bool__(self) -> bool:
        return self.ok
