"""
Operation results.

Domain operations never raise to the HTTP layer. They return an `Outcome`
holding either a value or a `LedgerError`, and the API maps the error kind
to a status code in one place.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class ErrorKind(str, Enum):
    """Classes of failure a domain operation can report."""
    VALIDATION = "validation"   # bad or missing input
    NOT_FOUND = "not_found"     # requested entity absent
    CONFLICT = "conflict"       # violates a uniqueness rule
    INTEGRITY = "integrity"     # stored data is inconsistent
    STORAGE = "storage"         # row store unreachable or broken


class LedgerError(BaseModel):
    """Why an operation failed."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class Outcome(BaseModel, Generic[T]):
    """Either a value or an error, never both."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Optional[T] = None
    error: Optional[LedgerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, **details: Any) -> "Outcome":
        return cls(error=LedgerError(kind=kind, message=message, details=details))
