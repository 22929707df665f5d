"""
Errors -- error values returned by the analytics use cases.

Responsibility:
    Use cases never raise to their callers.  They return an
    ``AnalyticsResult`` holding either a value or one of the frozen error
    dataclasses below.  Each error carries a class-level ``code`` in the
    same style as ``budget_kernel.exceptions``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ``DatabaseError`` and ``QueryTimeoutError`` are always retryable;
      timeout classification is informational only.
    - An ``AnalyticsResult`` holds exactly one of value / error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")

_TIMEOUT_PGCODE = "57014"
_TIMEOUT_SIGNATURES = (
    "statement timeout",
    "canceling statement due to statement timeout",
    _TIMEOUT_PGCODE,
)


@dataclass(frozen=True, slots=True)
class MissingRequiredFilter:
    """A filter field required by the use case was absent."""

    code: ClassVar[str] = "MISSING_REQUIRED_FILTER"

    field: str

    @property
    def message(self) -> str:
        return f"Missing required filter: {self.field}"


@dataclass(frozen=True, slots=True)
class DatabaseError:
    """The repository query failed."""

    code: ClassVar[str] = "DATABASE_ERROR"

    message: str
    cause: BaseException | None = None
    retryable: bool = True


@dataclass(frozen=True, slots=True)
class QueryTimeoutError:
    """The repository query was cancelled by the statement timeout."""

    code: ClassVar[str] = "TIMEOUT_ERROR"

    message: str
    cause: BaseException | None = None
    retryable: bool = True


@dataclass(frozen=True, slots=True)
class NormalizationError:
    """The factor provider failed or the pipeline could not apply its factors."""

    code: ClassVar[str] = "NORMALIZATION_ERROR"

    message: str
    cause: BaseException | None = None


AnalyticsError = MissingRequiredFilter | DatabaseError | QueryTimeoutError | NormalizationError


@dataclass(frozen=True, slots=True)
class AnalyticsResult(Generic[T]):
    """
    Outcome of a use case.

    ``bool(result)`` is ``result.is_ok``.  ``unwrap()`` is for tests and
    callers that already checked the result.
    """

    value: T | None = None
    error: AnalyticsError | None = None

    @classmethod
    def ok(cls, value: T) -> AnalyticsResult[T]:
        return cls(value=value, error=None)

    @classmethod
    def err(cls, error: AnalyticsError) -> AnalyticsResult[Any]:
        return cls(value=None, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        if self.error is not None:
            raise ValueError(f"unwrap() on error result: {self.error.code}")
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.is_ok


def _exception_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def is_statement_timeout(exc: BaseException) -> bool:
    """
    True when ``exc`` (or anything it wraps) is a PostgreSQL statement timeout.

    SQLAlchemy wraps the driver error in ``.orig``; psycopg2 exposes the
    SQLSTATE as ``pgcode``.
    """
    for item in _exception_chain(exc):
        candidates = [item, getattr(item, "orig", None)]
        for candidate in candidates:
            if candidate is None:
                continue
            if getattr(candidate, "pgcode", None) == _TIMEOUT_PGCODE:
                return True
            text = str(candidate).lower()
            if any(sig in text for sig in _TIMEOUT_SIGNATURES):
                return True
    return False


def classify_query_error(
    exc: BaseException,
    message: str | None = None,
) -> DatabaseError | QueryTimeoutError:
    """Map a repository exception onto ``QueryTimeoutError`` or ``DatabaseError``."""
    text = message or str(exc) or "Unknown database error"
    if is_statement_timeout(exc):
        return QueryTimeoutError(message=text, cause=exc)
    return DatabaseError(message=text, cause=exc)
