"""
Module: budget_kernel.selectors.base
Responsibility: Base class for read-only aggregation selectors, and the
    compiled clause bundle that callers hand to them.
Architecture position: Kernel > Selectors.  May import from models/ and
    db/.  MUST NOT import from engines/, services/, or outer layers; the
    WHERE/HAVING text arrives precompiled.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller and never
      add, delete, flush or commit.
    - DTO return convention: selectors return frozen dataclasses, never raw
      result rows.
    - Session ownership: the caller owns the session and its transaction.
    - The statement timeout is applied with SET LOCAL, on PostgreSQL only,
      so it ends with the caller's transaction.

Failure modes:
    - sqlalchemy.exc.DBAPIError propagates unchanged (including statement
      timeouts); classification happens in the repository adapters.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

from budget_kernel.logging_config import get_logger

logger = get_logger("selectors")

# Colons that text() would read as a bind parameter, or whose preceding
# backslash it would strip as an escape.
_BIND_MARKER = re.compile(r"(?<![:\w]):(?=\w+(?![:\w]))|(?<=\\):(?![:\w])")


def escape_bind_markers(fragment: str) -> str:
    """Escape colons in compiled SQL so text() passes literals through unchanged."""
    return _BIND_MARKER.sub(r"\\:", fragment)


@dataclass(frozen=True)
class CompiledClauses:
    """
    Precompiled filter text for one aggregation query.

    ``where`` and ``having`` are full clauses (``"WHERE ..."``) or empty.
    The join flags say which optional tables the fragments reference.
    """

    where: str = ""
    having: str = ""
    entity_join: bool = False
    uat_join: bool = False

    @property
    def where_sql(self) -> str:
        return escape_bind_markers(self.where)

    @property
    def having_sql(self) -> str:
        return escape_bind_markers(self.having)


def to_decimal(value: Any) -> Decimal:
    """Driver values to Decimal; SQLite returns floats and ints for sums."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class BaseSelector:
    """
    Base class for all selectors.

    Selectors accept a Session from the caller, perform read-only queries,
    and return DTOs.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def apply_statement_timeout(self, timeout_ms: int | None) -> None:
        """Bound the rest of the current transaction on PostgreSQL."""
        if not timeout_ms or self.dialect_name != "postgresql":
            return
        self.session.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))

    def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[Any]:
        rows = self.session.execute(text(sql), params or {}).mappings().all()
        logger.debug("selector_rows_fetched", extra={"row_count": len(rows)})
        return list(rows)
