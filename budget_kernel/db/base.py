"""
Module: budget_kernel.db.base
Responsibility: Declarative base for the read-side ORM models of the budget
    execution warehouse, plus the type annotation map that keeps column
    types consistent across models.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, selectors/, or outer layers.

Invariants enforced:
    - Decimal maps to Numeric(18, 2), matching the published amounts.
      NEVER use float for amounts.
    - Tables keep their natural keys (CUI, UAT id); there is no surrogate
      id convention.
"""

from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all budget ORM models."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
    }
