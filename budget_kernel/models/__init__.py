"""Read-side ORM models of the budget execution warehouse."""

from budget_kernel.models.entity import Entity
from budget_kernel.models.execution_line_item import ExecutionLineItem
from budget_kernel.models.uat import UAT

__all__ = ["Entity", "ExecutionLineItem", "UAT"]
