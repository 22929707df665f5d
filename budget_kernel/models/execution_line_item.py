"""
Module: budget_kernel.models.execution_line_item
Responsibility: ORM mapping for the fact table: one budget execution line
    per (report, entity, classification, month).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Every line carries ytd_amount and monthly_amount.
    - quarterly_amount is populated only on lines flagged is_quarterly
      (the last month of a quarter); is_yearly implies is_quarterly.
    - Expense lines (account_category 'ch') always carry an economic code.

Failure modes:
    - IntegrityError on a yearly line that is not also quarterly, or on an
      expense line without an economic code.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import Base


class ExecutionLineItem(Base):
    __tablename__ = "executionlineitems"
    __table_args__ = (
        CheckConstraint("NOT is_yearly OR is_quarterly", name="ck_eli_yearly_is_quarterly"),
        CheckConstraint(
            "account_category <> 'ch' OR economic_code IS NOT NULL",
            name="ck_eli_expense_has_economic_code",
        ),
    )

    line_item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer)
    month: Mapped[int] = mapped_column(Integer)
    quarter: Mapped[int | None] = mapped_column(Integer)
    report_type: Mapped[str] = mapped_column(String(100))
    report_id: Mapped[str] = mapped_column(Text)
    entity_cui: Mapped[str] = mapped_column(String(20), ForeignKey("entities.cui"))
    main_creditor_cui: Mapped[str | None] = mapped_column(String(20))
    budget_sector_id: Mapped[int] = mapped_column(Integer)
    funding_source_id: Mapped[int] = mapped_column(Integer)
    functional_code: Mapped[str] = mapped_column(String(20))
    economic_code: Mapped[str | None] = mapped_column(String(20))
    account_category: Mapped[str] = mapped_column(String(2))
    program_code: Mapped[str | None] = mapped_column(String(50))
    expense_type: Mapped[str | None] = mapped_column(String(20))
    ytd_amount: Mapped[Decimal]
    monthly_amount: Mapped[Decimal]
    quarterly_amount: Mapped[Decimal | None]
    is_quarterly: Mapped[bool] = mapped_column(Boolean, default=False)
    is_yearly: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<ExecutionLineItem {self.entity_cui} {self.year}-{self.month:02d} {self.functional_code}>"
