"""
Module: budget_kernel.models.uat
Responsibility: ORM mapping for Administrative Territorial Units (UATs):
    communes, towns, municipalities and county seats with their county,
    region and resident population.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - uat_code and siruta_code are unique.
    - population is non-negative when present.
"""

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import Base


class UAT(Base):
    __tablename__ = "uats"
    __table_args__ = (
        CheckConstraint("population >= 0", name="ck_uats_population_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    uat_key: Mapped[str] = mapped_column(String(35))
    uat_code: Mapped[str] = mapped_column(String(20), unique=True)
    siruta_code: Mapped[str] = mapped_column(String(20), unique=True)
    name: Mapped[str] = mapped_column(Text)
    county_code: Mapped[str] = mapped_column(String(2))
    county_name: Mapped[str] = mapped_column(String(50))
    region: Mapped[str] = mapped_column(String(50))
    population: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<UAT {self.uat_code}: {self.name}>"
