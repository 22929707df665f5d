"""
Module: budget_kernel.models.entity
Responsibility: ORM mapping for public entities that report budget execution
    (town halls, county councils, schools, hospitals, ministries).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - cui is the natural primary key.
    - uat_id, when set, references an existing UAT.
"""

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import Base


class Entity(Base):
    __tablename__ = "entities"

    cui: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(Text)
    uat_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("uats.id"))
    address: Mapped[str | None] = mapped_column(Text)
    entity_type: Mapped[str | None] = mapped_column(String(50))
    is_uat: Mapped[bool] = mapped_column(Boolean, default=False)
    main_creditor_1_cui: Mapped[str | None] = mapped_column(String(20))
    main_creditor_2_cui: Mapped[str | None] = mapped_column(String(20))

    def __repr__(self) -> str:
        return f"<Entity {self.cui}: {self.name}>"
