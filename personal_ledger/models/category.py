"""
Category model.

Categories are shared by several parts of the tracker; the
ledger only accepts those in the EXPENSES scope.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Enum as SAEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from personal_ledger.models.base import Base
from personal_ledger.models.enums import CategoryScope


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False)
    scope: Mapped[CategoryScope] = mapped_column(
        SAEnum(CategoryScope, name="category_scope_enum", create_constraint=True),
        nullable=False,
        default=CategoryScope.EXPENSES,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Category {self.name} ({self.scope.value})>"
