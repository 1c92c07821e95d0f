"""
Movement model.

A movement is one signed change to one account: an inflow adds
its amount to the account's cached balance, an outflow subtracts
it. A transfer is stored as two movements (an OUTFLOW leg on the
source account, an INFLOW leg on the destination) that name each
other through pair_id.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Text, Boolean, DateTime, Numeric, ForeignKey,
    Enum as SAEnum, Uuid, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from personal_ledger.models.base import Base
from personal_ledger.models.enums import MovementType
from personal_ledger.money import MONEY_PRECISION, MONEY_SCALE


class Movement(Base):
    """
    A single ledger movement.

    The model holds data only. Balance bookkeeping and the
    transfer pairing rules live in the services, which are
    the only code that creates, edits or deletes movements.
    """

    __tablename__ = "movements"
    __table_args__ = (
        Index("ix_movements_user_date", "user_id", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    # No foreign key: a category may be deleted after movements
    # were recorded against it; readers fall back to a placeholder.
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    movement_type: Mapped[MovementType] = mapped_column(
        SAEnum(MovementType, name="movement_type_enum", create_constraint=True),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False
    )
    concept: Mapped[str] = mapped_column(String(200), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    is_transfer: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    counter_account_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True
    )
    # Set on the outflow leg only after the inflow leg exists
    pair_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    account: Mapped["Account"] = relationship(foreign_keys=[account_id])
    counter_account: Mapped["Account | None"] = relationship(
        foreign_keys=[counter_account_id]
    )
    category: Mapped["Category | None"] = relationship(
        primaryjoin="foreign(Movement.category_id) == Category.id",
        viewonly=True,
    )

    @property
    def signed_amount(self) -> Decimal:
        """This movement's contribution to its account's balance."""
        return self.movement_type.sign * self.amount

    def __repr__(self) -> str:
        kind = "transfer " if self.is_transfer else ""
        return (
            f"<Movement {kind}{self.movement_type.value} "
            f"{self.amount} ({self.concept})>"
        )
