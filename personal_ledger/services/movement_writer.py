"""
Guarded writes to movement rows.

Amount changes and deletions decide a balance delta from the
row as it was read. These writes only succeed if the row is
still in that state; otherwise the unit of work is aborted
before the delta can be applied twice.
"""

from decimal import Decimal

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from personal_ledger.exceptions import NotFoundError
from personal_ledger.logging_config import get_logger
from personal_ledger.models import Movement
from personal_ledger.money import to_money

logger = get_logger(__name__)


class MovementWriter:

    def __init__(self, db: Session):
        self.db = db

    def change_amount(self, movement: Movement, new_amount: Decimal) -> None:
        """
        Set a new amount, provided the stored amount is still the one read.

        Raises NotFoundError if the row was deleted or its amount
        was changed by another operation since it was loaded.
        """
        result = self.db.execute(
            update(Movement)
            .where(
                Movement.id == movement.id,
                Movement.amount == movement.amount,
            )
            .values(amount=to_money(new_amount))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                "movement changed concurrently",
                extra={"movement_id": movement.id, "expected_amount": movement.amount},
            )
            raise NotFoundError(
                f"Movement {movement.id} was changed or deleted by another operation",
                movement_id=movement.id,
            )

    def remove(self, movement: Movement) -> None:
        """Delete the row; NotFoundError if another operation already did."""
        result = self.db.execute(
            delete(Movement)
            .where(Movement.id == movement.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                "movement deleted concurrently",
                extra={"movement_id": movement.id},
            )
            raise NotFoundError(
                f"Movement {movement.id} was already deleted",
                movement_id=movement.id,
            )
        self.db.expunge(movement)
