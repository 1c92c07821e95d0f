"""
Balance projector — the only writer of Account.balance.

The cached balance is redundant state: it must always equal
the account's opening balance plus the signed sum of its
movements. Every service that creates, edits or deletes a
movement pushes the matching delta through apply_delta(), so
there is no other code path that can set the column.

The increment is done by the database (SET balance = balance
+ :delta), never by reading the balance into Python and
writing it back, so concurrent increments on the same account
cannot overwrite each other.
"""

import uuid
from decimal import Decimal

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from personal_ledger.exceptions import IntegrityFaultError
from personal_ledger.logging_config import get_logger
from personal_ledger.models import Account, Movement, MovementType
from personal_ledger.money import to_money
from personal_ledger.schemas.query import BalanceCheck

logger = get_logger(__name__)


def signed_amount(movement_type: MovementType, amount: Decimal) -> Decimal:
    """Contribution of a movement of this direction and amount."""
    return movement_type.sign * to_money(amount)


def reversal_delta(
    movement_type: MovementType, old_amount: Decimal, new_amount: Decimal
) -> Decimal:
    """
    Single delta that undoes old_amount and applies new_amount.

    Editing an outflow from 100 to 40: reverse (+100) plus apply
    (-40) gives +60.
    """
    return (
        -signed_amount(movement_type, old_amount)
        + signed_amount(movement_type, new_amount)
    )


class BalanceProjector:
    """
    Applies signed deltas to cached account balances.

    Takes the caller's session, so the increment joins the
    caller's unit of work and commits or rolls back with it.
    No business validation happens here.
    """

    def __init__(self, db: Session):
        self.db = db

    def apply_delta(self, account_id: uuid.UUID, delta: Decimal) -> Account:
        """
        Increment an account's balance by delta (may be negative).

        Returns the account reloaded from the database. Raises
        IntegrityFaultError if the account row is gone: the
        balance can no longer be kept correct, so the whole
        operation must abort.
        """
        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(balance=Account.balance + to_money(delta))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.error(
                "balance target vanished",
                extra={"account_id": account_id, "delta": delta},
            )
            raise IntegrityFaultError(
                f"Account {account_id} disappeared while applying a balance change",
                account_id=account_id,
                delta=delta,
            )

        # The UPDATE bypassed the identity map; overwrite any stale copy
        account = self.db.get(Account, account_id, populate_existing=True)
        logger.debug(
            "balance delta applied",
            extra={"account_id": account_id, "delta": delta},
        )
        return account

    def verify(self, account_id: uuid.UUID) -> BalanceCheck:
        """
        Rebuild the balance from movements and compare with the cache.

        Read-only: a drift is reported, never repaired.
        """
        account = self.db.get(Account, account_id, populate_existing=True)
        if account is None:
            raise IntegrityFaultError(
                f"Account {account_id} not found for balance check",
                account_id=account_id,
            )

        rows = self.db.execute(
            select(
                Movement.movement_type,
                func.coalesce(func.sum(Movement.amount), 0),
                func.count(Movement.id),
            )
            .where(Movement.account_id == account_id)
            .group_by(Movement.movement_type)
        ).all()

        computed = to_money(account.initial_balance)
        count = 0
        for movement_type, total, n in rows:
            computed += signed_amount(movement_type, to_money(total))
            count += n

        cached = to_money(account.balance)
        return BalanceCheck(
            account_id=account.id,
            cached_balance=cached,
            computed_balance=computed,
            drift=cached - computed,
            movement_count=count,
        )
