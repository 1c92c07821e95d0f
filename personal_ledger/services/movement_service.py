"""
Movement service — income and expense entries.

Each mutating operation:
1. Loads and validates everything it needs (account, category,
   the movement itself)
2. Writes the movement row(s)
3. Pushes the matching delta through BalanceProjector

all inside one atomic() unit, so the cached balance and the
movement history can never disagree after a commit.

Transfer legs can be read and deleted here, but never created
or edited: that goes through TransferService so both legs move
together.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from personal_ledger.exceptions import BadRequestError, NotFoundError
from personal_ledger.logging_config import get_logger
from personal_ledger.models import Movement
from personal_ledger.models.base import atomic
from personal_ledger.money import to_money
from personal_ledger.schemas.movement import (
    AccountSummary,
    MovementCreate,
    MovementDetail,
    MovementResponse,
    MovementResult,
    MovementUpdate,
    TransferPairSummary,
)
from personal_ledger.services.balance_projector import (
    BalanceProjector,
    reversal_delta,
    signed_amount,
)
from personal_ledger.services.lookup_service import LookupService
from personal_ledger.services.movement_writer import MovementWriter
from personal_ledger.services.transfer_service import TransferService

logger = get_logger(__name__)

# Fields a simple movement may change after creation
EDITABLE_FIELDS = ("amount", "concept", "date", "notes", "category_id")


class MovementService:

    def __init__(self, db: Session):
        self.db = db
        self.lookups = LookupService(db)
        self.projector = BalanceProjector(db)
        self.transfers = TransferService(db)
        self.writer = MovementWriter(db)

    def _get_owned(
        self, movement_id: uuid.UUID, user_id: uuid.UUID, for_update: bool = False
    ) -> Movement:
        stmt = select(Movement).where(
            Movement.id == movement_id,
            Movement.user_id == user_id,
        )
        if for_update:
            # Lock the row and re-read it; deltas are computed from this state
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        movement = self.db.execute(stmt).scalar_one_or_none()

        if not movement:
            raise NotFoundError(
                f"Movement {movement_id} not found", movement_id=movement_id
            )
        return movement

    def create(self, user_id: uuid.UUID, request: MovementCreate) -> MovementResult:
        """
        Record an income or expense and move the account balance.

        The account must be active and the category must be one
        of the user's expenses categories.
        """
        amount = to_money(request.amount)

        with atomic(self.db):
            account = self.lookups.get_active_account(user_id, request.account_id)
            self.lookups.get_expense_category(user_id, request.category_id)

            movement = Movement(
                user_id=user_id,
                account_id=account.id,
                category_id=request.category_id,
                movement_type=request.movement_type,
                amount=amount,
                concept=request.concept,
                date=request.date,
                notes=request.notes,
                is_transfer=False,
            )
            self.db.add(movement)
            self.db.flush()

            account = self.projector.apply_delta(
                account.id, signed_amount(movement.movement_type, amount)
            )
            result = MovementResult(
                movement=MovementResponse.model_validate(movement),
                account=AccountSummary.model_validate(account),
            )

        logger.info(
            "movement created",
            extra={
                "movement_id": movement.id,
                "account_id": account.id,
                "type": request.movement_type.value,
                "amount": amount,
            },
        )
        return result

    def find_by_id(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> MovementDetail:
        """
        Return one movement with its account and category.

        For a transfer leg the other leg is included as well.
        Read-only: no balance or movement is touched.
        """
        movement = self._get_owned(movement_id, user_id)
        detail = MovementDetail.model_validate(movement)

        if movement.is_transfer and movement.pair_id:
            pair = self.db.execute(
                select(Movement).where(
                    Movement.id == movement.pair_id,
                    Movement.user_id == user_id,
                )
            ).scalar_one_or_none()
            if pair:
                detail.transfer_pair = TransferPairSummary.model_validate(pair)

        return detail

    def update(
        self, movement_id: uuid.UUID, user_id: uuid.UUID, request: MovementUpdate
    ) -> MovementResult:
        """
        Edit a simple movement.

        A new amount is applied as one combined delta (reverse
        the old contribution, apply the new one). Concept, date,
        notes and category never touch the balance.
        """
        changes = request.model_dump(exclude_unset=True)

        with atomic(self.db):
            movement = self._get_owned(movement_id, user_id, for_update=True)

            if movement.is_transfer:
                logger.warning(
                    "direct edit of transfer leg rejected",
                    extra={"movement_id": movement_id},
                )
                raise BadRequestError(
                    "Transfers cannot be edited as single movements; "
                    "update the transfer instead",
                    movement_id=movement_id,
                )

            if changes.get("category_id") is not None:
                self.lookups.get_expense_category(user_id, changes["category_id"])

            account = None
            if changes.get("amount") is not None:
                new_amount = to_money(changes["amount"])
                self.writer.change_amount(movement, new_amount)
                account = self.projector.apply_delta(
                    movement.account_id,
                    reversal_delta(movement.movement_type, movement.amount, new_amount),
                )

            for field in EDITABLE_FIELDS:
                # amount was already written by change_amount
                if field == "amount" or field not in changes:
                    continue
                if changes[field] is None and field != "notes":
                    continue
                setattr(movement, field, changes[field])

            self.db.flush()
            self.db.refresh(movement)
            result = MovementResult(
                movement=MovementResponse.model_validate(movement),
                account=AccountSummary.model_validate(account) if account else None,
            )

        logger.info(
            "movement updated",
            extra={"movement_id": movement_id, "fields": ",".join(sorted(changes))},
        )
        return result

    def delete(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> list[uuid.UUID]:
        """
        Delete a movement and reverse its balance contribution.

        Deleting either leg of a transfer deletes both legs; each
        leg's contribution is reversed on its own account.
        Returns the ids of the deleted movements.
        """
        with atomic(self.db):
            movement = self._get_owned(movement_id, user_id, for_update=True)

            if movement.is_transfer:
                legs = self.transfers.load_from_leg(movement).legs
            else:
                legs = (movement,)

            deleted = []
            for leg in legs:
                account_id, delta = leg.account_id, -leg.signed_amount
                self.writer.remove(leg)
                self.projector.apply_delta(account_id, delta)
                deleted.append(leg.id)

        logger.info(
            "movement deleted",
            extra={"movement_ids": ",".join(str(i) for i in deleted)},
        )
        return deleted
