"""
Transfer service — two-leg transfers between a user's accounts.

A transfer is persisted as two movements:

    OUTFLOW leg on the source account       (pair_id -> inflow leg)
    INFLOW  leg on the destination account  (pair_id -> outflow leg)

Both legs carry the same amount, concept, date and notes, and
point at each other's account through counter_account_id.
Callers work with the Transfer value object and never touch a
lone leg: both legs are created, edited and deleted together,
in the same unit of work as the two balance changes.

Lifecycle:
    nonexistent --create--> paired --update--> paired --delete--> nonexistent

Deletion goes through MovementService.delete, which resolves
the pair with load_from_leg().
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from personal_ledger.exceptions import (
    BadRequestError,
    IntegrityFaultError,
    NotFoundError,
)
from personal_ledger.logging_config import get_logger
from personal_ledger.models import Account, Movement, MovementType
from personal_ledger.models.base import atomic
from personal_ledger.money import to_money
from personal_ledger.schemas.movement import (
    AccountSummary,
    MovementResponse,
    TransferCreate,
    TransferResponse,
    TransferUpdate,
)
from personal_ledger.services.balance_projector import (
    BalanceProjector,
    reversal_delta,
)
from personal_ledger.services.lookup_service import LookupService
from personal_ledger.services.movement_writer import MovementWriter

logger = get_logger(__name__)

# Fields kept identical on both legs
SHARED_FIELDS = ("amount", "concept", "date", "notes")


@dataclass(frozen=True)
class Transfer:
    """Both legs of one transfer, ordered by direction."""

    outflow: Movement
    inflow: Movement

    @classmethod
    def from_legs(cls, leg: Movement, pair: Movement) -> "Transfer":
        """
        Build a transfer from a leg and its pair, in either order.

        Raises IntegrityFaultError if the two rows do not form a
        consistent pair; that state is not reachable through this
        service and must not be edited further.
        """
        linked = (
            leg.is_transfer
            and pair.is_transfer
            and leg.pair_id == pair.id
            and pair.pair_id == leg.id
            and leg.movement_type != pair.movement_type
        )
        if not linked:
            logger.error(
                "inconsistent transfer pair",
                extra={"movement_id": leg.id, "pair_id": pair.id},
            )
            raise IntegrityFaultError(
                f"Movements {leg.id} and {pair.id} do not form a transfer",
                movement_id=leg.id,
                pair_id=pair.id,
            )

        if leg.movement_type == MovementType.OUTFLOW:
            return cls(outflow=leg, inflow=pair)
        return cls(outflow=pair, inflow=leg)

    @property
    def legs(self) -> tuple[Movement, Movement]:
        return (self.outflow, self.inflow)

    @property
    def amount(self) -> Decimal:
        return self.outflow.amount

    @property
    def concept(self) -> str:
        return self.outflow.concept

    @property
    def date(self) -> datetime:
        return self.outflow.date

    @property
    def notes(self) -> str | None:
        return self.outflow.notes

    @property
    def source_account_id(self) -> uuid.UUID:
        return self.outflow.account_id

    @property
    def destination_account_id(self) -> uuid.UUID:
        return self.inflow.account_id


class TransferService:
    """
    Creates and edits transfers.

    Each public method is a single unit of work: the legs, the
    pair links and both balance changes commit together or not
    at all.
    """

    def __init__(self, db: Session):
        self.db = db
        self.lookups = LookupService(db)
        self.projector = BalanceProjector(db)
        self.writer = MovementWriter(db)

    def load(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> Transfer:
        """
        Resolve a transfer from the id of either of its legs.

        Both legs are locked and re-read, so the caller works on
        their current state until its unit of work ends.
        """
        leg = self.db.execute(
            select(Movement)
            .where(
                Movement.id == movement_id,
                Movement.user_id == user_id,
                Movement.is_transfer.is_(True),
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if not leg:
            raise NotFoundError(
                f"Transfer {movement_id} not found", movement_id=movement_id
            )
        return self.load_from_leg(leg)

    def load_from_leg(self, leg: Movement) -> Transfer:
        """Resolve the pair of an already loaded transfer leg."""
        if leg.pair_id is None:
            raise BadRequestError(
                f"Transfer movement {leg.id} has no linked pair",
                movement_id=leg.id,
            )

        pair = self.db.execute(
            select(Movement)
            .where(
                Movement.id == leg.pair_id,
                Movement.user_id == leg.user_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if not pair:
            raise NotFoundError(
                f"Paired movement {leg.pair_id} of transfer {leg.id} not found",
                movement_id=leg.id,
                pair_id=leg.pair_id,
            )
        return Transfer.from_legs(leg, pair)

    def create(self, user_id: uuid.UUID, request: TransferCreate) -> TransferResponse:
        """
        Move money from one of the user's accounts to another.

        Checked in order, before anything is written:
        - both accounts exist, belong to the user and are active
        - source and destination differ
        - both accounts use the same currency
        - the source's cached balance covers the amount

        The balance check is advisory: cached balances are a
        projection, so it only guards against obviously wrong input.
        """
        amount = to_money(request.amount)

        with atomic(self.db):
            source = self.lookups.get_active_account(
                user_id, request.source_account_id, label="Source account"
            )
            destination = self.lookups.get_active_account(
                user_id, request.destination_account_id, label="Destination account"
            )

            if source.id == destination.id:
                raise BadRequestError(
                    "Cannot transfer to the same account",
                    account_id=source.id,
                )

            if source.currency != destination.currency:
                raise BadRequestError(
                    f"Accounts must share a currency. "
                    f"Source: {source.currency}, destination: {destination.currency}",
                    source_currency=source.currency,
                    destination_currency=destination.currency,
                )

            available = to_money(source.balance)
            if available < amount:
                logger.warning(
                    "transfer rejected: insufficient balance",
                    extra={"account_id": source.id, "available": available, "required": amount},
                )
                raise BadRequestError(
                    f"Insufficient balance. Available: {available}, required: {amount}",
                    available=available,
                    required=amount,
                )

            category = self.lookups.get_or_create_transfer_category(user_id)

            outflow = Movement(
                user_id=user_id,
                account_id=source.id,
                category_id=category.id,
                movement_type=MovementType.OUTFLOW,
                amount=amount,
                concept=request.concept,
                date=request.date,
                notes=request.notes,
                is_transfer=True,
                counter_account_id=destination.id,
                pair_id=None,
            )
            self.db.add(outflow)
            self.db.flush()

            inflow = Movement(
                user_id=user_id,
                account_id=destination.id,
                category_id=category.id,
                movement_type=MovementType.INFLOW,
                amount=amount,
                concept=request.concept,
                date=request.date,
                notes=request.notes,
                is_transfer=True,
                counter_account_id=source.id,
                pair_id=outflow.id,
            )
            self.db.add(inflow)
            self.db.flush()

            outflow.pair_id = inflow.id
            self.db.flush()

            source = self.projector.apply_delta(source.id, -amount)
            destination = self.projector.apply_delta(destination.id, amount)

            transfer = Transfer.from_legs(outflow, inflow)
            result = self._response(transfer, source, destination)

        logger.info(
            "transfer created",
            extra={
                "outflow_id": transfer.outflow.id,
                "inflow_id": transfer.inflow.id,
                "amount": amount,
            },
        )
        return result

    def update(
        self, movement_id: uuid.UUID, user_id: uuid.UUID, request: TransferUpdate
    ) -> TransferResponse:
        """
        Edit a transfer through either leg's id.

        When the amount changes, each leg's own account gets one
        combined delta (undo old, apply new); the legs may sit on
        accounts with different histories, so each is computed
        from that leg's direction. Both legs then receive the
        same field values so they stay mirror images.
        """
        changes = request.model_dump(exclude_unset=True)

        with atomic(self.db):
            transfer = self.load(movement_id, user_id)

            new_amount = changes.get("amount")
            if new_amount is not None:
                new_amount = to_money(new_amount)
                for leg in transfer.legs:
                    self.writer.change_amount(leg, new_amount)
                    self.projector.apply_delta(
                        leg.account_id,
                        reversal_delta(leg.movement_type, leg.amount, new_amount),
                    )

            for leg in transfer.legs:
                for field in SHARED_FIELDS:
                    if field == "amount" or field not in changes:
                        continue
                    # notes may be cleared; the other fields are required
                    if changes[field] is None and field != "notes":
                        continue
                    setattr(leg, field, changes[field])
            self.db.flush()

            source = self.db.get(
                Account, transfer.source_account_id, populate_existing=True
            )
            destination = self.db.get(
                Account, transfer.destination_account_id, populate_existing=True
            )
            if source is None or destination is None:
                raise NotFoundError(
                    f"Account of transfer {movement_id} not found",
                    movement_id=movement_id,
                )

            for leg in transfer.legs:
                self.db.refresh(leg)
            result = self._response(transfer, source, destination)

        logger.info(
            "transfer updated",
            extra={
                "outflow_id": transfer.outflow.id,
                "inflow_id": transfer.inflow.id,
                "fields": ",".join(sorted(changes)),
            },
        )
        return result

    def _response(
        self, transfer: Transfer, source: Account, destination: Account
    ) -> TransferResponse:
        return TransferResponse(
            outflow=MovementResponse.model_validate(transfer.outflow),
            inflow=MovementResponse.model_validate(transfer.inflow),
            source_account=AccountSummary.model_validate(source),
            destination_account=AccountSummary.model_validate(destination),
        )
