"""
Transaction API endpoints.

The API layer is thin: it parses the request, calls one
service method and returns its result. Each service method
is its own unit of work, so no endpoint commits. Ledger
errors are turned into responses by the handlers in
personal_ledger.api.errors.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from personal_ledger.api.deps import get_current_user_id
from personal_ledger.config import get_settings
from personal_ledger.models.base import get_db
from personal_ledger.models.enums import MovementType
from personal_ledger.schemas.movement import (
    MovementCreate,
    MovementDetail,
    MovementResult,
    MovementUpdate,
    TransferCreate,
    TransferResponse,
    TransferUpdate,
)
from personal_ledger.schemas.query import (
    CategoryBreakdown,
    MovementFilters,
    MovementPage,
)
from personal_ledger.services.movement_service import MovementService
from personal_ledger.services.query_service import LedgerQueryService
from personal_ledger.services.transfer_service import TransferService

router = APIRouter(prefix="/transactions", tags=["Transactions"])
settings = get_settings()


# --- Statistics (declared before /{movement_id}) ---

@router.get("/stats/by-category", response_model=CategoryBreakdown)
def expenses_by_category(
    month: int = Query(ge=1, le=12),
    year: int = Query(ge=1970, le=9999),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Expenses of one month grouped by category."""
    return LedgerQueryService(db).category_breakdown(user_id, month, year)


# --- Transfers ---

@router.post("/transfer", response_model=TransferResponse, status_code=201)
def create_transfer(
    request: TransferCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Transfer money between two of the user's accounts."""
    return TransferService(db).create(user_id, request)


@router.put("/transfer/{movement_id}", response_model=TransferResponse)
def update_transfer(
    movement_id: uuid.UUID,
    request: TransferUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Edit both legs of a transfer through either leg's id."""
    return TransferService(db).update(movement_id, user_id, request)


# --- Movements ---

@router.get("", response_model=MovementPage)
def list_movements(
    account_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    movement_type: MovementType | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List movements with filters, pagination and period totals."""
    try:
        filters = MovementFilters(
            account_id=account_id,
            category_id=category_id,
            movement_type=movement_type,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            offset=offset,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return LedgerQueryService(db).list(user_id, filters)


@router.get("/{movement_id}", response_model=MovementDetail)
def get_movement(
    movement_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get one movement; transfer legs include their pair."""
    return MovementService(db).find_by_id(movement_id, user_id)


@router.post("", response_model=MovementResult, status_code=201)
def create_movement(
    request: MovementCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record an income or expense."""
    return MovementService(db).create(user_id, request)


@router.put("/{movement_id}", response_model=MovementResult)
def update_movement(
    movement_id: uuid.UUID,
    request: MovementUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Edit an income or expense. Transfers use PUT /transfer/{id}."""
    return MovementService(db).update(movement_id, user_id, request)


@router.delete("/{movement_id}")
def delete_movement(
    movement_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a movement; deleting a transfer leg deletes both legs."""
    deleted = MovementService(db).delete(movement_id, user_id)
    return {"success": True, "deleted": [str(i) for i in deleted]}
