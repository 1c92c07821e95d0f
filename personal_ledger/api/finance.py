"""
Finance statistics and account balance endpoints.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from personal_ledger.api.deps import get_current_user_id
from personal_ledger.models.base import get_db
from personal_ledger.schemas.query import BalanceCheck, FinanceStats
from personal_ledger.services.balance_projector import BalanceProjector
from personal_ledger.services.lookup_service import LookupService
from personal_ledger.services.query_service import LedgerQueryService

router = APIRouter(tags=["Finance"])


@router.get("/finance/stats", response_model=FinanceStats)
def finance_stats(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1970, le=9999),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Monthly totals, category shares, six-month evolution and balances."""
    return LedgerQueryService(db).monthly_stats(user_id, month, year)


@router.get("/accounts/{account_id}/balance-check", response_model=BalanceCheck)
def balance_check(
    account_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Compare an account's cached balance with its movement history.

    A non-zero drift means the cached balance was written outside
    the ledger. Nothing is repaired.
    """
    account = LookupService(db).get_account(user_id, account_id)
    return BalanceProjector(db).verify(account.id)
