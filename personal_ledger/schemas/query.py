"""
Pydantic schemas for ledger queries and statistics.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field, model_validator

from personal_ledger.config import get_settings
from personal_ledger.models.enums import AccountType, MovementType
from personal_ledger.schemas.movement import MovementResponse

settings = get_settings()


# --- Request Schemas ---

class MovementFilters(BaseModel):
    """
    Filters for listing movements.

    Selecting a movement_type excludes transfer legs: transfers
    are reported apart from categorised income and expenses.
    The date range is inclusive on both ends.
    """
    account_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    movement_type: MovementType | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = Field(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_range(self) -> "MovementFilters":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


# --- Response Schemas ---

class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class PeriodTotals(BaseModel):
    """Income and expenses of non-transfer movements, and their difference."""
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal


class MovementPage(BaseModel):
    movements: list[MovementResponse]
    pagination: Pagination
    totals: PeriodTotals


class CategoryTotal(BaseModel):
    category_id: uuid.UUID
    category_name: str
    category_icon: str
    category_color: str
    total_amount: Decimal
    movement_count: int
    # Share of the period's expenses; only filled in by monthly stats
    percentage: Decimal | None = None


class CategoryBreakdown(BaseModel):
    month: int
    year: int
    categories: list[CategoryTotal]
    total: Decimal


class MonthTotals(BaseModel):
    month: int
    year: int
    income: Decimal
    expenses: Decimal
    balance: Decimal


class AccountBalanceSummary(BaseModel):
    account_id: uuid.UUID
    account_name: str
    account_type: AccountType
    balance: Decimal
    currency: str


class FinanceStats(BaseModel):
    month: int
    year: int
    totals: PeriodTotals
    by_category: list[CategoryTotal]
    evolution: list[MonthTotals]
    accounts: list[AccountBalanceSummary]


class BalanceCheck(BaseModel):
    """Cached balance compared against the balance rebuilt from movements."""
    account_id: uuid.UUID
    cached_balance: Decimal
    computed_balance: Decimal
    drift: Decimal
    movement_count: int

    @computed_field
    @property
    def is_consistent(self) -> bool:
        return self.drift == 0
