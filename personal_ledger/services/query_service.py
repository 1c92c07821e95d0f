"""
Ledger query service — listings, period totals and statistics.

Everything here is read-only. Income and expense totals only
count non-transfer movements: moving money between two of the
user's own accounts is neither income nor spending.
"""

import calendar
import uuid
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from personal_ledger.exceptions import BadRequestError
from personal_ledger.models import Account, Category, Movement, MovementType
from personal_ledger.money import ZERO, to_money
from personal_ledger.schemas.movement import MovementResponse
from personal_ledger.schemas.query import (
    AccountBalanceSummary,
    CategoryBreakdown,
    CategoryTotal,
    FinanceStats,
    MonthTotals,
    MovementFilters,
    MovementPage,
    Pagination,
    PeriodTotals,
)

# Shown for movements whose category was deleted after they were recorded
FALLBACK_CATEGORY_NAME = "Uncategorized"
FALLBACK_CATEGORY_ICON = "📄"
FALLBACK_CATEGORY_COLOR = "#6B7280"

EVOLUTION_MONTHS = 6


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month, both inclusive."""
    if not 1 <= month <= 12:
        raise BadRequestError(f"Invalid month: {month}", month=month)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day) + timedelta(days=1) - timedelta(microseconds=1)
    return start, end


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move (year, month) by offset months; negative goes back."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


class LedgerQueryService:

    def __init__(self, db: Session):
        self.db = db

    def list(self, user_id: uuid.UUID, filters: MovementFilters) -> MovementPage:
        """
        Page through the user's movements, newest first.

        The total count uses the same filters as the page. The
        income/expense totals use the same account, category and
        date filters but ignore the direction filter and always
        leave out transfer legs.
        """
        scope = [Movement.user_id == user_id]
        if filters.account_id:
            scope.append(Movement.account_id == filters.account_id)
        if filters.category_id:
            scope.append(Movement.category_id == filters.category_id)
        if filters.date_from:
            scope.append(Movement.date >= filters.date_from)
        if filters.date_to:
            scope.append(Movement.date <= filters.date_to)

        conditions = list(scope)
        if filters.movement_type:
            conditions.append(Movement.movement_type == filters.movement_type)
            conditions.append(Movement.is_transfer.is_(False))

        movements = self.db.execute(
            select(Movement)
            .where(*conditions)
            .options(
                selectinload(Movement.account),
                selectinload(Movement.category),
            )
            .order_by(Movement.date.desc(), Movement.created_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        ).scalars().all()

        total = self.db.execute(
            select(func.count(Movement.id)).where(*conditions)
        ).scalar_one()

        totals = self._period_totals(scope)

        return MovementPage(
            movements=[MovementResponse.model_validate(m) for m in movements],
            pagination=Pagination(
                total=total,
                limit=filters.limit,
                offset=filters.offset,
                has_more=filters.offset + filters.limit < total,
            ),
            totals=totals,
        )

    def category_breakdown(
        self, user_id: uuid.UUID, month: int, year: int
    ) -> CategoryBreakdown:
        """
        Expenses of one calendar month grouped by category.

        Only non-transfer outflows count. Sorted by total amount,
        largest first.
        """
        start, end = month_bounds(year, month)

        rows = self.db.execute(
            select(
                Movement.category_id,
                func.coalesce(func.sum(Movement.amount), 0),
                func.count(Movement.id),
            )
            .where(
                Movement.user_id == user_id,
                Movement.movement_type == MovementType.OUTFLOW,
                Movement.is_transfer.is_(False),
                Movement.date >= start,
                Movement.date <= end,
            )
            .group_by(Movement.category_id)
        ).all()

        category_ids = [row[0] for row in rows]
        categories = {}
        if category_ids:
            categories = {
                c.id: c
                for c in self.db.execute(
                    select(Category).where(Category.id.in_(category_ids))
                ).scalars()
            }

        items = []
        for category_id, amount, count in rows:
            category = categories.get(category_id)
            items.append(CategoryTotal(
                category_id=category_id,
                category_name=category.name if category else FALLBACK_CATEGORY_NAME,
                category_icon=category.icon if category else FALLBACK_CATEGORY_ICON,
                category_color=category.color if category else FALLBACK_CATEGORY_COLOR,
                total_amount=to_money(amount),
                movement_count=count,
            ))

        items.sort(key=lambda item: (-item.total_amount, item.category_name))
        total = sum((item.total_amount for item in items), ZERO)

        return CategoryBreakdown(
            month=month,
            year=year,
            categories=items,
            total=total,
        )

    def monthly_stats(
        self,
        user_id: uuid.UUID,
        month: int | None = None,
        year: int | None = None,
    ) -> FinanceStats:
        """
        Dashboard statistics for one month.

        Includes the month's totals, its expense breakdown with
        each category's share, the last six months of totals
        ending at the requested month, and the user's active
        accounts ordered by balance. Defaults to the current month.
        """
        now = datetime.utcnow()
        month = month or now.month
        year = year or now.year

        start, end = month_bounds(year, month)
        totals = self._period_totals([
            Movement.user_id == user_id,
            Movement.date >= start,
            Movement.date <= end,
        ])

        breakdown = self.category_breakdown(user_id, month, year)
        for item in breakdown.categories:
            if totals.total_expenses > 0:
                share = item.total_amount / totals.total_expenses * 100
                item.percentage = share.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            else:
                item.percentage = Decimal("0.00")

        evolution = []
        for offset in range(-(EVOLUTION_MONTHS - 1), 1):
            y, m = shift_month(year, month, offset)
            month_start, month_end = month_bounds(y, m)
            month_totals = self._period_totals([
                Movement.user_id == user_id,
                Movement.date >= month_start,
                Movement.date <= month_end,
            ])
            evolution.append(MonthTotals(
                month=m,
                year=y,
                income=month_totals.total_income,
                expenses=month_totals.total_expenses,
                balance=month_totals.balance,
            ))

        accounts = self.db.execute(
            select(Account)
            .where(Account.user_id == user_id, Account.is_active.is_(True))
            .order_by(Account.balance.desc())
        ).scalars().all()

        return FinanceStats(
            month=month,
            year=year,
            totals=totals,
            by_category=breakdown.categories,
            evolution=evolution,
            accounts=[
                AccountBalanceSummary(
                    account_id=a.id,
                    account_name=a.name,
                    account_type=a.account_type,
                    balance=to_money(a.balance),
                    currency=a.currency,
                )
                for a in accounts
            ],
        )

    def _period_totals(self, conditions: Sequence) -> PeriodTotals:
        """Sum inflows and outflows of non-transfer movements."""
        rows = self.db.execute(
            select(
                Movement.movement_type,
                func.coalesce(func.sum(Movement.amount), 0),
            )
            .where(*conditions, Movement.is_transfer.is_(False))
            .group_by(Movement.movement_type)
        ).all()

        sums = {movement_type: to_money(amount) for movement_type, amount in rows}
        income = sums.get(MovementType.INFLOW, ZERO)
        expenses = sums.get(MovementType.OUTFLOW, ZERO)
        return PeriodTotals(
            total_income=income,
            total_expenses=expenses,
            balance=income - expenses,
        )
