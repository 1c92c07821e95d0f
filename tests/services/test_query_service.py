"""
Tests for the LedgerQueryService.
"""

import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from personal_ledger.exceptions import BadRequestError
from personal_ledger.models import Account, Category, MovementType
from personal_ledger.schemas.movement import MovementCreate, TransferCreate
from personal_ledger.schemas.query import MovementFilters
from personal_ledger.services.movement_service import MovementService
from personal_ledger.services.query_service import (
    LedgerQueryService,
    month_bounds,
    shift_month,
)
from personal_ledger.services.transfer_service import TransferService


@pytest.fixture
def ledger(db_session, user_id, make_account, make_category):
    """
    A small ledger:

        Bank    +1000 salary (Mar 1), -300 rent (Mar 2), -50 food (Mar 20)
        Wallet  -20 food (Apr 3)
        transfer Bank -> Wallet 100 (Mar 15)
    """
    bank = make_account("Bank", balance="0")
    wallet = make_account("Wallet", balance="0")
    salary = make_category("Sueldo")
    rent = make_category("Alquiler")
    food = make_category("Comida")
    service = MovementService(db_session)

    def add(account, category, movement_type, amount, date, concept):
        return service.create(user_id, MovementCreate(
            account_id=account.id,
            category_id=category.id,
            movement_type=movement_type,
            amount=Decimal(amount),
            concept=concept,
            date=date,
        )).movement

    entries = {
        "salary": add(bank, salary, MovementType.INFLOW, "1000", datetime(2025, 3, 1, 9), "Salary"),
        "rent": add(bank, rent, MovementType.OUTFLOW, "300", datetime(2025, 3, 2, 10), "Rent"),
        "food_mar": add(bank, food, MovementType.OUTFLOW, "50", datetime(2025, 3, 20, 13), "Market"),
        "food_apr": add(wallet, food, MovementType.OUTFLOW, "20", datetime(2025, 4, 3, 8), "Bakery"),
    }
    entries["transfer"] = TransferService(db_session).create(user_id, TransferCreate(
        source_account_id=bank.id,
        destination_account_id=wallet.id,
        amount=Decimal("100"),
        concept="Cash",
        date=datetime(2025, 3, 15, 18),
    ))
    return {
        "bank": bank, "wallet": wallet,
        "salary": salary, "rent": rent, "food": food,
        **entries,
    }


class TestHelpers:

    def test_month_bounds_cover_whole_month(self):
        start, end = month_bounds(2024, 2)
        assert start == datetime(2024, 2, 1)
        assert end == datetime(2024, 2, 29, 23, 59, 59, 999999)

    def test_month_bounds_reject_bad_month(self):
        with pytest.raises(BadRequestError):
            month_bounds(2025, 13)

    def test_shift_month_crosses_years(self):
        assert shift_month(2025, 2, -5) == (2024, 9)
        assert shift_month(2024, 12, 1) == (2025, 1)


class TestList:

    def test_lists_everything_newest_first(self, db_session, user_id, ledger):
        page = LedgerQueryService(db_session).list(user_id, MovementFilters())

        dates = [m.date for m in page.movements]
        assert dates == sorted(dates, reverse=True)
        assert page.pagination.total == 6
        assert page.pagination.has_more is False

    def test_totals_exclude_transfers(self, db_session, user_id, ledger):
        page = LedgerQueryService(db_session).list(user_id, MovementFilters())

        assert page.totals.total_income == Decimal("1000")
        assert page.totals.total_expenses == Decimal("370")
        assert page.totals.balance == Decimal("630")

    def test_type_filter_excludes_transfer_legs(self, db_session, user_id, ledger):
        page = LedgerQueryService(db_session).list(
            user_id, MovementFilters(movement_type=MovementType.OUTFLOW),
        )

        assert page.pagination.total == 3
        assert all(not m.is_transfer for m in page.movements)
        assert {m.concept for m in page.movements} == {"Rent", "Market", "Bakery"}

    def test_account_filter(self, db_session, user_id, ledger):
        page = LedgerQueryService(db_session).list(
            user_id, MovementFilters(account_id=ledger["wallet"].id),
        )

        assert page.pagination.total == 2
        assert page.totals.total_income == Decimal("0")
        assert page.totals.total_expenses == Decimal("20")

    def test_category_filter(self, db_session, user_id, ledger):
        page = LedgerQueryService(db_session).list(
            user_id, MovementFilters(category_id=ledger["food"].id),
        )

        assert page.pagination.total == 2
        assert all(m.category.name == "Comida" for m in page.movements)

    def test_date_range_is_inclusive(self, db_session, user_id, ledger):
        page = LedgerQueryService(db_session).list(
            user_id, MovementFilters(
                date_from=datetime(2025, 3, 2, 10),
                date_to=datetime(2025, 3, 20, 13),
            ),
        )

        assert {m.concept for m in page.movements} == {"Rent", "Cash", "Market"}
        assert page.totals.total_expenses == Decimal("350")

    def test_pagination(self, db_session, user_id, ledger):
        service = LedgerQueryService(db_session)

        first = service.list(user_id, MovementFilters(limit=4, offset=0))
        second = service.list(user_id, MovementFilters(limit=4, offset=4))

        assert len(first.movements) == 4
        assert first.pagination.has_more is True
        assert len(second.movements) == 2
        assert second.pagination.has_more is False
        assert not {m.id for m in first.movements} & {m.id for m in second.movements}

    def test_other_users_see_nothing(self, db_session, ledger):
        page = LedgerQueryService(db_session).list(uuid.uuid4(), MovementFilters())

        assert page.movements == []
        assert page.pagination.total == 0
        assert page.totals.balance == Decimal("0")

    def test_listing_does_not_touch_balances(self, db_session, user_id, ledger):
        LedgerQueryService(db_session).list(user_id, MovementFilters())

        assert db_session.get(Account, ledger["bank"].id).balance == Decimal("550")
        assert db_session.get(Account, ledger["wallet"].id).balance == Decimal("80")

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            MovementFilters(date_from=datetime(2025, 3, 2), date_to=datetime(2025, 3, 1))


class TestCategoryBreakdown:

    def test_groups_march_expenses(self, db_session, user_id, ledger):
        breakdown = LedgerQueryService(db_session).category_breakdown(user_id, 3, 2025)

        assert [c.category_name for c in breakdown.categories] == ["Alquiler", "Comida"]
        assert breakdown.categories[0].total_amount == Decimal("300")
        assert breakdown.categories[1].movement_count == 1
        assert breakdown.total == Decimal("350")

    def test_transfers_and_income_excluded(self, db_session, user_id, ledger):
        breakdown = LedgerQueryService(db_session).category_breakdown(user_id, 3, 2025)

        names = {c.category_name for c in breakdown.categories}
        assert "Transfers" not in names
        assert "Sueldo" not in names

    def test_deleted_category_uses_placeholder(self, db_session, user_id, ledger):
        db_session.delete(db_session.get(Category, ledger["food"].id))
        db_session.commit()

        breakdown = LedgerQueryService(db_session).category_breakdown(user_id, 4, 2025)

        assert len(breakdown.categories) == 1
        item = breakdown.categories[0]
        assert item.category_id == ledger["food"].id
        assert item.category_name == "Uncategorized"
        assert item.category_color == "#6B7280"

    def test_empty_month(self, db_session, user_id, ledger):
        breakdown = LedgerQueryService(db_session).category_breakdown(user_id, 1, 2025)

        assert breakdown.categories == []
        assert breakdown.total == Decimal("0")


class TestMonthlyStats:

    def test_march_statistics(self, db_session, user_id, ledger):
        stats = LedgerQueryService(db_session).monthly_stats(user_id, 3, 2025)

        assert stats.totals.total_income == Decimal("1000")
        assert stats.totals.total_expenses == Decimal("350")
        shares = {c.category_name: c.percentage for c in stats.by_category}
        assert shares == {"Alquiler": Decimal("85.71"), "Comida": Decimal("14.29")}

    def test_evolution_covers_six_months_ending_at_request(self, db_session, user_id, ledger):
        stats = LedgerQueryService(db_session).monthly_stats(user_id, 4, 2025)

        assert [(e.year, e.month) for e in stats.evolution] == [
            (2024, 11), (2024, 12), (2025, 1), (2025, 2), (2025, 3), (2025, 4),
        ]
        assert stats.evolution[-2].balance == Decimal("650")
        assert stats.evolution[-1].expenses == Decimal("20")

    def test_accounts_ordered_by_balance(self, db_session, user_id, ledger):
        stats = LedgerQueryService(db_session).monthly_stats(user_id, 3, 2025)

        assert [a.account_name for a in stats.accounts] == ["Bank", "Wallet"]
        assert stats.accounts[0].balance == Decimal("550")
