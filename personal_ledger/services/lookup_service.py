"""
Lookups of the accounts and categories the ledger references.

Accounts and categories are owned by other parts of the
tracker. The ledger only needs to find them scoped to the
requesting user, plus resolve (or create) the shared category
every transfer leg is filed under.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from personal_ledger.config import get_settings
from personal_ledger.exceptions import NotFoundError
from personal_ledger.logging_config import get_logger
from personal_ledger.models import Account, Category, CategoryScope

logger = get_logger(__name__)

TRANSFER_CATEGORY_ICON = "swap-horizontal"
TRANSFER_CATEGORY_COLOR = "#6B7280"


class LookupService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def get_active_account(
        self, user_id: uuid.UUID, account_id: uuid.UUID, label: str = "Account"
    ) -> Account:
        """Return the user's account if it exists and is active."""
        account = self.db.execute(
            select(Account).where(
                Account.id == account_id,
                Account.user_id == user_id,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()

        if not account:
            raise NotFoundError(
                f"{label} {account_id} not found or inactive",
                account_id=account_id,
            )
        return account

    def get_account(self, user_id: uuid.UUID, account_id: uuid.UUID) -> Account:
        """Return the user's account whether or not it is active."""
        account = self.db.execute(
            select(Account).where(
                Account.id == account_id,
                Account.user_id == user_id,
            )
        ).scalar_one_or_none()

        if not account:
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )
        return account

    def get_expense_category(
        self, user_id: uuid.UUID, category_id: uuid.UUID
    ) -> Category:
        """Return the user's category if it is usable for movements."""
        category = self.db.execute(
            select(Category).where(
                Category.id == category_id,
                Category.user_id == user_id,
                Category.scope == CategoryScope.EXPENSES,
            )
        ).scalar_one_or_none()

        if not category:
            raise NotFoundError(
                f"Category {category_id} not found or not an expenses category",
                category_id=category_id,
            )
        return category

    def get_or_create_transfer_category(self, user_id: uuid.UUID) -> Category:
        """
        Get the user's shared transfers category, creating it if needed.

        Every movement needs a category, including transfer legs,
        so transfers are filed under this one without asking.
        Runs in the caller's session: if the transfer fails the
        new category is rolled back with it.
        """
        name = self.settings.TRANSFER_CATEGORY_NAME
        category = self.db.execute(
            select(Category).where(
                Category.user_id == user_id,
                Category.name == name,
                Category.scope == CategoryScope.EXPENSES,
            ).limit(1)
        ).scalar_one_or_none()

        if not category:
            category = Category(
                user_id=user_id,
                name=name,
                icon=TRANSFER_CATEGORY_ICON,
                color=TRANSFER_CATEGORY_COLOR,
                scope=CategoryScope.EXPENSES,
                is_default=False,
            )
            self.db.add(category)
            self.db.flush()
            logger.info(
                "transfer category created",
                extra={"user_id": user_id, "category_id": category.id},
            )

        return category
