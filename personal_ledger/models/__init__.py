"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from personal_ledger.models.base import Base
from personal_ledger.models.enums import (
    AccountType,
    CategoryScope,
    MovementType,
)
from personal_ledger.models.account import Account
from personal_ledger.models.category import Category
from personal_ledger.models.movement import Movement

__all__ = [
    "Base",
    "AccountType",
    "CategoryScope",
    "MovementType",
    "Account",
    "Category",
    "Movement",
]
