"""
Shared enumerations for database models.

Python enums mapped to database enums mean only valid values
can be stored.
"""

import enum


class MovementType(str, enum.Enum):
    """Direction of a movement relative to its account."""
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"

    @property
    def sign(self) -> int:
        return 1 if self is MovementType.INFLOW else -1


class CategoryScope(str, enum.Enum):
    """Which part of the tracker a category belongs to."""
    EXPENSES = "EXPENSES"
    HABITS = "HABITS"
    TASKS = "TASKS"


class AccountType(str, enum.Enum):
    CASH = "CASH"
    BANK = "BANK"
    CREDIT_CARD = "CREDIT_CARD"
    SAVINGS = "SAVINGS"
    INVESTMENT = "INVESTMENT"
    OTHER = "OTHER"
