"""
Typed exceptions raised by the ledger.

Three kinds, caught by type rather than by message:

    LedgerError (base)
    |
    +-- NotFoundError        referenced row missing, not owned or inactive
    +-- BadRequestError      business rule violated by valid-looking input
    +-- IntegrityFaultError  a ledger invariant broke mid-operation (fatal)

Every exception has a machine-readable ``code`` and a ``details``
dict with the ids and values needed to build a readable message.
The HTTP layer maps the kinds to status codes; services only raise.
"""

from typing import Any


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }


class NotFoundError(LedgerError):
    """Account, category, movement or transfer pair not found for the user."""

    code = "NOT_FOUND"


class BadRequestError(LedgerError):
    """
    The input is well-formed but breaks a ledger rule.

    Examples: editing a transfer leg directly, transferring to the
    same account, mismatched currencies, insufficient balance.
    """

    code = "BAD_REQUEST"


class IntegrityFaultError(LedgerError):
    """
    A ledger invariant was found broken while an operation ran.

    Raised when an account disappears between validation and the
    balance increment, or a transfer is found with a single leg.
    Never retried: the surrounding unit of work is rolled back.
    """

    code = "INTEGRITY_FAULT"
