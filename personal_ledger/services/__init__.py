"""Business logic services."""

from personal_ledger.services.balance_projector import BalanceProjector
from personal_ledger.services.lookup_service import LookupService
from personal_ledger.services.movement_service import MovementService
from personal_ledger.services.movement_writer import MovementWriter
from personal_ledger.services.transfer_service import Transfer, TransferService
from personal_ledger.services.query_service import LedgerQueryService

__all__ = [
    "BalanceProjector",
    "LookupService",
    "MovementService",
    "MovementWriter",
    "Transfer",
    "TransferService",
    "LedgerQueryService",
]
