"""
Pydantic schemas for movements and transfers.

These define the contract of the ledger operations: what data
comes in, what data goes out. They are separate from the
database models because the operation shape and the storage
shape differ (a transfer is one request but two rows).
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from personal_ledger.models.enums import AccountType, MovementType
from personal_ledger.money import PositiveAmount

MAX_FUTURE_DAYS = 366


def normalize_date(value: datetime) -> datetime:
    """Store naive UTC; reject dates more than a year ahead."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    if value > datetime.utcnow() + timedelta(days=MAX_FUTURE_DAYS):
        raise ValueError("date cannot be more than one year in the future")
    return value


def clean_concept(value: str) -> str:
    """Strip surrounding whitespace and reject a blank result."""
    value = value.strip()
    if not value:
        raise ValueError("concept is required")
    return value


# --- Request Schemas ---

class MovementCreate(BaseModel):
    """A simple income or expense entry."""
    account_id: uuid.UUID
    category_id: uuid.UUID
    movement_type: MovementType
    amount: PositiveAmount
    concept: str = Field(min_length=1, max_length=200)
    date: datetime
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("concept")
    @classmethod
    def strip_concept(cls, v: str) -> str:
        return clean_concept(v)

    @field_validator("date")
    @classmethod
    def check_date(cls, v: datetime) -> datetime:
        return normalize_date(v)


class MovementUpdate(BaseModel):
    """
    Partial update of a simple movement.

    Direction and account cannot change: that would move the
    amount between balances. Only fields explicitly sent are
    applied, so notes can be cleared by sending null.
    """
    amount: PositiveAmount | None = None
    concept: str | None = Field(default=None, min_length=1, max_length=200)
    date: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)
    category_id: uuid.UUID | None = None

    @field_validator("concept")
    @classmethod
    def strip_concept(cls, v: str | None) -> str | None:
        return clean_concept(v) if v is not None else v

    @field_validator("date")
    @classmethod
    def check_date(cls, v: datetime | None) -> datetime | None:
        return normalize_date(v) if v is not None else v


class TransferCreate(BaseModel):
    """Move money between two of the user's accounts."""
    source_account_id: uuid.UUID
    destination_account_id: uuid.UUID
    amount: PositiveAmount
    concept: str = Field(min_length=1, max_length=200)
    date: datetime
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("concept")
    @classmethod
    def strip_concept(cls, v: str) -> str:
        return clean_concept(v)

    @field_validator("date")
    @classmethod
    def check_date(cls, v: datetime) -> datetime:
        return normalize_date(v)


class TransferUpdate(BaseModel):
    """Fields shared by both legs of a transfer."""
    amount: PositiveAmount | None = None
    concept: str | None = Field(default=None, min_length=1, max_length=200)
    date: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("concept")
    @classmethod
    def strip_concept(cls, v: str | None) -> str | None:
        return clean_concept(v) if v is not None else v

    @field_validator("date")
    @classmethod
    def check_date(cls, v: datetime | None) -> datetime | None:
        return normalize_date(v) if v is not None else v


# --- Response Schemas ---

class AccountSummary(BaseModel):
    id: uuid.UUID
    name: str
    account_type: AccountType
    currency: str
    balance: Decimal
    color: str | None = None
    icon: str | None = None

    model_config = {"from_attributes": True}


class CategorySummary(BaseModel):
    id: uuid.UUID
    name: str
    icon: str
    color: str

    model_config = {"from_attributes": True}


class MovementResponse(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    category_id: uuid.UUID
    movement_type: MovementType
    amount: Decimal
    concept: str
    date: datetime
    notes: str | None
    is_transfer: bool
    counter_account_id: uuid.UUID | None
    pair_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime
    account: AccountSummary
    category: CategorySummary | None

    model_config = {"from_attributes": True}


class TransferPairSummary(BaseModel):
    """The other leg of a transfer, as shown next to a movement."""
    id: uuid.UUID
    movement_type: MovementType
    amount: Decimal
    account: AccountSummary

    model_config = {"from_attributes": True}


class MovementDetail(MovementResponse):
    transfer_pair: TransferPairSummary | None = None


class MovementResult(BaseModel):
    """A written movement plus the account it moved, if it moved one."""
    movement: MovementResponse
    account: AccountSummary | None


class TransferResponse(BaseModel):
    outflow: MovementResponse
    inflow: MovementResponse
    source_account: AccountSummary
    destination_account: AccountSummary
