"""
Pydantic schemas for accounts and transfers.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from church_ledger.models.enums import AccountType


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType = AccountType.BANK
    account_number: str | None = Field(default=None, max_length=50)
    bank_name: str | None = Field(default=None, max_length=100)
    opening_balance: Decimal = Field(default=Decimal("0"), decimal_places=4)
    is_default: bool = False


class AccountResponse(BaseModel):
    id: str
    name: str
    account_type: AccountType
    account_number: str | None
    bank_name: str | None
    is_default: bool
    opening_balance: Decimal
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountBalanceResponse(BaseModel):
    account_id: str
    balance: Decimal


class RecalculateAllResponse(BaseModel):
    """Per-account result; None marks an account that could not be recalculated."""
    balances: dict[str, Decimal | None]


class TransferCreate(BaseModel):
    source_account_id: str
    destination_account_id: str
    amount: Decimal = Field(gt=0, decimal_places=4)
    date: dt.date = Field(default_factory=dt.date.today)
    description: str = Field(default="Account transfer", max_length=500)


class TransferResponse(BaseModel):
    id: str
    date: dt.date
    source_account_id: str
    destination_account_id: str
    amount: Decimal
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
