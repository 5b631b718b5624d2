"""
Pydantic schemas for bank reconciliations, adjustments, and the
results the reconciliation components hand back to the deletion
orchestrator.
"""

import datetime as dt
import enum
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from church_ledger.models.enums import CategoryType, ReconciliationStatus


# --- Request Schemas ---

class ReconciliationCreate(BaseModel):
    account_id: str
    start_date: dt.date
    end_date: dt.date
    bank_balance: Decimal = Field(decimal_places=4)
    notes: str | None = None

    @model_validator(mode="after")
    def end_after_start(self) -> "ReconciliationCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class AdjustmentCreate(BaseModel):
    """A manual entry that forces the book balance toward the bank figure."""
    adjustment_type: CategoryType
    amount: Decimal = Field(gt=0, decimal_places=4)
    description: str = Field(min_length=3, max_length=400)
    date: dt.date = Field(default_factory=dt.date.today)


# --- Response Schemas ---

class ReconciliationResponse(BaseModel):
    id: str
    account_id: str
    start_date: dt.date
    end_date: dt.date
    bank_balance: Decimal
    book_balance: Decimal
    difference: Decimal
    status: ReconciliationStatus
    reconciled: bool
    has_manual_adjustments: bool
    pending_adjustment_delta: Decimal
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# --- Component Results ---

class ReconciliationMatch(BaseModel):
    """Which reconciliation an entry belongs to, and how that was found."""
    reconciliation_id: str
    strategy: str


class BookBalanceStatus(str, enum.Enum):
    UPDATED = "updated"
    PRESERVED = "preserved"
    FAILED = "failed"


class BookBalanceResult(BaseModel):
    status: BookBalanceStatus
    reconciliation_id: str
    book_balance: Decimal | None = None
    delta_applied: Decimal = Decimal("0")
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != BookBalanceStatus.FAILED
