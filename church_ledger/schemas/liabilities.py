"""
Pydantic schemas for liabilities.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from church_ledger.models.enums import LiabilityStatus


class LiabilityCreate(BaseModel):
    date: dt.date = Field(default_factory=dt.date.today)
    category_id: str | None = None
    creditor_name: str = Field(min_length=1, max_length=255)
    details: str | None = None
    total_amount: Decimal = Field(gt=0, decimal_places=4)
    due_date: dt.date | None = None
    is_loan: bool = False


class LiabilityResponse(BaseModel):
    id: str
    date: dt.date
    creditor_name: str
    details: str | None
    total_amount: Decimal
    amount_paid: Decimal
    amount_remaining: Decimal
    due_date: dt.date | None
    status: LiabilityStatus
    is_loan: bool
    created_at: datetime

    model_config = {"from_attributes": True}
