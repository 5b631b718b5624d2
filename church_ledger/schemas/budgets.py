"""
Pydantic schemas for budgets and budget items.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from church_ledger.models.enums import BudgetStatus, CategoryType


class BudgetCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    start_date: dt.date
    end_date: dt.date
    total_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    status: BudgetStatus = BudgetStatus.DRAFT

    @model_validator(mode="after")
    def end_after_start(self) -> "BudgetCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetResponse(BaseModel):
    id: str
    title: str
    description: str | None
    start_date: dt.date
    end_date: dt.date
    total_amount: Decimal
    status: BudgetStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class BudgetItemCreate(BaseModel):
    category_id: str | None = None
    category_type: CategoryType = CategoryType.EXPENDITURE
    description: str | None = Field(default=None, max_length=500)
    planned_amount: Decimal = Field(ge=0, decimal_places=4)


class BudgetItemResponse(BaseModel):
    id: str
    budget_id: str
    category_id: str | None
    category_type: CategoryType
    description: str | None
    planned_amount: Decimal
    actual_amount: Decimal
    variance: Decimal
    updated_at: datetime

    model_config = {"from_attributes": True}
