"""
Budget API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from church_ledger.models.base import get_db
from church_ledger.services.budget_service import BudgetService
from church_ledger.schemas.budgets import (
    BudgetCreate,
    BudgetResponse,
    BudgetItemCreate,
    BudgetItemResponse,
)

router = APIRouter(prefix="/finance", tags=["Budgets"])


@router.post("/budgets", response_model=BudgetResponse, status_code=201)
def create_budget(
    request: BudgetCreate,
    db: Session = Depends(get_db),
):
    return BudgetService(db).create_budget(request)


@router.post(
    "/budgets/{budget_id}/items",
    response_model=BudgetItemResponse,
    status_code=201,
)
def add_budget_item(
    budget_id: str,
    request: BudgetItemCreate,
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    try:
        return service.add_item(budget_id, request)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/budget-items/{item_id}", response_model=BudgetItemResponse)
def get_budget_item(
    item_id: str,
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    try:
        return service.get_item(item_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
