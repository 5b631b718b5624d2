"""
Income and expenditure API endpoints, including entry deletion.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from church_ledger.models.base import get_db
from church_ledger.models.enums import EntryTable
from church_ledger.services.budget_service import BudgetService
from church_ledger.services.deletion_service import EntryDeletionService
from church_ledger.services.entry_service import EntryService
from church_ledger.schemas.entries import (
    IncomeEntryCreate,
    IncomeEntryResponse,
    ExpenditureEntryCreate,
    ExpenditureEntryResponse,
    EntryAmountUpdate,
    DeletionReportResponse,
    BudgetSyncResponse,
)

router = APIRouter(prefix="/finance", tags=["Entries"])


@router.post("/income", response_model=IncomeEntryResponse, status_code=201)
def create_income(
    request: IncomeEntryCreate,
    db: Session = Depends(get_db),
):
    service = EntryService(db)
    try:
        return service.create_income(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/expenditures", response_model=ExpenditureEntryResponse, status_code=201)
def create_expenditure(
    request: ExpenditureEntryCreate,
    db: Session = Depends(get_db),
):
    service = EntryService(db)
    try:
        return service.create_expenditure(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/income/{entry_id}", response_model=IncomeEntryResponse)
def update_income_amount(
    entry_id: str,
    request: EntryAmountUpdate,
    db: Session = Depends(get_db),
):
    service = EntryService(db)
    try:
        return service.update_entry_amount(EntryTable.INCOME, entry_id, request.amount)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/expenditures/{entry_id}", response_model=ExpenditureEntryResponse)
def update_expenditure_amount(
    entry_id: str,
    request: EntryAmountUpdate,
    db: Session = Depends(get_db),
):
    service = EntryService(db)
    try:
        return service.update_entry_amount(
            EntryTable.EXPENDITURE, entry_id, request.amount
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/expenditures/{expenditure_id}/budget-item",
    response_model=BudgetSyncResponse,
)
def update_budget_item_for_expenditure(
    expenditure_id: str,
    db: Session = Depends(get_db),
):
    """Count a stored expenditure against its budget line."""
    updated = BudgetService(db).update_budget_item_for_expenditure(expenditure_id)
    return BudgetSyncResponse(expenditure_id=expenditure_id, updated=updated)


@router.delete("/entries/{table}/{entry_id}", response_model=DeletionReportResponse)
def delete_financial_entry(
    table: EntryTable,
    entry_id: str,
    db: Session = Depends(get_db),
):
    """
    Delete an entry and repair the balances derived from it.

    200 whenever the row was deleted, with any bookkeeping problems
    listed as warnings. 404 if the entry does not exist, 500 if the
    delete itself failed.
    """
    report = EntryDeletionService(db).delete_financial_entry(table.value, entry_id)
    if not report.deleted:
        status_code = 404 if report.error == "Entry not found" else 500
        raise HTTPException(status_code=status_code, detail=report.notice)
    return DeletionReportResponse.from_report(report)
