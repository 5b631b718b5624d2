"""
Account and transfer API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from church_ledger.models.base import get_db
from church_ledger.services.account_service import AccountService
from church_ledger.services.account_balance_service import AccountBalanceService
from church_ledger.services.transfer_service import TransferService
from church_ledger.schemas.accounts import (
    AccountCreate,
    AccountResponse,
    AccountBalanceResponse,
    RecalculateAllResponse,
    TransferCreate,
    TransferResponse,
)

router = APIRouter(prefix="/finance", tags=["Accounts"])


# --- Account Endpoints ---

@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """Create an account at its opening balance."""
    service = AccountService(db)
    try:
        return service.create_account(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        return service.get_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/accounts/recalculate",
    response_model=RecalculateAllResponse,
)
def recalculate_all_balances(db: Session = Depends(get_db)):
    """Rebuild every account balance from its transaction log."""
    service = AccountBalanceService(db)
    return RecalculateAllResponse(balances=service.recalculate_all_balances())


@router.post(
    "/accounts/{account_id}/recalculate",
    response_model=AccountBalanceResponse,
)
def recalculate_balance(
    account_id: str,
    db: Session = Depends(get_db),
):
    """
    Rebuild one account's balance from its transaction log.

    404 if the account does not exist, 503 if it exists but could
    not be recalculated.
    """
    try:
        AccountService(db).get_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    balance = AccountBalanceService(db).recalculate_balance(account_id)
    if balance is None:
        raise HTTPException(
            status_code=503, detail=f"Balance of account {account_id} not recalculated"
        )
    return AccountBalanceResponse(account_id=account_id, balance=balance)


# --- Transfer Endpoints ---

@router.post("/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(
    request: TransferCreate,
    db: Session = Depends(get_db),
):
    """Move money between two accounts."""
    service = TransferService(db)
    try:
        return service.create_transfer(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
