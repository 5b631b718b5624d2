"""
Bank reconciliation API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from church_ledger.models.base import get_db
from church_ledger.services.reconciliation_service import ReconciliationService
from church_ledger.schemas.reconciliation import (
    ReconciliationCreate,
    ReconciliationResponse,
    AdjustmentCreate,
)

router = APIRouter(prefix="/finance/reconciliations", tags=["Reconciliations"])


@router.post("", response_model=ReconciliationResponse, status_code=201)
def start_reconciliation(
    request: ReconciliationCreate,
    db: Session = Depends(get_db),
):
    """Open a reconciliation with the account's current book balance."""
    service = ReconciliationService(db)
    try:
        return service.start_reconciliation(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{reconciliation_id}", response_model=ReconciliationResponse)
def get_reconciliation(
    reconciliation_id: str,
    db: Session = Depends(get_db),
):
    service = ReconciliationService(db)
    try:
        return service.get_reconciliation(reconciliation_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/{reconciliation_id}/adjustments",
    response_model=ReconciliationResponse,
    status_code=201,
)
def create_adjustment(
    reconciliation_id: str,
    request: AdjustmentCreate,
    db: Session = Depends(get_db),
):
    """
    Post a manual adjustment.

    Returns the reconciliation with its moved book balance.
    """
    service = ReconciliationService(db)
    try:
        service.create_adjustment(reconciliation_id, request)
        return service.get_reconciliation(reconciliation_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{reconciliation_id}", status_code=204)
def delete_reconciliation(
    reconciliation_id: str,
    db: Session = Depends(get_db),
):
    """Delete a reconciliation and the adjustments posted against it."""
    service = ReconciliationService(db)
    try:
        service.delete_reconciliation(reconciliation_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
