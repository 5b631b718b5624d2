"""
Liability API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from church_ledger.models.base import get_db
from church_ledger.services.liability_service import LiabilityService
from church_ledger.schemas.liabilities import LiabilityCreate, LiabilityResponse

router = APIRouter(prefix="/finance", tags=["Liabilities"])


@router.post("/liabilities", response_model=LiabilityResponse, status_code=201)
def create_liability(
    request: LiabilityCreate,
    db: Session = Depends(get_db),
):
    return LiabilityService(db).create_liability(request)


@router.get("/liabilities/{liability_id}", response_model=LiabilityResponse)
def get_liability(
    liability_id: str,
    db: Session = Depends(get_db),
):
    service = LiabilityService(db)
    try:
        return service.get_liability(liability_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
