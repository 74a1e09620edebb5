"""Sales opportunity endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user, require_roles
from quotation.models.user import User
from quotation.schemas.audit import ChangeHistoryOut
from quotation.schemas.sales_opportunity import (
    SalesOpportunityCopyRequest,
    SalesOpportunityCreate,
    SalesOpportunityDetailOut,
    SalesOpportunityOut,
    SalesOpportunityUpdate,
)
from quotation.services import sales_opportunity_service
from quotation.utils.permissions import EDITOR_ROLES

router = APIRouter(prefix="/api/sales-opportunities", tags=["sales-opportunities"])


@router.get("", response_model=List[SalesOpportunityOut])
def list_sales_opportunities(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return sales_opportunity_service.list_sales_opportunities(db)


@router.post("", response_model=SalesOpportunityDetailOut)
def create_sales_opportunity(
    data: SalesOpportunityCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return sales_opportunity_service.create_sales_opportunity(db, data, current_user)


@router.post("/copy", response_model=SalesOpportunityDetailOut)
def copy_sales_opportunity(
    data: SalesOpportunityCopyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return sales_opportunity_service.copy_sales_opportunity(db, data.original_sales_opportunity_id, current_user)


@router.get("/{sales_opportunity_id}", response_model=SalesOpportunityDetailOut)
def get_sales_opportunity(
    sales_opportunity_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return sales_opportunity_service.get_sales_opportunity_with_change_attribution(db, sales_opportunity_id)


@router.put("/{sales_opportunity_id}", response_model=SalesOpportunityDetailOut)
def save_sales_opportunity(
    sales_opportunity_id: int,
    data: SalesOpportunityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return sales_opportunity_service.save_sales_opportunity(db, sales_opportunity_id, data, current_user)


@router.delete("/{sales_opportunity_id}")
def delete_sales_opportunity(
    sales_opportunity_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    sales_opportunity_service.delete_sales_opportunity(db, sales_opportunity_id, current_user)
    return {"message": "Sales opportunity deleted"}


@router.post("/{sales_opportunity_id}/restore", response_model=SalesOpportunityDetailOut)
def restore_sales_opportunity(
    sales_opportunity_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return sales_opportunity_service.restore_sales_opportunity(db, sales_opportunity_id, current_user)


@router.get("/{sales_opportunity_id}/history", response_model=List[ChangeHistoryOut])
def sales_opportunity_history(
    sales_opportunity_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return sales_opportunity_service.get_sales_opportunity_change_history(db, sales_opportunity_id, limit)
