"""Quote endpoints, including variants, versions and positions."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user, require_roles
from quotation.models.user import User
from quotation.schemas.audit import ChangeHistoryOut
from quotation.schemas.quote import (
    QuoteCopyRequest,
    QuoteCreate,
    QuoteDetailOut,
    QuoteOut,
    QuotePositionCreate,
    QuotePositionOut,
    QuotePositionUpdate,
    QuoteUpdate,
    QuoteVariantCreate,
    QuoteVariantDetailOut,
    QuoteVersionDetailOut,
    QuoteVersionUpdate,
)
from quotation.services import quote_service
from quotation.utils.permissions import EDITOR_ROLES

router = APIRouter(tags=["quotes"])


@router.get("/api/quotes", response_model=List[QuoteOut])
def list_quotes(
    sales_opportunity_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return quote_service.list_quotes(db, sales_opportunity_id)


@router.post("/api/quotes", response_model=QuoteDetailOut)
def create_quote(
    data: QuoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.create_quote(db, data, current_user)


@router.post("/api/quotes/copy", response_model=QuoteDetailOut)
def copy_quote(
    data: QuoteCopyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.copy_quote(db, data.original_quote_id, current_user, quote_number=data.quote_number)


@router.get("/api/quotes/{quote_id}", response_model=QuoteDetailOut)
def get_quote(quote_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return quote_service.get_quote_with_change_attribution(db, quote_id)


@router.put("/api/quotes/{quote_id}", response_model=QuoteDetailOut)
def save_quote(
    quote_id: int,
    data: QuoteUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.save_quote(db, quote_id, data, current_user)


@router.delete("/api/quotes/{quote_id}")
def delete_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    quote_service.delete_quote(db, quote_id, current_user)
    return {"message": "Quote deleted"}


@router.get("/api/quotes/{quote_id}/history", response_model=List[ChangeHistoryOut])
def quote_history(
    quote_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return quote_service.get_quote_change_history(db, quote_id, limit)


@router.post("/api/quotes/{quote_id}/variants", response_model=QuoteVariantDetailOut)
def create_quote_variant(
    quote_id: int,
    data: QuoteVariantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.create_quote_variant(db, quote_id, data.language_id, current_user)


@router.post("/api/quote-variants/{variant_id}/versions", response_model=QuoteVersionDetailOut)
def create_quote_version(
    variant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.create_quote_version(db, variant_id, current_user)


@router.put("/api/quote-versions/{version_id}", response_model=QuoteVersionDetailOut)
def save_quote_version(
    version_id: int,
    data: QuoteVersionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.save_quote_version(db, version_id, data, current_user)


@router.post("/api/quote-versions/{version_id}/positions", response_model=QuotePositionOut)
def add_quote_position(
    version_id: int,
    data: QuotePositionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.add_quote_position(db, version_id, data, current_user)


@router.put("/api/quote-positions/{position_id}", response_model=QuotePositionOut)
def update_quote_position(
    position_id: int,
    data: QuotePositionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return quote_service.update_quote_position(db, position_id, data, current_user)


@router.delete("/api/quote-positions/{position_id}")
def delete_quote_position(
    position_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    quote_service.delete_quote_position(db, position_id, current_user)
    return {"message": "Quote position deleted"}
