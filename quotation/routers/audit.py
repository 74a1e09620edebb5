"""Change history feeds."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user
from quotation.models.user import User
from quotation.schemas.audit import ChangeHistoryOut
from quotation.services import history_service
from quotation.utils.permissions import can_view_user_activity

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/recent", response_model=List[ChangeHistoryOut])
def recent_changes(
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return history_service.get_recent_changes(db, limit)


@router.get("/users/{user_id}", response_model=List[ChangeHistoryOut])
def user_activity(
    user_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not can_view_user_activity(current_user, user_id):
        raise HTTPException(status_code=403, detail="Not allowed to view this user's activity")
    return history_service.get_user_activity(db, user_id, limit)
