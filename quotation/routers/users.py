"""Endpoints acting on the signed-in user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user
from quotation.models.user import User
from quotation.schemas.user import UnlockAllResult
from quotation.services.lock_service import release_all_locks

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/current/unlock-all", response_model=UnlockAllResult)
def unlock_all(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return UnlockAllResult(released=release_all_locks(db, current_user))
