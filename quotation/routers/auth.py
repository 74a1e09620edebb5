"""Login, logout and current user endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user
from quotation.models.user import User
from quotation.schemas.user import LoginRequest, TokenResponse, UserOut
from quotation.services.auth_service import create_access_token, mock_sso_login
from quotation.services.lock_service import release_all_locks


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = mock_sso_login(db, request.email)
    token = create_access_token(user.id)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/logout")
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    released = release_all_locks(db, current_user)
    return {"message": "Logged out", "released_locks": released}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
