"""Mock SSO login and access token issuing."""

from datetime import datetime, timedelta

from jose import jwt
from sqlalchemy.orm import Session

from quotation.config import settings
from quotation.models.user import User
from quotation.utils.errors import NotAuthenticated

ALGORITHM = "HS256"


def create_access_token(user_id: int) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def mock_sso_login(db: Session, email: str) -> User:
    user = (
        db.query(User)
        .filter(User.email == email.strip().lower(), User.is_active == True)  # noqa: E712
        .first()
    )
    if not user:
        raise NotAuthenticated(f"No active user found for '{email}'")
    return user
