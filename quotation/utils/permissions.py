"""Role helpers shared by routers and services."""

from typing import Optional

from quotation.models.user import User
from quotation.utils.errors import NotAuthenticated


ADMIN = "admin"
SALES = "sales"
VIEWER = "viewer"

EDITOR_ROLES = (ADMIN, SALES)


def is_admin(user: User) -> bool:
    return user.role == ADMIN


def can_view_user_activity(user: User, user_id: int) -> bool:
    return is_admin(user) or user.id == user_id


def require_user(user: Optional[User]) -> User:
    if user is None:
        raise NotAuthenticated()
    return user
