"""Edit lock endpoints, generated per lockable resource."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user, require_roles
from quotation.models.user import User
from quotation.schemas.audit import LockStatusOut
from quotation.services import lock_service
from quotation.services.audit_service import EntityType
from quotation.utils.permissions import EDITOR_ROLES

LOCK_RESOURCES = {
    "articles": EntityType.ARTICLES,
    "blocks": EntityType.BLOCKS,
    "quotes": EntityType.QUOTES,
    "quote-variants": EntityType.QUOTE_VARIANTS,
    "quote-versions": EntityType.QUOTE_VERSIONS,
    "sales-opportunities": EntityType.SALES_OPPORTUNITIES,
}


def create_lock_router(resource: str, entity_type: EntityType) -> APIRouter:
    router = APIRouter(prefix=f"/api/{resource}", tags=["locks"])

    @router.get("/{entity_id}/lock", response_model=LockStatusOut)
    def get_lock(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return lock_service.get_lock_status(db, entity_type, entity_id)

    @router.post("/{entity_id}/lock", response_model=LockStatusOut)
    def lock(
        entity_id: int,
        force: bool = False,
        db: Session = Depends(get_db),
        current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    ):
        lock_service.acquire_lock(db, entity_type, entity_id, current_user, force=force)
        return lock_service.get_lock_status(db, entity_type, entity_id)

    @router.delete("/{entity_id}/lock", response_model=LockStatusOut)
    def unlock(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    ):
        lock_service.release_lock(db, entity_type, entity_id, current_user)
        return lock_service.get_lock_status(db, entity_type, entity_id)

    return router


routers = [create_lock_router(resource, entity_type) for resource, entity_type in LOCK_RESOURCES.items()]
