"""Advisory edit locks (blocked / blocked_by) on lockable entities.

A lock is held when both columns are set. Holding a lock does not stop writes
by itself: every mutating service calls ``check_editable`` first, inside the
transaction that performs the write.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from quotation.config import settings
from quotation.database import atomic
from quotation.models.user import User
from quotation.services.audit_service import ENTITY_MODELS, EntityType
from quotation.utils.errors import LockConflict, NotAuthenticated, NotFound, OperationNotAllowed
from quotation.utils.helpers import utcnow
from quotation.utils.permissions import is_admin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockConfig:
    entity_name: str
    not_found_message: str
    locked_message: str
    unlock_message: str


LOCK_CONFIGS = {
    EntityType.ARTICLES: LockConfig(
        "article",
        "Article not found",
        "Article is already being edited by another user",
        "Can only unlock articles you have locked",
    ),
    EntityType.BLOCKS: LockConfig(
        "block",
        "Block not found",
        "Block is already being edited by another user",
        "Can only unlock blocks you have locked",
    ),
    EntityType.QUOTES: LockConfig(
        "quote",
        "Quote not found",
        "Quote is already being edited by another user",
        "Can only unlock quotes you have locked",
    ),
    EntityType.QUOTE_VARIANTS: LockConfig(
        "quote variant",
        "Quote variant not found",
        "Quote variant is already being edited by another user",
        "Can only unlock quote variants you have locked",
    ),
    EntityType.QUOTE_VERSIONS: LockConfig(
        "quote version",
        "Quote version not found",
        "Quote version is already being edited by another user",
        "Cannot unlock quote version locked by another user",
    ),
    EntityType.SALES_OPPORTUNITIES: LockConfig(
        "sales opportunity",
        "Sales opportunity not found",
        "Sales opportunity is already being edited by another user",
        "Can only unlock sales opportunities you have locked",
    ),
}


def _lock_config(entity_type: EntityType) -> LockConfig:
    try:
        return LOCK_CONFIGS[EntityType(entity_type)]
    except KeyError:
        raise ValueError(f"{entity_type} is not a lockable entity type")


def _load(db: Session, entity_type: EntityType, entity_id: int, lock_row: bool = False):
    config = _lock_config(entity_type)
    model = ENTITY_MODELS[EntityType(entity_type)]
    query = db.query(model).filter(model.id == entity_id)
    if lock_row:
        query = query.with_for_update()
    row = query.first()
    if row is None:
        raise NotFound(config.not_found_message, entity_id)
    return row


def is_lock_stale(blocked: Optional[datetime], now: Optional[datetime] = None) -> bool:
    ttl = settings.EDIT_LOCK_TTL_MINUTES
    if ttl <= 0 or blocked is None:
        return False
    return blocked < (now or utcnow()) - timedelta(minutes=ttl)


def _holder_name(db: Session, user_id: Optional[int]) -> Optional[str]:
    if user_id is None:
        return None
    holder = db.query(User).filter(User.id == user_id).first()
    return holder.name if holder else None


def _conflict(db: Session, config: LockConfig, row, entity_id: int) -> LockConflict:
    return LockConflict(
        config.locked_message, entity_id, row.blocked_by, row.blocked, _holder_name(db, row.blocked_by)
    )


def _held_by_other(row, user_id: int) -> bool:
    return (
        row.blocked is not None
        and row.blocked_by is not None
        and row.blocked_by != user_id
        and not is_lock_stale(row.blocked)
    )


def check_editable(
    db: Session,
    entity_type: EntityType,
    entity_id: int,
    acting_user: Optional[User],
    lock_row: bool = False,
) -> None:
    """Fail unless ``acting_user`` may edit the entity right now.

    Passes when the row is unlocked or locked by ``acting_user``. With
    ``lock_row`` the row is read FOR UPDATE so the check holds until the
    caller's transaction ends.
    """
    config = _lock_config(entity_type)
    if acting_user is None:
        raise NotAuthenticated()

    row = _load(db, entity_type, entity_id, lock_row=lock_row)
    if _held_by_other(row, acting_user.id):
        logger.info(
            "Edit of %s %s by user %s refused, locked by %s since %s",
            config.entity_name, entity_id, acting_user.id, row.blocked_by, row.blocked,
        )
        raise _conflict(db, config, row, entity_id)


def get_lock_status(db: Session, entity_type: EntityType, entity_id: int) -> dict:
    row = _load(db, entity_type, entity_id)
    return {
        "entity_type": EntityType(entity_type).value,
        "entity_id": entity_id,
        "is_locked": row.blocked is not None and not is_lock_stale(row.blocked),
        "locked_by": row.blocked_by,
        "locked_by_name": _holder_name(db, row.blocked_by),
        "locked_at": row.blocked,
    }


def acquire_lock(
    db: Session,
    entity_type: EntityType,
    entity_id: int,
    acting_user: Optional[User],
    force: bool = False,
):
    """Lock the entity for ``acting_user``. Re-locking by the holder refreshes the time."""
    config = _lock_config(entity_type)
    if acting_user is None:
        raise NotAuthenticated()
    if force and not is_admin(acting_user):
        raise OperationNotAllowed(f"Only administrators can take over a {config.entity_name} lock")

    with atomic(db):
        row = _load(db, entity_type, entity_id, lock_row=True)
        if _held_by_other(row, acting_user.id):
            if not force:
                raise _conflict(db, config, row, entity_id)
            logger.warning(
                "User %s took over the lock on %s %s held by %s",
                acting_user.id, config.entity_name, entity_id, row.blocked_by,
            )
        row.blocked = utcnow()
        row.blocked_by = acting_user.id
    return row


def release_lock(db: Session, entity_type: EntityType, entity_id: int, acting_user: Optional[User]):
    config = _lock_config(entity_type)
    if acting_user is None:
        raise NotAuthenticated()

    with atomic(db):
        row = _load(db, entity_type, entity_id, lock_row=True)
        if _held_by_other(row, acting_user.id):
            if not is_admin(acting_user):
                raise OperationNotAllowed(config.unlock_message)
            logger.warning(
                "Administrator %s released the lock on %s %s held by %s",
                acting_user.id, config.entity_name, entity_id, row.blocked_by,
            )
        row.blocked = None
        row.blocked_by = None
    return row


def release_all_locks(db: Session, acting_user: Optional[User]) -> int:
    """Clear every lock held by ``acting_user``. Returns the number of released rows."""
    if acting_user is None:
        raise NotAuthenticated()

    released = 0
    with atomic(db):
        for entity_type in LOCK_CONFIGS:
            model = ENTITY_MODELS[entity_type]
            released += (
                db.query(model)
                .filter(model.blocked_by == acting_user.id)
                .update({model.blocked: None, model.blocked_by: None}, synchronize_session="fetch")
            )
    if released:
        logger.info("Released %s edit locks held by user %s", released, acting_user.id)
    return released
