"""Read side of the change history: per-entity history, activity feeds, last change attribution."""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from quotation.config import settings
from quotation.models.change_history import ChangeHistory
from quotation.models.user import User
from quotation.services.audit_service import EntityType

ENTITY_CHANGE = "entity"
CONTENT_CHANGE = "content"


def _newest_first(query):
    # Equal timestamps fall back to insertion order.
    return query.order_by(ChangeHistory.timestamp.desc(), ChangeHistory.id.desc())


def _with_actor(db: Session):
    return db.query(ChangeHistory, User).outerjoin(User, ChangeHistory.user_id == User.id)


def to_response(row: ChangeHistory, user: Optional[User]) -> Dict[str, Any]:
    return {
        "id": row.id,
        "entity_type": row.entity_type,
        "entity_id": row.entity_id,
        "action": row.action,
        "changed_fields": row.changed_fields,
        "timestamp": row.timestamp,
        "metadata": row.change_metadata,
        "user": {
            "id": row.user_id,
            "name": user.name if user else None,
            "email": user.email if user else "",
        },
    }


def get_entity_history(
    db: Session,
    entity_type: EntityType,
    entity_id: int,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    query = _with_actor(db).filter(
        ChangeHistory.entity_type == EntityType(entity_type).value,
        ChangeHistory.entity_id == entity_id,
    )
    rows = _newest_first(query).limit(limit or settings.AUDIT_HISTORY_LIMIT).all()
    return [to_response(row, user) for row, user in rows]


def get_user_activity(db: Session, user_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    query = _with_actor(db).filter(ChangeHistory.user_id == user_id)
    rows = _newest_first(query).limit(limit or settings.AUDIT_HISTORY_LIMIT).all()
    return [to_response(row, user) for row, user in rows]


def get_recent_changes(db: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    rows = _newest_first(_with_actor(db)).limit(limit or settings.RECENT_CHANGES_LIMIT).all()
    return [to_response(row, user) for row, user in rows]


def get_last_changed_by(
    db: Session,
    entity_type: EntityType,
    entity_id: int,
    content_ids: Iterable[int] = (),
) -> Optional[Dict[str, Any]]:
    """Most recent change to the entity itself or to one of its content rows.

    Returns None when neither has any history, e.g. for seeded rows.
    """
    entity_type = EntityType(entity_type)
    condition = and_(
        ChangeHistory.entity_type == entity_type.value,
        ChangeHistory.entity_id == entity_id,
    )
    content_ids = list(content_ids)
    if content_ids:
        condition = or_(
            condition,
            and_(
                ChangeHistory.entity_type == EntityType.BLOCK_CONTENT.value,
                ChangeHistory.entity_id.in_(content_ids),
            ),
        )

    result = _newest_first(_with_actor(db).filter(condition)).first()
    if result is None:
        return None

    row, user = result
    return {
        "id": row.user_id,
        "name": user.name if user else None,
        "email": user.email if user else "",
        "timestamp": row.timestamp,
        "change_type": ENTITY_CHANGE if row.entity_type == entity_type.value else CONTENT_CHANGE,
    }
