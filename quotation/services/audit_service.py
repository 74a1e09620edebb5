"""Audit trail writer and the audited create/update/delete operations built on it.

Every audited mutation and its change_history row are written in the same
transaction: either both commit or neither does.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Session

from quotation.database import Base, atomic
from quotation.models.article import Article, ArticleCalculationItem
from quotation.models.block import Block, BlockContent
from quotation.models.change_history import ChangeHistory
from quotation.models.quote import Quote, QuotePosition, QuoteVariant, QuoteVersion
from quotation.models.sales_opportunity import SalesOpportunity
from quotation.models.user import User
from quotation.utils.errors import NotAuthenticated, NotFound
from quotation.utils.helpers import to_jsonable, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityType(str, Enum):
    ARTICLES = "articles"
    BLOCKS = "blocks"
    USERS = "users"
    BLOCK_CONTENT = "block_content"
    ARTICLE_CALCULATION_ITEM = "article_calculation_item"
    SALES_OPPORTUNITIES = "sales_opportunities"
    QUOTES = "quotes"
    QUOTE_VARIANTS = "quote_variants"
    QUOTE_VERSIONS = "quote_versions"
    QUOTE_POSITIONS = "quote_positions"


ENTITY_MODELS: Dict[EntityType, Type[Base]] = {
    EntityType.ARTICLES: Article,
    EntityType.BLOCKS: Block,
    EntityType.USERS: User,
    EntityType.BLOCK_CONTENT: BlockContent,
    EntityType.ARTICLE_CALCULATION_ITEM: ArticleCalculationItem,
    EntityType.SALES_OPPORTUNITIES: SalesOpportunity,
    EntityType.QUOTES: Quote,
    EntityType.QUOTE_VARIANTS: QuoteVariant,
    EntityType.QUOTE_VERSIONS: QuoteVersion,
    EntityType.QUOTE_POSITIONS: QuotePosition,
}


class AuditAction(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class AuditDraft:
    entity_type: EntityType
    action: AuditAction
    user_id: Optional[int]
    entity_id: Optional[int] = None
    changed_fields: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None


# Payload shapes per action: INSERT stores the inserted attributes, UPDATE a
# {field: {old, new}} diff, DELETE the deleted-flag transition.

def insert_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    return to_jsonable(dict(data))


def _differs(old: Any, new: Any) -> bool:
    return old != new and to_jsonable(old) != to_jsonable(new)


def diff_fields(current: Any, data: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    for key, new_value in data.items():
        old_value = getattr(current, key)
        if _differs(old_value, new_value):
            changed[key] = {"old": to_jsonable(old_value), "new": to_jsonable(new_value)}
    return changed


def deletion_fields(was_deleted: bool, deleted: bool = True) -> Dict[str, Dict[str, bool]]:
    return {"deleted": {"old": bool(was_deleted), "new": deleted}}


def create_audit_log(db: Session, draft: AuditDraft) -> ChangeHistory:
    if draft.user_id is None:
        raise NotAuthenticated("Audited changes require an acting user")
    row = ChangeHistory(
        entity_type=EntityType(draft.entity_type).value,
        entity_id=draft.entity_id,
        action=AuditAction(draft.action).value,
        changed_fields=draft.changed_fields,
        user_id=draft.user_id,
        timestamp=utcnow(),
        change_metadata=draft.metadata,
    )
    db.add(row)
    db.flush()
    return row


def with_audit(db: Session, operation: Callable[[Session], T], draft: AuditDraft) -> T:
    """Run ``operation`` and write ``draft`` in a single transaction.

    For INSERT drafts the entity id is taken from the operation's result once
    the row has been flushed, since it does not exist before the insert.
    """
    with atomic(db):
        result = operation(db)
        db.flush()
        if draft.action == AuditAction.INSERT and getattr(result, "id", None) is not None:
            draft.entity_id = result.id
        create_audit_log(db, draft)
    return result


def _touch(row: Any) -> None:
    if hasattr(row, "updated_at"):
        row.updated_at = utcnow()


@dataclass(frozen=True)
class Cascade:
    """Child rows soft-deleted together with their parent."""

    model: Type[Base]
    entity_type: EntityType
    parent_column: str
    children: Tuple["Cascade", ...] = field(default=())


class AuditedOperations:
    """Audited create/update/soft-delete for one entity type."""

    def __init__(self, model: Type[Base], entity_type: EntityType, label: str, cascades: Iterable[Cascade] = ()):
        self.model = model
        self.entity_type = entity_type
        self.label = label
        self.cascades = tuple(cascades)
        self._columns = {column.key for column in model.__table__.columns}

    def get(self, db: Session, entity_id: int, lock_row: bool = False):
        query = db.query(self.model).filter(self.model.id == entity_id)
        if lock_row:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            raise NotFound(f"{self.label} not found", entity_id)
        return row

    def _check_fields(self, data: Mapping[str, Any]) -> None:
        unknown = set(data) - self._columns
        if unknown:
            raise ValueError(f"Unknown {self.label} fields: {', '.join(sorted(unknown))}")

    def create(self, db: Session, data: Mapping[str, Any], user_id: int, metadata: Optional[dict] = None):
        values = dict(data)
        self._check_fields(values)

        def operation(session: Session):
            row = self.model(**values)
            session.add(row)
            return row

        return with_audit(
            db,
            operation,
            AuditDraft(
                entity_type=self.entity_type,
                action=AuditAction.INSERT,
                user_id=user_id,
                changed_fields=insert_fields(values),
                metadata=metadata,
            ),
        )

    def update(
        self,
        db: Session,
        entity_id: int,
        data: Mapping[str, Any],
        user_id: int,
        metadata: Optional[dict] = None,
        touch: Optional[Mapping[str, Any]] = None,
    ):
        """Apply ``data`` and audit the fields that actually changed.

        ``touch`` holds bookkeeping columns such as modified_by that are always
        written but never count as a change.
        """
        values = dict(data)
        self._check_fields(values)
        self._check_fields(touch or {})
        with atomic(db):
            current = self.get(db, entity_id)
            changed = diff_fields(current, values)
            for key, value in {**values, **(touch or {})}.items():
                setattr(current, key, value)
            _touch(current)
            if changed:
                create_audit_log(
                    db,
                    AuditDraft(
                        entity_type=self.entity_type,
                        action=AuditAction.UPDATE,
                        user_id=user_id,
                        entity_id=entity_id,
                        changed_fields=changed,
                        metadata=metadata,
                    ),
                )
            else:
                logger.debug("No changes on %s %s, audit skipped", self.entity_type.value, entity_id)
        return current

    def delete(self, db: Session, entity_id: int, user_id: int, metadata: Optional[dict] = None):
        with atomic(db):
            current = self.get(db, entity_id)
            if current.deleted:
                raise NotFound(f"{self.label} not found", entity_id)
            current.deleted = True
            _touch(current)
            for cascade in self.cascades:
                _cascade_soft_delete(db, cascade, self.entity_type, entity_id, user_id, metadata)
            create_audit_log(
                db,
                AuditDraft(
                    entity_type=self.entity_type,
                    action=AuditAction.DELETE,
                    user_id=user_id,
                    entity_id=entity_id,
                    changed_fields=deletion_fields(False),
                    metadata=metadata,
                ),
            )
        return current

    def restore(self, db: Session, entity_id: int, user_id: int, metadata: Optional[dict] = None):
        with atomic(db):
            current = self.get(db, entity_id)
            if current.deleted:
                current.deleted = False
                _touch(current)
                create_audit_log(
                    db,
                    AuditDraft(
                        entity_type=self.entity_type,
                        action=AuditAction.UPDATE,
                        user_id=user_id,
                        entity_id=entity_id,
                        changed_fields=deletion_fields(True, deleted=False),
                        metadata=metadata,
                    ),
                )
        return current


def _cascade_soft_delete(
    db: Session,
    cascade: Cascade,
    parent_type: EntityType,
    parent_id: int,
    user_id: int,
    metadata: Optional[dict],
) -> int:
    """Soft delete the active children of one parent, auditing each child row."""
    model = cascade.model
    children = (
        db.query(model)
        .filter(getattr(model, cascade.parent_column) == parent_id, model.deleted == False)  # noqa: E712
        .order_by(model.id)
        .all()
    )
    count = 0
    for child in children:
        child.deleted = True
        _touch(child)
        for nested in cascade.children:
            count += _cascade_soft_delete(db, nested, cascade.entity_type, child.id, user_id, metadata)
        create_audit_log(
            db,
            AuditDraft(
                entity_type=cascade.entity_type,
                action=AuditAction.DELETE,
                user_id=user_id,
                entity_id=child.id,
                changed_fields=deletion_fields(False),
                metadata={
                    **(metadata or {}),
                    "reason": "cascading soft delete",
                    "parentEntityType": parent_type.value,
                    "parentEntityId": parent_id,
                },
            ),
        )
        count += 1
    return count


CONTENT_PARENT_COLUMNS = {
    EntityType.BLOCKS: "block_id",
    EntityType.ARTICLES: "article_id",
}


class ContentOperations(AuditedOperations):
    """Audited operations for block_content rows, which belong to a block or an article."""

    def __init__(self):
        super().__init__(BlockContent, EntityType.BLOCK_CONTENT, "Block content")

    def list_for_parent(
        self,
        db: Session,
        parent_type: EntityType,
        parent_id: int,
        include_deleted: bool = False,
    ) -> List[BlockContent]:
        column = getattr(BlockContent, CONTENT_PARENT_COLUMNS[parent_type])
        query = db.query(BlockContent).filter(column == parent_id)
        if not include_deleted:
            query = query.filter(BlockContent.deleted == False)  # noqa: E712
        return query.order_by(BlockContent.id).all()

    def replace_all(
        self,
        db: Session,
        parent_type: EntityType,
        parent_id: int,
        rows: Iterable[Mapping[str, Any]],
        user_id: int,
        metadata: Optional[dict] = None,
    ) -> List[BlockContent]:
        """Swap the parent's full content set for ``rows`` in one transaction.

        Each retired row gets its own DELETE entry and each new row its own
        INSERT entry, all tagged with the parent they belong to.
        """
        parent_column = CONTENT_PARENT_COLUMNS[parent_type]
        label = "block" if parent_type == EntityType.BLOCKS else "article"
        provenance = {
            "parentEntityType": parent_type.value,
            "parentEntityId": parent_id,
        }
        new_rows = [dict(row) for row in rows]
        for row in new_rows:
            self._check_fields(row)

        created = []
        with atomic(db):
            for content in self.list_for_parent(db, parent_type, parent_id):
                content.deleted = True
                _touch(content)
                create_audit_log(
                    db,
                    AuditDraft(
                        entity_type=EntityType.BLOCK_CONTENT,
                        action=AuditAction.DELETE,
                        user_id=user_id,
                        entity_id=content.id,
                        changed_fields=deletion_fields(False),
                        metadata={
                            **(metadata or {}),
                            "reason": f"Content replaced as part of {label} content update",
                            **provenance,
                        },
                    ),
                )

            for data in new_rows:
                values = {**data, "block_id": None, "article_id": None}
                values[parent_column] = parent_id
                values["deleted"] = False
                content = BlockContent(**values)
                db.add(content)
                db.flush()
                create_audit_log(
                    db,
                    AuditDraft(
                        entity_type=EntityType.BLOCK_CONTENT,
                        action=AuditAction.INSERT,
                        user_id=user_id,
                        entity_id=content.id,
                        changed_fields=insert_fields({**data, parent_column: parent_id}),
                        metadata={
                            **(metadata or {}),
                            "reason": f"Content created as part of {label} content update",
                            **provenance,
                        },
                    ),
                )
                created.append(content)
        return created


block_content_operations = ContentOperations()

article_operations = AuditedOperations(
    Article,
    EntityType.ARTICLES,
    "Article",
    cascades=[
        Cascade(BlockContent, EntityType.BLOCK_CONTENT, "article_id"),
        Cascade(ArticleCalculationItem, EntityType.ARTICLE_CALCULATION_ITEM, "article_id"),
    ],
)

article_calculation_operations = AuditedOperations(
    ArticleCalculationItem,
    EntityType.ARTICLE_CALCULATION_ITEM,
    "Calculation item",
)

block_operations = AuditedOperations(
    Block,
    EntityType.BLOCKS,
    "Block",
    cascades=[Cascade(BlockContent, EntityType.BLOCK_CONTENT, "block_id")],
)

sales_opportunity_operations = AuditedOperations(
    SalesOpportunity,
    EntityType.SALES_OPPORTUNITIES,
    "Sales opportunity",
)

quote_position_operations = AuditedOperations(QuotePosition, EntityType.QUOTE_POSITIONS, "Quote position")

quote_version_operations = AuditedOperations(
    QuoteVersion,
    EntityType.QUOTE_VERSIONS,
    "Quote version",
    cascades=[Cascade(QuotePosition, EntityType.QUOTE_POSITIONS, "version_id")],
)

quote_variant_operations = AuditedOperations(
    QuoteVariant,
    EntityType.QUOTE_VARIANTS,
    "Quote variant",
    cascades=[
        Cascade(
            QuoteVersion,
            EntityType.QUOTE_VERSIONS,
            "variant_id",
            children=(Cascade(QuotePosition, EntityType.QUOTE_POSITIONS, "version_id"),),
        )
    ],
)

quote_operations = AuditedOperations(
    Quote,
    EntityType.QUOTES,
    "Quote",
    cascades=[
        Cascade(
            QuoteVariant,
            EntityType.QUOTE_VARIANTS,
            "quote_id",
            children=(
                Cascade(
                    QuoteVersion,
                    EntityType.QUOTE_VERSIONS,
                    "variant_id",
                    children=(Cascade(QuotePosition, EntityType.QUOTE_POSITIONS, "version_id"),),
                ),
            ),
        )
    ],
)
