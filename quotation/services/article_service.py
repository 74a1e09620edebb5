"""Article service: audited article CRUD, article content and calculation items."""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from quotation.database import atomic
from quotation.models.article import Article, ArticleCalculationItem
from quotation.models.block import BlockContent
from quotation.models.user import User
from quotation.schemas.article import ArticleCreate, ArticleUpdate
from quotation.schemas.content import BlockContentIn
from quotation.services.audit_service import (
    EntityType,
    article_calculation_operations,
    article_operations,
    block_content_operations,
)
from quotation.services.history_service import get_entity_history, get_last_changed_by
from quotation.services.lock_service import check_editable
from quotation.utils.errors import NotFound, persistence_errors
from quotation.utils.permissions import require_user

logger = logging.getLogger(__name__)

# (name, type, value) in display order
DEFAULT_CALCULATION_ITEMS = (
    ("Arbeitszeit", "time", Decimal("0.00")),
    ("Reisezeit", "time", Decimal("0.00")),
    ("Materialkosten", "cost", Decimal("0.00")),
    ("Fremdleistungen", "cost", Decimal("0.00")),
)


def list_articles(db: Session, include_deleted: bool = False) -> List[Article]:
    query = db.query(Article)
    if not include_deleted:
        query = query.filter(Article.deleted == False)  # noqa: E712
    return query.order_by(Article.number, Article.id).all()


def _calculation_items(db: Session, article_id: int) -> List[ArticleCalculationItem]:
    return (
        db.query(ArticleCalculationItem)
        .filter(
            ArticleCalculationItem.article_id == article_id,
            ArticleCalculationItem.deleted == False,  # noqa: E712
        )
        .order_by(ArticleCalculationItem.order, ArticleCalculationItem.id)
        .all()
    )


def _active_article(db: Session, article_id: int) -> Article:
    article = article_operations.get(db, article_id)
    if article.deleted:
        raise NotFound("Article not found", article_id)
    return article


def get_article_with_change_attribution(db: Session, article_id: int) -> Article:
    """Article with its content, calculation items and the last change to either."""
    article = _active_article(db, article_id)
    contents = block_content_operations.list_for_parent(db, EntityType.ARTICLES, article_id)
    article.contents = contents
    article.calculation_items = _calculation_items(db, article_id)
    article.last_changed_by = get_last_changed_by(
        db, EntityType.ARTICLES, article_id, [content.id for content in contents]
    )
    return article


def _add_calculation_items(db: Session, article_id: int, items, user_id: int, metadata: dict) -> None:
    for order, (name, item_type, value) in enumerate(items, start=1):
        article_calculation_operations.create(
            db,
            {"name": name, "type": item_type, "value": value, "article_id": article_id, "order": order},
            user_id,
            metadata=metadata,
        )


def create_article(db: Session, data: ArticleCreate, acting_user: Optional[User]) -> Article:
    user = require_user(acting_user)
    payload = data.model_dump(exclude={"with_default_calculations"})
    with persistence_errors("Failed to create article"), atomic(db):
        article = article_operations.create(db, payload, user.id)
        if data.with_default_calculations:
            _add_calculation_items(
                db,
                article.id,
                DEFAULT_CALCULATION_ITEMS,
                user.id,
                {"parentEntityType": EntityType.ARTICLES.value, "parentEntityId": article.id},
            )
    logger.info("Article %s created by user %s", article.id, user.id)
    return get_article_with_change_attribution(db, article.id)


def save_article(db: Session, article_id: int, data: ArticleUpdate, acting_user: Optional[User]) -> Article:
    user = require_user(acting_user)
    payload = data.model_dump(exclude_none=True)
    with persistence_errors("Failed to save article"), atomic(db):
        check_editable(db, EntityType.ARTICLES, article_id, user, lock_row=True)
        _active_article(db, article_id)
        article_operations.update(db, article_id, payload, user.id)
    return get_article_with_change_attribution(db, article_id)


def save_article_content(
    db: Session,
    article_id: int,
    contents: List[BlockContentIn],
    acting_user: Optional[User],
) -> List[BlockContent]:
    user = require_user(acting_user)
    with persistence_errors("Failed to save article content"), atomic(db):
        check_editable(db, EntityType.ARTICLES, article_id, user, lock_row=True)
        _active_article(db, article_id)
        created = block_content_operations.replace_all(
            db,
            EntityType.ARTICLES,
            article_id,
            [content.model_dump() for content in contents],
            user.id,
        )
    return created


def delete_article(db: Session, article_id: int, acting_user: Optional[User]) -> Article:
    user = require_user(acting_user)
    with persistence_errors("Failed to delete article"), atomic(db):
        check_editable(db, EntityType.ARTICLES, article_id, user, lock_row=True)
        article = article_operations.delete(db, article_id, user.id)
    logger.info("Article %s deleted by user %s", article_id, user.id)
    return article


def copy_article(db: Session, original_article_id: int, acting_user: Optional[User]) -> Article:
    """Copy an article with its content and calculation items. The copy is unlocked."""
    user = require_user(acting_user)
    original = _active_article(db, original_article_id)
    metadata = {"originalEntityId": original.id}
    with persistence_errors("Failed to copy article"), atomic(db):
        copy = article_operations.create(
            db,
            {
                "number": f"{original.number} (Kopie)",
                "price": original.price,
                "hide_title": original.hide_title,
            },
            user.id,
            metadata=metadata,
        )
        _add_calculation_items(
            db,
            copy.id,
            [(item.name, item.type, item.value) for item in _calculation_items(db, original.id)],
            user.id,
            {**metadata, "parentEntityType": EntityType.ARTICLES.value, "parentEntityId": copy.id},
        )
        for content in block_content_operations.list_for_parent(db, EntityType.ARTICLES, original.id):
            block_content_operations.create(
                db,
                {
                    "article_id": copy.id,
                    "title": content.title,
                    "content": content.content,
                    "language_id": content.language_id,
                },
                user.id,
                metadata={**metadata, "parentEntityType": EntityType.ARTICLES.value, "parentEntityId": copy.id},
            )
    return get_article_with_change_attribution(db, copy.id)


def get_article_change_history(db: Session, article_id: int, limit: Optional[int] = None) -> List[dict]:
    article_operations.get(db, article_id)
    return get_entity_history(db, EntityType.ARTICLES, article_id, limit)
