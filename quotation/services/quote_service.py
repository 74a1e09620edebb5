"""Quote service: quotes and their variants, versions and positions.

Quote and variant changes are guarded by the lock on the quote or variant
itself; version and position changes by the lock on the owning version.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotation.config import settings
from quotation.database import atomic
from quotation.models.article import Article
from quotation.models.block import Block
from quotation.models.quote import Quote, QuotePosition, QuoteVariant, QuoteVersion
from quotation.models.sales_opportunity import SalesOpportunity
from quotation.models.user import User
from quotation.schemas.quote import (
    QuoteCreate,
    QuotePositionCreate,
    QuotePositionUpdate,
    QuoteUpdate,
    QuoteVersionUpdate,
)
from quotation.services.audit_service import (
    EntityType,
    quote_operations,
    quote_position_operations,
    quote_variant_operations,
    quote_version_operations,
)
from quotation.services.history_service import get_entity_history, get_last_changed_by
from quotation.services.lock_service import check_editable
from quotation.utils.errors import NotFound, persistence_errors
from quotation.utils.permissions import require_user

logger = logging.getLogger(__name__)

POSITION_COPY_FIELDS = (
    "article_id",
    "block_id",
    "position_number",
    "quantity",
    "unit_price",
    "total_price",
    "title",
    "description",
)


def _not_deleted(model):
    return model.deleted == False  # noqa: E712


def _parent(entity_type: EntityType, entity_id: int) -> dict:
    return {"parentEntityType": entity_type.value, "parentEntityId": entity_id}


def _position_total(quantity: Optional[Decimal], unit_price: Optional[Decimal]) -> Optional[Decimal]:
    if quantity is None or unit_price is None:
        return None
    return Decimal(quantity) * Decimal(unit_price)


def _next_quote_number(db: Session) -> str:
    # Deleted quotes keep their number, so they are counted too.
    candidate = settings.QUOTE_NUMBER_START + (db.query(func.count(Quote.id)).scalar() or 0)
    while db.query(Quote.id).filter(Quote.quote_number == str(candidate).zfill(4)).first():
        candidate += 1
    return str(candidate).zfill(4)


def list_quotes(db: Session, sales_opportunity_id: Optional[int] = None) -> List[Quote]:
    query = db.query(Quote).filter(_not_deleted(Quote))
    if sales_opportunity_id is not None:
        query = query.filter(Quote.sales_opportunity_id == sales_opportunity_id)
    return query.order_by(Quote.created_at.desc(), Quote.id.desc()).all()


def _active_quote(db: Session, quote_id: int) -> Quote:
    quote = quote_operations.get(db, quote_id)
    if quote.deleted:
        raise NotFound("Quote not found", quote_id)
    return quote


def _active_version(db: Session, version_id: int) -> QuoteVersion:
    version = quote_version_operations.get(db, version_id)
    if version.deleted:
        raise NotFound("Quote version not found", version_id)
    return version


def _active_variant(db: Session, variant_id: int) -> QuoteVariant:
    variant = quote_variant_operations.get(db, variant_id)
    if variant.deleted:
        raise NotFound("Quote variant not found", variant_id)
    return variant


def _active_position(db: Session, position_id: int) -> QuotePosition:
    position = quote_position_operations.get(db, position_id)
    if position.deleted:
        raise NotFound("Quote position not found", position_id)
    return position


def _variants(db: Session, quote_id: int) -> List[QuoteVariant]:
    return (
        db.query(QuoteVariant)
        .filter(QuoteVariant.quote_id == quote_id, _not_deleted(QuoteVariant))
        .order_by(QuoteVariant.variant_number, QuoteVariant.id)
        .all()
    )


def _versions(db: Session, variant_id: int) -> List[QuoteVersion]:
    return (
        db.query(QuoteVersion)
        .filter(QuoteVersion.variant_id == variant_id, _not_deleted(QuoteVersion))
        .order_by(QuoteVersion.version_number, QuoteVersion.id)
        .all()
    )


def _positions(db: Session, version_id: int) -> List[QuotePosition]:
    return (
        db.query(QuotePosition)
        .filter(QuotePosition.version_id == version_id, _not_deleted(QuotePosition))
        .order_by(QuotePosition.position_number, QuotePosition.id)
        .all()
    )


def get_quote_with_change_attribution(db: Session, quote_id: int) -> Quote:
    quote = _active_quote(db, quote_id)
    quote.variants = _variants(db, quote_id)
    for variant in quote.variants:
        variant.versions = _versions(db, variant.id)
        for version in variant.versions:
            version.positions = _positions(db, version.id)
    quote.last_changed_by = get_last_changed_by(db, EntityType.QUOTES, quote_id)
    return quote


def _create_variant_with_first_version(
    db: Session,
    quote_id: int,
    variant_number: int,
    language_id: int,
    is_default: bool,
    user_id: int,
    metadata: Optional[dict] = None,
):
    variant = quote_variant_operations.create(
        db,
        {
            "quote_id": quote_id,
            "variant_descriptor": str(variant_number),
            "variant_number": variant_number,
            "language_id": language_id,
            "is_default": is_default,
            "created_by": user_id,
            "modified_by": user_id,
        },
        user_id,
        metadata={**(metadata or {}), **_parent(EntityType.QUOTES, quote_id)},
    )
    version = quote_version_operations.create(
        db,
        {
            "variant_id": variant.id,
            "version_number": 1,
            "is_latest": True,
            "created_by": user_id,
            "modified_by": user_id,
        },
        user_id,
        metadata={**(metadata or {}), **_parent(EntityType.QUOTE_VARIANTS, variant.id)},
    )
    return variant, version


def create_quote(db: Session, data: QuoteCreate, acting_user: Optional[User]) -> Quote:
    """Create a quote together with its default variant and that variant's first version."""
    user = require_user(acting_user)
    opportunity = (
        db.query(SalesOpportunity)
        .filter(SalesOpportunity.id == data.sales_opportunity_id, _not_deleted(SalesOpportunity))
        .first()
    )
    if not opportunity:
        raise NotFound("Sales opportunity not found", data.sales_opportunity_id)

    with persistence_errors("Failed to create quote"), atomic(db):
        quote = quote_operations.create(
            db,
            {
                "sales_opportunity_id": data.sales_opportunity_id,
                "quote_number": data.quote_number or _next_quote_number(db),
                "title": data.title,
                "valid_until": data.valid_until,
                "created_by": user.id,
                "modified_by": user.id,
            },
            user.id,
        )
        _create_variant_with_first_version(db, quote.id, 1, data.language_id, True, user.id)
    logger.info("Quote %s created by user %s", quote.id, user.id)
    return get_quote_with_change_attribution(db, quote.id)


def save_quote(db: Session, quote_id: int, data: QuoteUpdate, acting_user: Optional[User]) -> Quote:
    user = require_user(acting_user)
    payload = data.model_dump(exclude_none=True)
    with persistence_errors("Failed to save quote"), atomic(db):
        check_editable(db, EntityType.QUOTES, quote_id, user, lock_row=True)
        _active_quote(db, quote_id)
        quote_operations.update(db, quote_id, payload, user.id, touch={"modified_by": user.id})
    return get_quote_with_change_attribution(db, quote_id)


def delete_quote(db: Session, quote_id: int, acting_user: Optional[User]) -> Quote:
    """Soft delete the quote with all its variants, versions and positions."""
    user = require_user(acting_user)
    with persistence_errors("Failed to delete quote"), atomic(db):
        check_editable(db, EntityType.QUOTES, quote_id, user, lock_row=True)
        quote = quote_operations.delete(db, quote_id, user.id)
    logger.info("Quote %s deleted by user %s", quote_id, user.id)
    return quote


def create_quote_variant(db: Session, quote_id: int, language_id: int, acting_user: Optional[User]) -> QuoteVariant:
    user = require_user(acting_user)
    with persistence_errors("Failed to create quote variant"), atomic(db):
        check_editable(db, EntityType.QUOTES, quote_id, user, lock_row=True)
        _active_quote(db, quote_id)
        current = db.query(func.max(QuoteVariant.variant_number)).filter(QuoteVariant.quote_id == quote_id).scalar()
        variant, _ = _create_variant_with_first_version(db, quote_id, (current or 0) + 1, language_id, False, user.id)
    variant.versions = _versions(db, variant.id)
    for version in variant.versions:
        version.positions = []
    return variant


def create_quote_version(db: Session, variant_id: int, acting_user: Optional[User]) -> QuoteVersion:
    """Add a new latest version to the variant."""
    user = require_user(acting_user)
    with persistence_errors("Failed to create quote version"), atomic(db):
        check_editable(db, EntityType.QUOTE_VARIANTS, variant_id, user, lock_row=True)
        _active_variant(db, variant_id)
        previous = _versions(db, variant_id)
        for version in previous:
            if version.is_latest:
                quote_version_operations.update(db, version.id, {"is_latest": False}, user.id)
        current = db.query(func.max(QuoteVersion.version_number)).filter(QuoteVersion.variant_id == variant_id).scalar()
        version = quote_version_operations.create(
            db,
            {
                "variant_id": variant_id,
                "version_number": (current or 0) + 1,
                "is_latest": True,
                "created_by": user.id,
                "modified_by": user.id,
            },
            user.id,
            metadata=_parent(EntityType.QUOTE_VARIANTS, variant_id),
        )
    version.positions = []
    return version


def save_quote_version(
    db: Session,
    version_id: int,
    data: QuoteVersionUpdate,
    acting_user: Optional[User],
) -> QuoteVersion:
    user = require_user(acting_user)
    payload = data.model_dump(exclude_none=True)
    with persistence_errors("Failed to save quote version"), atomic(db):
        check_editable(db, EntityType.QUOTE_VERSIONS, version_id, user, lock_row=True)
        _active_version(db, version_id)
        version = quote_version_operations.update(db, version_id, payload, user.id, touch={"modified_by": user.id})
    version.positions = _positions(db, version_id)
    return version


def _check_position_target(db: Session, article_id: Optional[int], block_id: Optional[int]) -> None:
    if article_id is not None:
        if not db.query(Article).filter(Article.id == article_id, _not_deleted(Article)).first():
            raise NotFound("Article not found", article_id)
    if block_id is not None:
        if not db.query(Block).filter(Block.id == block_id, _not_deleted(Block)).first():
            raise NotFound("Block not found", block_id)


def add_quote_position(
    db: Session,
    version_id: int,
    data: QuotePositionCreate,
    acting_user: Optional[User],
) -> QuotePosition:
    user = require_user(acting_user)
    payload = data.model_dump()
    payload["version_id"] = version_id
    payload["total_price"] = _position_total(data.quantity, data.unit_price)
    with persistence_errors("Failed to add quote position"), atomic(db):
        check_editable(db, EntityType.QUOTE_VERSIONS, version_id, user, lock_row=True)
        _active_version(db, version_id)
        _check_position_target(db, data.article_id, data.block_id)
        position = quote_position_operations.create(
            db, payload, user.id, metadata=_parent(EntityType.QUOTE_VERSIONS, version_id)
        )
    return position


def update_quote_position(
    db: Session,
    position_id: int,
    data: QuotePositionUpdate,
    acting_user: Optional[User],
) -> QuotePosition:
    user = require_user(acting_user)
    payload = data.model_dump(exclude_none=True)
    with persistence_errors("Failed to update quote position"), atomic(db):
        position = _active_position(db, position_id)
        check_editable(db, EntityType.QUOTE_VERSIONS, position.version_id, user, lock_row=True)
        if "quantity" in payload or "unit_price" in payload:
            payload["total_price"] = _position_total(
                payload.get("quantity", position.quantity),
                payload.get("unit_price", position.unit_price),
            )
        position = quote_position_operations.update(db, position_id, payload, user.id)
    return position


def delete_quote_position(db: Session, position_id: int, acting_user: Optional[User]) -> QuotePosition:
    user = require_user(acting_user)
    with persistence_errors("Failed to delete quote position"), atomic(db):
        position = _active_position(db, position_id)
        check_editable(db, EntityType.QUOTE_VERSIONS, position.version_id, user, lock_row=True)
        position = quote_position_operations.delete(
            db, position_id, user.id, metadata=_parent(EntityType.QUOTE_VERSIONS, position.version_id)
        )
    return position


def copy_quote(
    db: Session,
    original_quote_id: int,
    acting_user: Optional[User],
    quote_number: Optional[str] = None,
) -> Quote:
    """Copy a quote with all active variants, versions and positions. The copy is unlocked."""
    user = require_user(acting_user)
    original = get_quote_with_change_attribution(db, original_quote_id)
    metadata = {"originalEntityId": original.id}
    with persistence_errors("Failed to copy quote"), atomic(db):
        copy = quote_operations.create(
            db,
            {
                "sales_opportunity_id": original.sales_opportunity_id,
                "quote_number": quote_number or f"{original.quote_number} (Kopie)",
                "title": original.title,
                "valid_until": original.valid_until,
                "created_by": user.id,
                "modified_by": user.id,
            },
            user.id,
            metadata=metadata,
        )
        for variant in original.variants:
            variant_copy = quote_variant_operations.create(
                db,
                {
                    "quote_id": copy.id,
                    "variant_descriptor": variant.variant_descriptor,
                    "variant_number": variant.variant_number,
                    "language_id": variant.language_id,
                    "is_default": variant.is_default,
                    "created_by": user.id,
                    "modified_by": user.id,
                },
                user.id,
                metadata={**metadata, **_parent(EntityType.QUOTES, copy.id)},
            )
            for version in variant.versions:
                version_copy = quote_version_operations.create(
                    db,
                    {
                        "variant_id": variant_copy.id,
                        "version_number": version.version_number,
                        "accepted": False,
                        "calculation_data_live": version.calculation_data_live,
                        "total_price": version.total_price,
                        "is_latest": version.is_latest,
                        "created_by": user.id,
                        "modified_by": user.id,
                    },
                    user.id,
                    metadata={**metadata, **_parent(EntityType.QUOTE_VARIANTS, variant_copy.id)},
                )
                for position in version.positions:
                    values = {name: getattr(position, name) for name in POSITION_COPY_FIELDS}
                    values["version_id"] = version_copy.id
                    quote_position_operations.create(
                        db,
                        values,
                        user.id,
                        metadata={**metadata, **_parent(EntityType.QUOTE_VERSIONS, version_copy.id)},
                    )
    logger.info("Quote %s copied to %s by user %s", original.id, copy.id, user.id)
    return get_quote_with_change_attribution(db, copy.id)


def get_quote_change_history(db: Session, quote_id: int, limit: Optional[int] = None) -> List[dict]:
    quote_operations.get(db, quote_id)
    return get_entity_history(db, EntityType.QUOTES, quote_id, limit)
