"""Block service: audited text blocks and their multilingual content."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotation.database import atomic
from quotation.models.block import Block, BlockContent
from quotation.models.user import User
from quotation.schemas.block import BlockCreate, BlockUpdate
from quotation.schemas.content import BlockContentIn
from quotation.services.audit_service import EntityType, block_content_operations, block_operations
from quotation.services.history_service import get_entity_history, get_last_changed_by
from quotation.services.lock_service import check_editable
from quotation.utils.errors import NotFound, persistence_errors
from quotation.utils.permissions import require_user

logger = logging.getLogger(__name__)


def list_blocks(db: Session, include_deleted: bool = False) -> List[Block]:
    query = db.query(Block)
    if not include_deleted:
        query = query.filter(Block.deleted == False)  # noqa: E712
    # Standard blocks first in their fixed order, then the rest by name.
    return query.order_by(Block.standard.desc(), Block.position, Block.name, Block.id).all()


def _active_block(db: Session, block_id: int) -> Block:
    block = block_operations.get(db, block_id)
    if block.deleted:
        raise NotFound("Block not found", block_id)
    return block


def _next_standard_position(db: Session) -> int:
    current = db.query(func.max(Block.position)).scalar()
    return (current or 0) + 1


def get_block_with_change_attribution(db: Session, block_id: int) -> Block:
    block = _active_block(db, block_id)
    contents = block_content_operations.list_for_parent(db, EntityType.BLOCKS, block_id)
    block.contents = contents
    block.last_changed_by = get_last_changed_by(
        db, EntityType.BLOCKS, block_id, [content.id for content in contents]
    )
    return block


def create_block(db: Session, data: BlockCreate, acting_user: Optional[User]) -> Block:
    user = require_user(acting_user)
    payload = data.model_dump()
    if not payload["standard"]:
        payload["position"] = None
    elif payload["position"] is None:
        payload["position"] = _next_standard_position(db)
    with persistence_errors("Failed to create block"):
        block = block_operations.create(db, payload, user.id)
    return get_block_with_change_attribution(db, block.id)


def save_block(db: Session, block_id: int, data: BlockUpdate, acting_user: Optional[User]) -> Block:
    user = require_user(acting_user)
    payload = data.model_dump(exclude_none=True)
    with persistence_errors("Failed to save block"), atomic(db):
        check_editable(db, EntityType.BLOCKS, block_id, user, lock_row=True)
        block = _active_block(db, block_id)
        if payload.get("standard") is False:
            payload["position"] = None
        elif payload.get("standard") and block.position is None and "position" not in payload:
            payload["position"] = _next_standard_position(db)
        block_operations.update(db, block_id, payload, user.id)
    return get_block_with_change_attribution(db, block_id)


def save_block_content(
    db: Session,
    block_id: int,
    contents: List[BlockContentIn],
    acting_user: Optional[User],
) -> List[BlockContent]:
    user = require_user(acting_user)
    with persistence_errors("Failed to save block content"), atomic(db):
        check_editable(db, EntityType.BLOCKS, block_id, user, lock_row=True)
        _active_block(db, block_id)
        created = block_content_operations.replace_all(
            db,
            EntityType.BLOCKS,
            block_id,
            [content.model_dump() for content in contents],
            user.id,
        )
    return created


def delete_block(db: Session, block_id: int, acting_user: Optional[User]) -> Block:
    user = require_user(acting_user)
    with persistence_errors("Failed to delete block"), atomic(db):
        check_editable(db, EntityType.BLOCKS, block_id, user, lock_row=True)
        block = block_operations.delete(db, block_id, user.id)
    logger.info("Block %s deleted by user %s", block_id, user.id)
    return block


def copy_block(db: Session, original_block_id: int, acting_user: Optional[User]) -> Block:
    """Copy a block and its content. Copies of standard blocks go to the end of the standard order."""
    user = require_user(acting_user)
    original = _active_block(db, original_block_id)
    metadata = {"originalEntityId": original.id}
    with persistence_errors("Failed to copy block"), atomic(db):
        copy = block_operations.create(
            db,
            {
                "name": f"{original.name} (Kopie)",
                "standard": original.standard,
                "mandatory": original.mandatory,
                "position": _next_standard_position(db) if original.standard else None,
                "hide_title": original.hide_title,
                "page_break_above": original.page_break_above,
            },
            user.id,
            metadata=metadata,
        )
        for content in block_content_operations.list_for_parent(db, EntityType.BLOCKS, original.id):
            block_content_operations.create(
                db,
                {
                    "block_id": copy.id,
                    "title": content.title,
                    "content": content.content,
                    "language_id": content.language_id,
                },
                user.id,
                metadata={**metadata, "parentEntityType": EntityType.BLOCKS.value, "parentEntityId": copy.id},
            )
    return get_block_with_change_attribution(db, copy.id)


def get_block_change_history(db: Session, block_id: int, limit: Optional[int] = None) -> List[dict]:
    block_operations.get(db, block_id)
    return get_entity_history(db, EntityType.BLOCKS, block_id, limit)
