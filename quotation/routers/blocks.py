"""Block endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user, require_roles
from quotation.models.user import User
from quotation.schemas.block import BlockCopyRequest, BlockCreate, BlockDetailOut, BlockOut, BlockUpdate
from quotation.schemas.audit import ChangeHistoryOut
from quotation.schemas.content import BlockContentOut, ContentSaveRequest
from quotation.services import block_service
from quotation.utils.permissions import EDITOR_ROLES

router = APIRouter(prefix="/api/blocks", tags=["blocks"])


@router.get("", response_model=List[BlockOut])
def list_blocks(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return block_service.list_blocks(db)


@router.post("", response_model=BlockDetailOut)
def create_block(
    data: BlockCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return block_service.create_block(db, data, current_user)


@router.post("/copy", response_model=BlockDetailOut)
def copy_block(
    data: BlockCopyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return block_service.copy_block(db, data.original_block_id, current_user)


@router.get("/{block_id}", response_model=BlockDetailOut)
def get_block(block_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return block_service.get_block_with_change_attribution(db, block_id)


@router.put("/{block_id}", response_model=BlockDetailOut)
def save_block(
    block_id: int,
    data: BlockUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return block_service.save_block(db, block_id, data, current_user)


@router.put("/{block_id}/content", response_model=List[BlockContentOut])
def save_block_content(
    block_id: int,
    data: ContentSaveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return block_service.save_block_content(db, block_id, data.contents, current_user)


@router.delete("/{block_id}")
def delete_block(
    block_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    block_service.delete_block(db, block_id, current_user)
    return {"message": "Block deleted"}


@router.get("/{block_id}/history", response_model=List[ChangeHistoryOut])
def block_history(
    block_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return block_service.get_block_change_history(db, block_id, limit)
