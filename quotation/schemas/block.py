"""Pydantic schemas for text blocks."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from quotation.schemas.audit import LastChangedByOut
from quotation.schemas.content import BlockContentOut


class BlockBase(BaseModel):
    name: str = "Neuer Block"
    standard: bool = False
    mandatory: bool = False
    position: Optional[int] = None
    hide_title: bool = False
    page_break_above: bool = False


class BlockCreate(BlockBase):
    pass


class BlockUpdate(BaseModel):
    name: Optional[str] = None
    standard: Optional[bool] = None
    mandatory: Optional[bool] = None
    position: Optional[int] = None
    hide_title: Optional[bool] = None
    page_break_above: Optional[bool] = None


class BlockCopyRequest(BaseModel):
    original_block_id: int


class BlockOut(BlockBase):
    id: int
    blocked: Optional[datetime] = None
    blocked_by: Optional[int] = None
    deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BlockDetailOut(BlockOut):
    contents: List[BlockContentOut] = []
    last_changed_by: Optional[LastChangedByOut] = None
