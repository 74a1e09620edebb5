"""Pydantic schemas for change history, change attribution and edit locks."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ChangeActorOut(BaseModel):
    id: int
    name: Optional[str] = None
    email: str = ""


class ChangeHistoryOut(BaseModel):
    id: int
    entity_type: str
    entity_id: int
    action: str
    changed_fields: Optional[Dict[str, Any]] = None
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None
    user: ChangeActorOut


class LastChangedByOut(BaseModel):
    id: int
    name: Optional[str] = None
    email: str = ""
    timestamp: datetime
    change_type: str  # entity/content


class LockStatusOut(BaseModel):
    entity_type: str
    entity_id: int
    is_locked: bool
    locked_by: Optional[int] = None
    locked_by_name: Optional[str] = None
    locked_at: Optional[datetime] = None
