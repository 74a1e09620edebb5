from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class BlockContentIn(BaseModel):
    title: str
    content: str = ""
    language_id: int


class BlockContentOut(BlockContentIn):
    id: int
    block_id: Optional[int] = None
    article_id: Optional[int] = None
    deleted: bool
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ContentSaveRequest(BaseModel):
    contents: List[BlockContentIn]
