"""Pydantic schemas for articles and their calculation items."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from quotation.schemas.audit import LastChangedByOut
from quotation.schemas.content import BlockContentOut


class ArticleBase(BaseModel):
    number: str
    price: Decimal = Decimal("0.00")
    hide_title: bool = False


class ArticleCreate(ArticleBase):
    with_default_calculations: bool = True


class ArticleUpdate(BaseModel):
    number: Optional[str] = None
    price: Optional[Decimal] = None
    hide_title: Optional[bool] = None


class ArticleCopyRequest(BaseModel):
    original_article_id: int


class CalculationItemOut(BaseModel):
    id: int
    name: str
    type: str
    value: Decimal
    order: Optional[int] = None

    model_config = {"from_attributes": True}


class ArticleOut(ArticleBase):
    id: int
    blocked: Optional[datetime] = None
    blocked_by: Optional[int] = None
    deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ArticleDetailOut(ArticleOut):
    contents: List[BlockContentOut] = []
    calculation_items: List[CalculationItemOut] = []
    last_changed_by: Optional[LastChangedByOut] = None
