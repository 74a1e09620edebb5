"""Pydantic schemas for quotes, variants, versions and positions."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, model_validator

from quotation.schemas.audit import LastChangedByOut


class QuoteCreate(BaseModel):
    sales_opportunity_id: int
    quote_number: Optional[str] = None
    title: Optional[str] = None
    valid_until: Optional[datetime] = None
    language_id: int


class QuoteUpdate(BaseModel):
    title: Optional[str] = None
    valid_until: Optional[datetime] = None


class QuoteCopyRequest(BaseModel):
    original_quote_id: int
    quote_number: Optional[str] = None


class QuoteVersionUpdate(BaseModel):
    accepted: Optional[bool] = None
    calculation_data_live: Optional[bool] = None
    total_price: Optional[Decimal] = None


class QuotePositionCreate(BaseModel):
    article_id: Optional[int] = None
    block_id: Optional[int] = None
    position_number: int
    quantity: Decimal = Decimal("1")
    unit_price: Optional[Decimal] = None
    title: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_article_or_block(self):
        if (self.article_id is None) == (self.block_id is None):
            raise ValueError("A position references either an article or a block")
        return self


class QuotePositionUpdate(BaseModel):
    position_number: Optional[int] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    title: Optional[str] = None
    description: Optional[str] = None


class QuotePositionOut(BaseModel):
    id: int
    version_id: int
    article_id: Optional[int] = None
    block_id: Optional[int] = None
    position_number: int
    quantity: Decimal
    unit_price: Optional[Decimal] = None
    total_price: Optional[Decimal] = None
    title: Optional[str] = None
    description: Optional[str] = None
    deleted: bool

    model_config = {"from_attributes": True}


class QuoteVersionOut(BaseModel):
    id: int
    variant_id: int
    version_number: int
    accepted: bool
    calculation_data_live: bool
    total_price: Optional[Decimal] = None
    is_latest: bool
    blocked: Optional[datetime] = None
    blocked_by: Optional[int] = None
    deleted: bool

    model_config = {"from_attributes": True}


class QuoteVersionDetailOut(QuoteVersionOut):
    positions: List[QuotePositionOut] = []


class QuoteVariantOut(BaseModel):
    id: int
    quote_id: int
    variant_descriptor: str
    variant_number: int
    language_id: int
    is_default: bool
    blocked: Optional[datetime] = None
    blocked_by: Optional[int] = None
    deleted: bool

    model_config = {"from_attributes": True}


class QuoteVariantDetailOut(QuoteVariantOut):
    versions: List[QuoteVersionDetailOut] = []


class QuoteOut(BaseModel):
    id: int
    sales_opportunity_id: int
    quote_number: str
    title: Optional[str] = None
    valid_until: Optional[datetime] = None
    blocked: Optional[datetime] = None
    blocked_by: Optional[int] = None
    deleted: bool
    created_by: int
    modified_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QuoteDetailOut(QuoteOut):
    variants: List[QuoteVariantDetailOut] = []
    last_changed_by: Optional[LastChangedByOut] = None


class QuoteVariantCreate(BaseModel):
    language_id: int
