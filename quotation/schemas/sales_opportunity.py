"""Pydantic schemas for sales opportunities."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel

from quotation.schemas.audit import LastChangedByOut

OpportunityStatus = Literal["open", "in_progress", "won", "lost", "cancelled"]


class SalesOpportunityBase(BaseModel):
    client_id: int
    crm_id: Optional[str] = None
    keyword: Optional[str] = None
    status: OpportunityStatus = "open"
    business_area: Optional[str] = None
    sales_representative: Optional[int] = None
    quote_volume: Optional[Decimal] = None
    order_inventory_specification: Optional[str] = None


class SalesOpportunityCreate(SalesOpportunityBase):
    pass


class SalesOpportunityUpdate(BaseModel):
    client_id: Optional[int] = None
    crm_id: Optional[str] = None
    keyword: Optional[str] = None
    status: Optional[OpportunityStatus] = None
    business_area: Optional[str] = None
    sales_representative: Optional[int] = None
    quote_volume: Optional[Decimal] = None
    order_inventory_specification: Optional[str] = None


class SalesOpportunityCopyRequest(BaseModel):
    original_sales_opportunity_id: int


class SalesOpportunityOut(SalesOpportunityBase):
    id: int
    blocked: Optional[datetime] = None
    blocked_by: Optional[int] = None
    deleted: bool
    created_by: int
    modified_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SalesOpportunityDetailOut(SalesOpportunityOut):
    client_name: Optional[str] = None
    quotes_count: int = 0
    last_changed_by: Optional[LastChangedByOut] = None
