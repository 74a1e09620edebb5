from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from quotation.database import Base


class SalesOpportunity(Base):
    __tablename__ = "sales_opportunities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    crm_id = Column(String(50))
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    order_inventory_specification = Column(Text)
    status = Column(String(20), nullable=False, default="open")  # open/in_progress/won/lost/cancelled
    business_area = Column(String(100))
    sales_representative = Column(Integer, ForeignKey("users.id"), nullable=True)
    keyword = Column(String(200))
    quote_volume = Column(Numeric(14, 2))
    blocked = Column(DateTime, nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    modified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
