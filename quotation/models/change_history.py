"""Append-only change history shared by every audited entity type."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, JSON
from sqlalchemy.sql import func

from quotation.database import Base
from quotation.utils.helpers import utcnow


class ChangeHistory(Base):
    __tablename__ = "change_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(50), nullable=False)  # articles/blocks/block_content/quotes/...
    entity_id = Column(Integer, nullable=False)
    action = Column(String(10), nullable=False)  # INSERT/UPDATE/DELETE
    changed_fields = Column(JSON)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    change_metadata = Column("metadata", JSON)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("change_history_entity_idx", "entity_type", "entity_id"),
        Index("change_history_user_idx", "user_id"),
        Index("change_history_timestamp_idx", "timestamp"),
    )
