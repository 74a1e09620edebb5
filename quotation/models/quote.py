"""Quote hierarchy: quote -> variants -> versions -> positions."""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func
from quotation.database import Base


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sales_opportunity_id = Column(
        Integer, ForeignKey("sales_opportunities.id", ondelete="CASCADE"), nullable=False
    )
    quote_number = Column(String(50), unique=True, nullable=False)
    title = Column(String(300))
    valid_until = Column(DateTime)
    blocked = Column(DateTime, nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    modified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class QuoteVariant(Base):
    __tablename__ = "quote_variants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
    variant_descriptor = Column(String(10), nullable=False)  # A/B/C
    variant_number = Column(Integer, nullable=False)
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    blocked = Column(DateTime, nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    modified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class QuoteVersion(Base):
    __tablename__ = "quote_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    variant_id = Column(Integer, ForeignKey("quote_variants.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    accepted = Column(Boolean, nullable=False, default=False)
    calculation_data_live = Column(Boolean, nullable=False, default=False)
    total_price = Column(Numeric(14, 2))
    is_latest = Column(Boolean, nullable=False, default=False)
    blocked = Column(DateTime, nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    modified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("variant_id", "version_number", name="variant_version_unique"),
    )


class QuotePosition(Base):
    __tablename__ = "quote_positions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version_id = Column(Integer, ForeignKey("quote_versions.id", ondelete="CASCADE"), nullable=False)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=True)
    block_id = Column(Integer, ForeignKey("blocks.id"), nullable=True)
    position_number = Column(Integer, nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2))
    total_price = Column(Numeric(14, 2))
    title = Column(String(300))
    description = Column(Text)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "(article_id IS NOT NULL AND block_id IS NULL) OR (article_id IS NULL AND block_id IS NOT NULL)",
            name="article_or_block_check",
        ),
    )
