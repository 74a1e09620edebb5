from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func
from quotation.database import Base


class Block(Base):
    __tablename__ = "blocks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    standard = Column(Boolean, nullable=False, default=False)
    mandatory = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=True)  # only set for standard blocks
    hide_title = Column(Boolean, nullable=False, default=False)
    page_break_above = Column(Boolean, nullable=False, default=False)
    blocked = Column(DateTime, nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class BlockContent(Base):
    """Language-specific title/text of a block or an article."""

    __tablename__ = "block_content"

    id = Column(Integer, primary_key=True, autoincrement=True)
    block_id = Column(Integer, ForeignKey("blocks.id", ondelete="CASCADE"), nullable=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=True)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False, default="")
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "(block_id IS NOT NULL AND article_id IS NULL) OR (block_id IS NULL AND article_id IS NOT NULL)",
            name="block_or_article_check",
        ),
        Index("idx_block_content_block", "block_id"),
        Index("idx_block_content_article", "article_id"),
    )
