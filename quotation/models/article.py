"""Article models. Articles are lockable and own block_content rows and calculation items."""

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from quotation.database import Base


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String(50), nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    hide_title = Column(Boolean, nullable=False, default=False)
    blocked = Column(DateTime, nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ArticleCalculationItem(Base):
    __tablename__ = "article_calculation_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(String(10), nullable=False)  # time/cost
    value = Column(Numeric(12, 2), nullable=False, default=0)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=True)
    order = Column(Integer)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
