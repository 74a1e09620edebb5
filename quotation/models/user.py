"""User model. Users own edit locks and are the actors of every audit entry."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from quotation.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(200), unique=True, nullable=False)
    name = Column(String(100))
    role = Column(String(20), nullable=False, default="sales")  # admin/sales/viewer
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
