from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from quotation.database import Base


class Language(Base):
    __tablename__ = "languages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    value = Column(String(10), unique=True, nullable=False)  # de/en/fr
    label = Column(String(50), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
