from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from quotation.database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    foreign_id = Column(String(50), unique=True, nullable=False)  # CRM customer number
    name = Column(String(200), nullable=False)
    address = Column(Text)
    phone = Column(String(50))
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
