"""
Reelarr Database Models
SQLAlchemy models for data persistence
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class GlobalValue(Base):
    """Keyed blob storage; the consolidated metainfo lives here as JSON."""
    __tablename__ = "global_values"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
