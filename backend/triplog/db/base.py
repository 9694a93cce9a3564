"""
Declarative base and the common columns shared by every table.
"""
from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declarative_base
from triplog.core.utils import utcnow

Base = declarative_base()


class BaseModel(Base):
    """Abstract model with primary key and timestamps."""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
