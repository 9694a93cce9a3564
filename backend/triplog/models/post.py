"""
Community post model.
"""
from sqlalchemy import Column, String, Text, Float
from triplog.db.base import BaseModel


class Post(BaseModel):
    """Free-standing testimonial shown on the landing page."""
    __tablename__ = "posts"

    comment = Column(Text, nullable=True)
    name = Column(String(100), nullable=True)
    img = Column(String(500), nullable=True)
    rating = Column(Float, nullable=True)
