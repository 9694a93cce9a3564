"""
Pydantic schemas for Post entity.
"""
from typing import Optional
from datetime import datetime
from triplog.schemas.common import CamelModel


class PostResponse(CamelModel):
    id: int
    comment: Optional[str] = None
    name: Optional[str] = None
    img: Optional[str] = None
    rating: Optional[float] = None
    created_at: datetime
