"""Models package - Import all models for SQLAlchemy registration."""
from triplog.models.user import User, Gender
from triplog.models.trip import (
    Trip, VisitedPlace, Accommodation, Transportation, BudgetItem, TripPhoto
)
from triplog.models.post import Post

__all__ = [
    "User",
    "Gender",
    "Trip",
    "VisitedPlace",
    "Accommodation",
    "Transportation",
    "BudgetItem",
    "TripPhoto",
    "Post",
]
