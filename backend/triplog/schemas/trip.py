"""
Pydantic schemas for Trip entity.
"""
from pydantic import Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from triplog.core.utils import parse_date
from triplog.schemas.common import CamelModel
from triplog.schemas.user import UserSummary


class TravelPeriod(CamelModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        if v is None or isinstance(v, date):
            return v
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError("must be a valid date")
        return parsed


class VisitedPlaceBase(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class AccommodationBase(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)


class TransportationBase(CamelModel):
    type: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)


class BudgetItemBase(CamelModel):
    category: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)


class TripPayload(CamelModel):
    """Trip fields accepted on create and full update."""
    country: str
    travel_period: TravelPeriod
    visited_places: List[VisitedPlaceBase]
    accommodations: List[AccommodationBase]
    transportations: List[TransportationBase]
    budget_items: List[BudgetItemBase]
    weather_notes: Optional[str] = None
    clothing_tips: Optional[str] = None


class PhotoResponse(CamelModel):
    id: int
    url: str
    public_id: str = Field(alias="public_id")


class VisitedPlaceResponse(VisitedPlaceBase):
    id: int


class AccommodationResponse(AccommodationBase):
    id: int


class TransportationResponse(TransportationBase):
    id: int


class BudgetItemResponse(BudgetItemBase):
    id: int


class TripResponse(CamelModel):
    """Schema for trip response with the owner joined in."""
    id: int
    user_id: int
    user: Optional[UserSummary] = None
    country: Optional[str] = None
    travel_period: TravelPeriod
    visited_places: List[VisitedPlaceResponse] = []
    accommodations: List[AccommodationResponse] = []
    transportations: List[TransportationResponse] = []
    budget_items: List[BudgetItemResponse] = []
    weather_notes: Optional[str] = None
    clothing_tips: Optional[str] = None
    photos: List[PhotoResponse] = []
    total_budget: float = 0
    created_at: datetime
    updated_at: datetime


class TripMessageResponse(CamelModel):
    """Envelope returned by create, update and delete."""
    message: str
    trip: TripResponse
