"""
Trip model: one journal entry owned by a single user.
"""
from sqlalchemy import Column, String, Date, Text, Float, ForeignKey, Integer
from sqlalchemy.orm import relationship
from triplog.db.base import BaseModel


class Trip(BaseModel):
    """Trip with its itinerary collections and photos."""
    __tablename__ = "trips"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    country = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    weather_notes = Column(Text, nullable=True)
    clothing_tips = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="trips")
    visited_places = relationship(
        "VisitedPlace", back_populates="trip", order_by="VisitedPlace.id", cascade="all, delete-orphan"
    )
    accommodations = relationship(
        "Accommodation", back_populates="trip", order_by="Accommodation.id", cascade="all, delete-orphan"
    )
    transportations = relationship(
        "Transportation", back_populates="trip", order_by="Transportation.id", cascade="all, delete-orphan"
    )
    budget_items = relationship(
        "BudgetItem", back_populates="trip", order_by="BudgetItem.id", cascade="all, delete-orphan"
    )
    photos = relationship(
        "TripPhoto", back_populates="trip", order_by="TripPhoto.id", cascade="all, delete-orphan"
    )

    @property
    def travel_period(self) -> dict:
        return {"start_date": self.start_date, "end_date": self.end_date}

    @property
    def total_budget(self) -> float:
        return sum(item.amount or 0 for item in self.budget_items)


class VisitedPlace(BaseModel):
    __tablename__ = "trip_visited_places"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)  # 1-5

    trip = relationship("Trip", back_populates="visited_places")


class Accommodation(BaseModel):
    __tablename__ = "trip_accommodations"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    name = Column(String(200), nullable=True)
    type = Column(String(100), nullable=True)
    cost = Column(Float, nullable=True)

    trip = relationship("Trip", back_populates="accommodations")


class Transportation(BaseModel):
    __tablename__ = "trip_transportations"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    type = Column(String(100), nullable=True)
    cost = Column(Float, nullable=True)

    trip = relationship("Trip", back_populates="transportations")


class BudgetItem(BaseModel):
    __tablename__ = "trip_budget_items"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    amount = Column(Float, nullable=True)

    trip = relationship("Trip", back_populates="budget_items")


class TripPhoto(BaseModel):
    """Photo stored in the media backend, addressed by URL and public id."""
    __tablename__ = "trip_photos"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    public_id = Column(String(255), nullable=False)

    trip = relationship("Trip", back_populates="photos")
