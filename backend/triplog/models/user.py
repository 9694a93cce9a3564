"""
User model for authentication, email verification and profiles.
"""
import enum
from sqlalchemy import Column, String, Boolean, Date, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship, validates
from triplog.db.base import BaseModel


class Gender(str, enum.Enum):
    """Gender enumeration."""
    MALE = "Male"
    FEMALE = "Female"
    NOT_APPLICABLE = "N/A"


class User(BaseModel):
    """User model; password is stored hashed, never in plain text."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    gender = Column(
        SQLEnum(Gender, values_callable=lambda e: [m.value for m in e]),
        default=Gender.NOT_APPLICABLE,
        nullable=False
    )
    language = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    dob = Column(Date, nullable=True)
    tel = Column(String(30), nullable=True)
    twitter = Column(String(255), nullable=True)
    facebook = Column(String(255), nullable=True)
    instagram = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    avatar_public_id = Column(String(255), nullable=True)
    cover_url = Column(String(500), nullable=True)
    cover_public_id = Column(String(255), nullable=True)

    # Email verification
    verified_email = Column(Boolean, default=False, nullable=False)
    verify_email_otp = Column(String(6), nullable=True)
    verify_email_otp_expires = Column(DateTime, nullable=True)

    # Password reset
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)

    # Relationships
    trips = relationship(
        "Trip",
        back_populates="user",
        order_by="Trip.id",
        cascade="all, delete-orphan"
    )

    @validates("username")
    def _strip_username(self, key, value):
        return value.strip() if isinstance(value, str) else value

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @validates("first_name", "last_name", "language", "country", "city", "tel")
    def _strip_profile_field(self, key, value):
        return value.strip() if isinstance(value, str) else value

    def clear_email_otp(self):
        self.verify_email_otp = None
        self.verify_email_otp_expires = None

    def clear_reset_token(self):
        self.reset_password_token = None
        self.reset_password_expires = None
