"""
Pydantic schemas for User entity.
"""
from pydantic import EmailStr, Field, field_validator
from typing import Any, List, Optional
from datetime import date, datetime
from triplog.core.utils import parse_date
from triplog.models.user import Gender
from triplog.schemas.common import CamelModel


def _text(v: Any) -> Any:
    """Accept numbers sent where a string is expected (e.g. an OTP)."""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class SignupRequest(CamelModel):
    """Fields are optional here so a missing one reports a single clear message."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v


class VerifyEmailOTPRequest(CamelModel):
    email: Optional[str] = None
    otp: Optional[str] = None

    @field_validator("otp", mode="before")
    @classmethod
    def coerce_otp(cls, v):
        return _text(v)


class SigninRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=8)


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=8)


class UserUpdate(CamelModel):
    """Allow-listed profile fields; anything else in the body is ignored."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    language: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    dob: Optional[date] = None
    tel: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("dob", mode="before")
    @classmethod
    def parse_dob(cls, v):
        if v in (None, ""):
            return None
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError("Date of birth must be a valid date")
        return parsed


class UserResponse(CamelModel):
    """Sanitized user: no password, OTP or reset token."""
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    language: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    dob: Optional[date] = None
    tel: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_url: Optional[str] = None
    verified_email: bool
    trips: List[int] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("trips", mode="before")
    @classmethod
    def trip_ids(cls, v):
        return [getattr(t, "id", t) for t in v or []]


class UserSummary(CamelModel):
    """Owner identity joined into trip responses."""
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class AuthResponse(MessageResponse):
    """Token plus sanitized user, returned after verification and sign-in."""
    token: str
    user: UserResponse


class UserEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse
