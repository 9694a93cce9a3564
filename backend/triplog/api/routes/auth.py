"""
Authentication routes for signup, email verification, signin and password recovery.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session
from triplog.core.security import extract_bearer_token
from triplog.db.session import get_db
from triplog.schemas.user import (
    AuthResponse, ForgotPasswordRequest, MessageResponse, ResetPasswordRequest,
    SigninRequest, SignupRequest, UserEnvelope, VerifyEmailOTPRequest
)
from triplog.services import auth_service
from triplog.services.mail_service import Mailer, get_mailer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=MessageResponse)
async def signup(
    user_data: SignupRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer)
):
    """Register a new user and email a verification OTP."""
    await auth_service.register_user(user_data.username, user_data.email, user_data.password, db, mailer)
    return {"message": "Signup successful. OTP has been sent to your email."}


@router.post("/verify-email-otp", response_model=AuthResponse)
async def verify_email_otp(data: VerifyEmailOTPRequest, db: Session = Depends(get_db)):
    """Confirm the email with its OTP and log the user in."""
    token, user = auth_service.verify_email_otp(data.email, data.otp, db)
    return {"message": "Email verified successfully", "token": token, "user": user}


@router.post("/signin", response_model=AuthResponse)
async def signin(credentials: SigninRequest, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    token, user = auth_service.sign_in(credentials.email, credentials.password, db)
    return {"message": "Signed in successfully", "token": token, "user": user}


@router.get("/verify", response_model=UserEnvelope)
async def verify(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)):
    """Check a bearer token and return its user."""
    token = extract_bearer_token(authorization)
    user = auth_service.verify_token(token, db)
    return {"user": user}


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer)
):
    await auth_service.forgot_password(data.email, db, mailer)
    return {"message": "Reset link sent to your email"}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(data.token, data.new_password, db)
    return {"message": "Password reset successfully"}
