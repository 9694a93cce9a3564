"""
Authentication service: registration, email OTP verification, sign-in and
password recovery.
"""
import asyncio
import logging
from typing import Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm import Session
from triplog.core.config import settings
from triplog.core.errors import (
    AlreadyVerifiedError, ConflictError, EmailNotVerifiedError, IncorrectPasswordError,
    InvalidCredentialsError, InvalidInputError, InvalidOrExpiredTokenError, InvalidOTPError,
    InvalidTokenError, NotFoundError, OTPExpiredError
)
from triplog.core.security import (
    create_user_token, decode_access_token, expires_in, generate_otp,
    generate_reset_token, get_password_hash, verify_password
)
from triplog.core.utils import utcnow
from triplog.models.user import User
from triplog.services.mail_service import Mailer

logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_user_by_email(email: str, db: Session) -> Optional[User]:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def find_existing_user(username: str, email: str, db: Session) -> Optional[User]:
    """A user already holding this username or email, if any."""
    return db.query(User).filter(
        or_(User.username == username, User.email == _normalize_email(email))
    ).first()


async def register_user(
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    db: Session,
    mailer: Mailer
) -> User:
    """
    Create an unverified user and email the verification OTP.

    The user is committed only once the email has gone out, so a mail
    failure leaves the username and email free for another attempt.
    """
    if not username or not email or not password:
        raise InvalidInputError("Please fill all fields")

    email = _normalize_email(email)
    if find_existing_user(username, email, db):
        raise ConflictError("User with this username or email already exists")

    otp = generate_otp()
    new_user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(password),
        verified_email=False,
        verify_email_otp=otp,
        verify_email_otp_expires=expires_in(settings.OTP_EXPIRE_MINUTES)
    )
    db.add(new_user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this username or email already exists")

    try:
        await asyncio.to_thread(
            mailer.send,
            to=new_user.email,
            subject="Email Verification OTP",
            body=(
                f"Hello {new_user.username},\n\n"
                f"Your verification code is {otp}. "
                f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes."
            )
        )
    except Exception:
        db.rollback()
        logger.error(f"Verification email to {email} failed, registration rolled back")
        raise

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this username or email already exists")
    db.refresh(new_user)
    logger.info(f"Registered user {new_user.id} ({new_user.username}), awaiting email verification")
    return new_user


def verify_email_otp(email: Optional[str], otp: Optional[str], db: Session) -> Tuple[str, User]:
    """Mark the email verified and return a bearer token with the user."""
    if not email or not otp:
        raise InvalidInputError("Email and OTP are required")

    user = get_user_by_email(email, db)
    if not user:
        raise NotFoundError("No user found with this email")
    if user.verified_email:
        raise AlreadyVerifiedError("Email is already verified")
    if not user.verify_email_otp or user.verify_email_otp != otp.strip():
        raise InvalidOTPError("Invalid OTP")
    if not user.verify_email_otp_expires or user.verify_email_otp_expires < utcnow():
        raise OTPExpiredError("OTP has expired, please request a new one")

    user.verified_email = True
    user.clear_email_otp()
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} verified their email")

    return create_user_token(user), user


def sign_in(email: Optional[str], password: Optional[str], db: Session) -> Tuple[str, User]:
    """
    Check credentials; unknown email and wrong password fail the same way.

    Unverified accounts are turned away before the password is looked at.
    """
    if not email or not password:
        raise InvalidInputError("Please fill all fields")

    user = get_user_by_email(email, db)
    if not user:
        logger.info("Rejected sign-in with invalid credentials")
        raise InvalidCredentialsError("Invalid credentials")
    if not user.verified_email:
        raise EmailNotVerifiedError("Please verify your email before signing in")
    if not verify_password(password, user.hashed_password):
        logger.info("Rejected sign-in with invalid credentials")
        raise InvalidCredentialsError("Invalid credentials")

    return create_user_token(user), user


def user_id_from_token(token: str) -> int:
    """Validate a bearer token and return the user id it was issued for."""
    payload = decode_access_token(token)
    try:
        return int(payload.get("id") or payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError("Invalid token")


def verify_token(token: str, db: Session) -> User:
    """Resolve a bearer token to its user."""
    user_id = user_id_from_token(token)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


async def forgot_password(email: Optional[str], db: Session, mailer: Mailer) -> User:
    """Issue a fresh reset token, replacing any earlier one, and email the link."""
    if not email:
        raise InvalidInputError("Email is required")

    user = get_user_by_email(email, db)
    if not user:
        raise NotFoundError("No user with that email")

    token = generate_reset_token()
    user.reset_password_token = token
    user.reset_password_expires = expires_in(settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    reset_link = f"{settings.CLIENT_URL.rstrip('/')}/reset-password/{token}"
    await asyncio.to_thread(
        mailer.send,
        to=user.email,
        subject="Password Reset",
        body=(
            "You requested a password reset.\n\n"
            f"Open this link to choose a new password: {reset_link}\n\n"
            f"The link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes."
        )
    )
    logger.info(f"Issued password reset token for user {user.id}")
    return user


def reset_password(token: Optional[str], new_password: Optional[str], db: Session) -> User:
    if not token or not new_password:
        raise InvalidInputError("Token and new password are required")

    user = db.query(User).filter(User.reset_password_token == token).first()
    if not user or not user.reset_password_expires or user.reset_password_expires < utcnow():
        raise InvalidOrExpiredTokenError("Invalid or expired token")

    user.hashed_password = get_password_hash(new_password)
    user.clear_reset_token()
    db.commit()
    logger.info(f"User {user.id} reset their password")
    return user


def change_password(
    user_id: int,
    old_password: Optional[str],
    new_password: Optional[str],
    db: Session
) -> User:
    if not old_password or not new_password:
        raise InvalidInputError("Please provide oldPassword and newPassword")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if not verify_password(old_password, user.hashed_password):
        raise IncorrectPasswordError("Old password is incorrect")

    user.hashed_password = get_password_hash(new_password)
    db.commit()
    logger.info(f"User {user.id} changed their password")
    return user
