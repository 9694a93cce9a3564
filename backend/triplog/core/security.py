"""
Security utilities for JWT authentication, password hashing and one-time codes.
"""
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import secrets
import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from triplog.core.config import settings
from triplog.core.errors import InvalidTokenError, NoTokenError, TokenExpiredError
from triplog.core.utils import utcnow


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to support passwords longer than 72 bytes.
    Returns bytes (32 bytes) which is well under bcrypt's 72-byte limit.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pre_hashed = _pre_hash_password(plain_password)
    try:
        return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password.
    Pre-hashes with SHA256 first, then bcrypt with a fresh salt.
    """
    pre_hashed = _pre_hash_password(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pre_hashed, salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    now = utcnow()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode.update({"iat": now, "exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def create_user_token(user) -> str:
    """Token embedding the user id and username."""
    return create_access_token(data={"sub": str(user.id), "id": user.id, "username": user.username})


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT token.

    Raises TokenExpiredError for lapsed tokens so callers can prompt a
    re-login, InvalidTokenError for anything else that fails verification.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError("Token expired")
    except JWTError:
        raise InvalidTokenError("Invalid token")


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an Authorization header value."""
    if not authorization:
        raise NoTokenError("No token provided")
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise InvalidTokenError("Invalid token")
    return parts[1]


def generate_otp() -> str:
    """Six digit numeric code."""
    return str(secrets.randbelow(900000) + 100000)


def generate_reset_token() -> str:
    """40 hex characters."""
    return secrets.token_hex(20)


def expires_in(minutes: int) -> datetime:
    return utcnow() + timedelta(minutes=minutes)
