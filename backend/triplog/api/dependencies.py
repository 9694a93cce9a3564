"""
Shared route dependencies: bearer-token authentication.
"""
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from triplog.core.errors import NotFoundError
from triplog.core.security import extract_bearer_token
from triplog.db.session import get_db
from triplog.models.user import User
from triplog.services.auth_service import user_id_from_token


def get_current_user_id(authorization: Optional[str] = Header(None)) -> int:
    """Validate the Authorization header and return the caller's user id."""
    token = extract_bearer_token(authorization)
    return user_id_from_token(token)


def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the caller to a stored user."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user
