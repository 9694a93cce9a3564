"""
User profile routes.
"""
from typing import Any, Dict, Optional, Tuple
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile
from triplog.api.dependencies import get_current_user, get_current_user_id
from triplog.api.routes.trips import read_media_file
from triplog.core.errors import InvalidInputError
from triplog.db.session import get_db
from triplog.models.user import User
from triplog.schemas.user import (
    ChangePasswordRequest, MessageResponse, UserEnvelope, UserUpdate
)
from triplog.services import auth_service, user_service
from triplog.services.media_service import MediaFile, MediaStorage, get_media_storage

router = APIRouter(prefix="/user", tags=["user"])

IMAGE_FIELDS = ("avatar", "cover")


@router.get("/profile", response_model=UserEnvelope)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return {"user": current_user}


async def _read_update_body(request: Request) -> Tuple[Dict[str, Any], Dict[str, Optional[MediaFile]]]:
    """Profile updates arrive as JSON, or as multipart when images are attached."""
    images: Dict[str, Optional[MediaFile]] = {}
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        data = {}
        for key, value in form.items():
            if key in IMAGE_FIELDS:
                if isinstance(value, UploadFile):
                    images[key] = await read_media_file(value)
            else:
                data[key] = value
        return data, images

    body = await request.body()
    if not body:
        return {}, images
    try:
        data = await request.json()
    except ValueError:
        raise InvalidInputError("Invalid JSON format in request body")
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be an object")
    return data, images


@router.put("/update", response_model=UserEnvelope)
async def update_profile(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
):
    """Update allow-listed profile fields and optionally the avatar/cover image."""
    data, images = await _read_update_body(request)
    try:
        changes = UserUpdate.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise InvalidInputError(f"{field}: {first['msg']}")

    user = await user_service.update_profile(
        user_id, changes, db, storage,
        avatar=images.get("avatar"),
        cover=images.get("cover")
    )
    return {"message": "Profile updated successfully", "user": user}


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    auth_service.change_password(user_id, data.old_password, data.new_password, db)
    return {"message": "Password changed successfully"}


@router.get("/public/{username}", response_model=UserEnvelope)
async def get_public_profile(username: str, db: Session = Depends(get_db)):
    """Public profile by username; no authentication required."""
    return {"user": user_service.get_public_profile(username, db)}


@router.delete("/delete", response_model=MessageResponse)
async def delete_account(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
):
    """Delete the caller's account, trips and uploaded media."""
    await user_service.delete_account(user_id, db, storage)
    return {"message": "Account deleted successfully"}
