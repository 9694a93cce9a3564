"""
User profile service: profile reads and updates, public profiles and
account deletion.
"""
import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from triplog.core.errors import ConflictError, NotFoundError, UploadError
from triplog.models.user import User
from triplog.schemas.user import UserUpdate
from triplog.services.media_service import (
    MediaFile, MediaStorage, MediaStorageError, destroy_quietly
)
from triplog.services.trip_service import check_photo_files, destroy_trip_photos

logger = logging.getLogger(__name__)


def get_profile(user_id: int, db: Session) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_public_profile(username: str, db: Session) -> User:
    """Case-sensitive lookup by username."""
    user = db.query(User).filter(User.username == username).first()
    if not user or user.username != username:
        raise NotFoundError("User not found")
    return user


async def _replace_image(
    user: User,
    kind: str,
    image: MediaFile,
    storage: MediaStorage
) -> Optional[str]:
    """Upload the new image onto the user; returns the public id it replaces."""
    try:
        stored = await storage.upload(image.filename, image.content, image.content_type)
    except MediaStorageError as e:
        logger.error(f"{kind} upload failed for user {user.id}: {e}")
        raise UploadError(f"Error uploading {kind}")

    previous = getattr(user, f"{kind}_public_id")
    setattr(user, f"{kind}_url", stored.url)
    setattr(user, f"{kind}_public_id", stored.public_id)
    return previous


def username_taken(username: str, user_id: int, db: Session) -> bool:
    return db.query(User).filter(User.username == username, User.id != user_id).first() is not None


async def update_profile(
    user_id: int,
    changes: UserUpdate,
    db: Session,
    storage: MediaStorage,
    avatar: Optional[MediaFile] = None,
    cover: Optional[MediaFile] = None
) -> User:
    """
    Apply allow-listed fields only; an empty update is a no-op.

    Replaced images are destroyed only after the new profile is committed.
    """
    user = get_profile(user_id, db)
    fields = changes.model_dump(exclude_unset=True)

    new_username = fields.get("username")
    if new_username and new_username != user.username and username_taken(new_username, user.id, db):
        raise ConflictError("Username already exists")

    images = [(kind, f) for kind, f in (("avatar", avatar), ("cover", cover)) if f is not None]
    check_photo_files([f for _, f in images])

    for key, value in fields.items():
        if key == "username" and not value:
            continue
        setattr(user, key, value)

    replaced = []
    for kind, image in images:
        previous = await _replace_image(user, kind, image, storage)
        if previous:
            replaced.append(previous)

    uploaded = [getattr(user, f"{kind}_public_id") for kind, _ in images]
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if uploaded:
            await destroy_quietly(storage, uploaded, context=f"user {user_id} rejected update")
        raise ConflictError("Username already exists")
    db.refresh(user)

    if replaced:
        await destroy_quietly(storage, replaced, context=f"user {user.id} images")
    logger.info(f"User {user.id} updated profile fields {sorted(fields)}")
    return user


async def delete_account(user_id: int, db: Session, storage: MediaStorage) -> None:
    """
    Delete a user together with their trips.

    Photo and profile image destroys are best effort; failures are logged and
    the records are deleted anyway.
    """
    user = get_profile(user_id, db)

    for trip in list(user.trips):
        await destroy_trip_photos(trip, storage)

    images = [pid for pid in (user.avatar_public_id, user.cover_public_id) if pid]
    if images:
        await destroy_quietly(storage, images, context=f"user {user.id} images")

    trip_count = len(user.trips)
    db.delete(user)
    db.commit()
    logger.info(f"Deleted user {user_id} and {trip_count} trip(s)")
