"""
Trip service: trip lifecycle, ownership checks and photo-set reconciliation.
"""
import logging
import random
from typing import Any, Iterable, List, Optional, Sequence
from sqlalchemy.orm import Session, joinedload, selectinload
from triplog.core.config import settings
from triplog.core.errors import (
    ForbiddenError, InvalidIdError, InvalidInputError, NotFoundError, UploadError
)
from triplog.models.trip import (
    Trip, VisitedPlace, Accommodation, Transportation, BudgetItem, TripPhoto
)
from triplog.models.user import User
from triplog.schemas.trip import TripPayload, TripResponse
from triplog.services.media_service import (
    MediaFile, MediaStorage, MediaStorageError, StoredMedia, destroy_quietly, upload_all
)

logger = logging.getLogger(__name__)


def _trip_query(db: Session):
    return db.query(Trip).options(
        joinedload(Trip.user),
        selectinload(Trip.visited_places),
        selectinload(Trip.accommodations),
        selectinload(Trip.transportations),
        selectinload(Trip.budget_items),
        selectinload(Trip.photos),
    )


# Largest value a signed 64-bit primary key column holds
MAX_TRIP_ID = 2 ** 63 - 1


def parse_trip_id(raw_id: Any) -> int:
    """Trip ids are positive integers; anything else is rejected before lookup."""
    text = str(raw_id).strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidIdError("Invalid trip ID")
    trip_id = int(text)
    if trip_id == 0 or trip_id > MAX_TRIP_ID:
        raise InvalidIdError("Invalid trip ID")
    return trip_id


def check_trip_owner(trip: Trip, user_id: int) -> Trip:
    """Only the owner may change or delete a trip."""
    if trip.user_id != user_id:
        logger.warning(f"User {user_id} tried to modify trip {trip.id} owned by {trip.user_id}")
        raise ForbiddenError("Access denied to this trip")
    return trip


def check_photo_files(files: Sequence[MediaFile]) -> None:
    """Validate content type and size before anything is uploaded."""
    for f in files:
        if f.content_type not in settings.ALLOWED_IMAGE_TYPES:
            raise InvalidInputError(f"Invalid file type: {f.content_type}")
        if len(f.content) > settings.MAX_UPLOAD_SIZE:
            raise InvalidInputError(f"File too large: {f.filename}")


def _apply_payload(trip: Trip, payload: TripPayload) -> None:
    """Overwrite trip fields and itinerary collections from a validated payload."""
    trip.country = payload.country.strip()
    trip.start_date = payload.travel_period.start_date
    trip.end_date = payload.travel_period.end_date
    trip.weather_notes = payload.weather_notes
    trip.clothing_tips = payload.clothing_tips
    trip.visited_places = [VisitedPlace(**p.model_dump()) for p in payload.visited_places]
    trip.accommodations = [Accommodation(**a.model_dump()) for a in payload.accommodations]
    trip.transportations = [Transportation(**t.model_dump()) for t in payload.transportations]
    trip.budget_items = [BudgetItem(**b.model_dump()) for b in payload.budget_items]


def _commit_or_report_orphans(db: Session, uploaded: Iterable[TripPhoto]) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        orphans = [p.public_id for p in uploaded]
        if orphans:
            logger.error(f"Trip write failed after upload, orphaned media: {orphans}")
        raise


async def create_trip(
    user_id: int,
    payload: TripPayload,
    photo_files: Sequence[MediaFile],
    db: Session,
    storage: MediaStorage
) -> Trip:
    """Validate-then-upload-then-persist; nothing is written if an upload fails."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    check_photo_files(photo_files)
    try:
        stored = await upload_all(storage, photo_files)
    except MediaStorageError as e:
        logger.error(f"Photo upload failed while creating trip for user {user_id}: {e}")
        raise UploadError("Error creating trip")

    trip = Trip(user_id=user.id)
    _apply_payload(trip, payload)
    trip.photos = [TripPhoto(url=s.url, public_id=s.public_id) for s in stored]
    user.trips.append(trip)
    db.add(trip)
    _commit_or_report_orphans(db, trip.photos)
    logger.info(f"User {user_id} created trip {trip.id} with {len(stored)} photo(s)")

    return get_trip(trip.id, db)


def list_random_trips(db: Session, limit: Optional[int] = None) -> List[Trip]:
    """Pseudo-random sample of at most `limit` trips."""
    limit = limit or settings.RANDOM_TRIPS_LIMIT
    ids = [row[0] for row in db.query(Trip.id).all()]
    sample = random.sample(ids, min(limit, len(ids)))
    if not sample:
        return []
    trips = {t.id: t for t in _trip_query(db).filter(Trip.id.in_(sample)).all()}
    return [trips[i] for i in sample if i in trips]


def list_all_trips(db: Session) -> List[Trip]:
    return _trip_query(db).order_by(Trip.created_at.desc(), Trip.id.desc()).all()


def get_trip(trip_id: Any, db: Session) -> Trip:
    trip = _trip_query(db).filter(Trip.id == parse_trip_id(trip_id)).first()
    if not trip:
        raise NotFoundError("Trip not found")
    return trip


def list_trips_for_user(user_id: int, db: Session) -> List[Trip]:
    trips = _trip_query(db).filter(Trip.user_id == user_id).order_by(Trip.id).all()
    if not trips:
        raise NotFoundError("no trips found for this user.")
    return trips


def list_trips_by_username(username: str, db: Session) -> List[Trip]:
    user = db.query(User).filter(User.username == username).first()
    if not user or user.username != username:
        raise NotFoundError("User not found")
    trips = _trip_query(db).filter(Trip.user_id == user.id).order_by(Trip.id).all()
    if not trips:
        raise NotFoundError("No trips found for this user")
    return trips


def _photo_refs(deleted_photos: Optional[Iterable[Any]]) -> set:
    """Accept public ids, photo ids, or objects carrying either."""
    if deleted_photos is None:
        return set()
    if isinstance(deleted_photos, (str, int, dict)):
        deleted_photos = [deleted_photos]
    refs = set()
    for ref in deleted_photos:
        if isinstance(ref, dict):
            for key in ("public_id", "publicId", "id"):
                if ref.get(key) is not None:
                    refs.add(str(ref[key]))
        elif ref is not None:
            refs.add(str(ref))
    return refs


async def update_trip(
    trip_id: Any,
    user_id: int,
    payload: TripPayload,
    new_photo_files: Sequence[MediaFile],
    deleted_photos: Optional[Iterable[Any]],
    db: Session,
    storage: MediaStorage
) -> Trip:
    """
    Full update plus photo reconciliation.

    New files are uploaded first, then the referenced photos are destroyed and
    dropped; the merged trip is written once. If a destroy fails, the photos
    already destroyed are removed from the trip before the error is raised so
    no row keeps pointing at a deleted asset.
    """
    trip = get_trip(trip_id, db)
    check_trip_owner(trip, user_id)
    check_photo_files(new_photo_files)

    refs = _photo_refs(deleted_photos)
    to_remove = [p for p in trip.photos if p.public_id in refs or str(p.id) in refs]

    try:
        stored = await upload_all(storage, new_photo_files)
    except MediaStorageError as e:
        logger.error(f"Photo upload failed while updating trip {trip.id}: {e}")
        raise UploadError("Error updating trip")

    destroyed = []
    for photo in to_remove:
        try:
            await storage.destroy(photo.public_id)
        except MediaStorageError as e:
            logger.error(f"Photo destroy failed while updating trip {trip.id}: {e}")
            await _abandon_update(trip, destroyed, stored, db, storage)
            raise UploadError("Error updating trip")
        destroyed.append(photo)

    _apply_payload(trip, payload)
    for photo in destroyed:
        trip.photos.remove(photo)
    new_photos = [TripPhoto(url=s.url, public_id=s.public_id) for s in stored]
    trip.photos.extend(new_photos)
    _commit_or_report_orphans(db, new_photos)
    logger.info(
        f"User {user_id} updated trip {trip.id}: -{len(destroyed)} +{len(new_photos)} photo(s)"
    )

    return get_trip(trip.id, db)


async def _abandon_update(
    trip: Trip,
    destroyed: List[TripPhoto],
    stored: Sequence[StoredMedia],
    db: Session,
    storage: MediaStorage
) -> None:
    """Drop references to destroyed photos and discard this update's uploads."""
    if stored:
        await destroy_quietly(storage, [s.public_id for s in stored], context=f"trip {trip.id} update")
    if destroyed:
        for photo in destroyed:
            trip.photos.remove(photo)
        db.commit()
        logger.warning(
            f"Trip {trip.id} lost photos {[p.public_id for p in destroyed]} in a failed update"
        )


async def destroy_trip_photos(trip: Trip, storage: MediaStorage) -> None:
    """Best effort; a flaky media backend must not block deleting the record."""
    public_ids = [p.public_id for p in trip.photos]
    if public_ids:
        await destroy_quietly(storage, public_ids, context=f"trip {trip.id}")


async def delete_trip(trip_id: Any, user_id: int, db: Session, storage: MediaStorage) -> TripResponse:
    """Delete a trip and its photos; returns a snapshot of the deleted trip."""
    trip = get_trip(trip_id, db)
    check_trip_owner(trip, user_id)
    snapshot = TripResponse.model_validate(trip)

    await destroy_trip_photos(trip, storage)
    db.delete(trip)
    db.commit()
    logger.info(f"User {user_id} deleted trip {snapshot.id}")

    return snapshot
