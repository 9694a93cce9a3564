"""
Trip management routes.
"""
from typing import Any, Dict, List, Tuple
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile
from triplog.api.dependencies import get_current_user_id
from triplog.db.session import get_db
from triplog.schemas.trip import TripMessageResponse, TripResponse
from triplog.services import trip_service
from triplog.services.media_service import MediaFile, MediaStorage, get_media_storage
from triplog.validators.trip_validator import decode_form_fields, validate_trip_payload

router = APIRouter(prefix="/tripDetail", tags=["trips"])

FORM_FIELDS = (
    "country",
    "travelPeriod",
    "visitedPlaces",
    "accommodations",
    "transportations",
    "weatherNotes",
    "clothingTips",
    "budgetItems",
    "deletedPhotos",
)


async def read_media_file(upload: UploadFile) -> MediaFile:
    content = await upload.read()
    return MediaFile(
        filename=upload.filename or "upload",
        content=content,
        content_type=upload.content_type or "application/octet-stream"
    )


async def _read_trip_form(request: Request) -> Tuple[Dict[str, Any], List[MediaFile]]:
    """Decode the multipart trip form into a payload dict and photo files."""
    form = await request.form()
    payload = decode_form_fields({
        key: form.get(key) for key in FORM_FIELDS if isinstance(form.get(key), str)
    })
    photos = [
        await read_media_file(f)
        for f in form.getlist("photos")
        if isinstance(f, UploadFile)
    ]
    return payload, photos


@router.post("", response_model=TripMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
):
    """Create a new trip with its photos (multipart form)."""
    payload, photos = await _read_trip_form(request)
    trip_data = validate_trip_payload(payload)
    trip = await trip_service.create_trip(user_id, trip_data, photos, db, storage)
    return {"message": "Trip created successfully", "trip": trip}


@router.get("/random", response_model=List[TripResponse])
async def random_trips(db: Session = Depends(get_db)):
    """A small random sample of trips for the landing page."""
    return trip_service.list_random_trips(db)


@router.get("/all", response_model=List[TripResponse])
async def all_trips(db: Session = Depends(get_db)):
    return trip_service.list_all_trips(db)


@router.get("/user/trips", response_model=List[TripResponse])
async def my_trips(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List all trips for current user."""
    return trip_service.list_trips_for_user(user_id, db)


@router.get("/user/{username}", response_model=List[TripResponse])
async def trips_by_username(username: str, db: Session = Depends(get_db)):
    return trip_service.list_trips_by_username(username, db)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(trip_id: str, db: Session = Depends(get_db)):
    """Get trip details."""
    return trip_service.get_trip(trip_id, db)


@router.put("/{trip_id}", response_model=TripMessageResponse)
async def update_trip(
    trip_id: str,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
):
    """Replace trip fields, delete the listed photos and append new ones."""
    trip_service.parse_trip_id(trip_id)
    payload, photos = await _read_trip_form(request)
    trip_data = validate_trip_payload(payload)
    trip = await trip_service.update_trip(
        trip_id, user_id, trip_data, photos, payload.get("deletedPhotos"), db, storage
    )
    return {"message": "Trip updated successfully", "trip": trip}


@router.delete("/{trip_id}", response_model=TripMessageResponse)
async def delete_trip(
    trip_id: str,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
):
    trip = await trip_service.delete_trip(trip_id, user_id, db, storage)
    return {"message": "Trip deleted successfully", "trip": trip}
