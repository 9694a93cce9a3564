"""
Shared fixtures: in-memory database, fake mailer and fake media storage.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["MEDIA_BACKEND"] = "local"

from datetime import date  # noqa: E402
from typing import List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import triplog.models  # noqa: E402,F401
from triplog.core.security import create_user_token, get_password_hash  # noqa: E402
from triplog.db.base import Base  # noqa: E402
from triplog.db.session import get_db  # noqa: E402
from triplog.main import app  # noqa: E402
from triplog.models.trip import (  # noqa: E402
    Accommodation, BudgetItem, Transportation, Trip, TripPhoto, VisitedPlace
)
from triplog.models.user import User  # noqa: E402
from triplog.services.mail_service import Mailer, get_mailer  # noqa: E402
from triplog.services.media_service import (  # noqa: E402
    MediaStorage, MediaStorageError, StoredMedia, get_media_storage
)

PASSWORD = "Test1234!@#$"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeMailer(Mailer):
    def __init__(self):
        self.sent: List[dict] = []

    def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body})


class FakeMediaStorage(MediaStorage):
    """Records calls; can be switched to fail uploads or destroys."""

    def __init__(self):
        self.uploaded: List[StoredMedia] = []
        self.destroyed: List[str] = []
        self.fail_upload = False
        self.fail_destroy = False

    async def upload(self, filename: str, content: bytes, content_type: str) -> StoredMedia:
        if self.fail_upload:
            raise MediaStorageError(f"upload rejected: {filename}")
        n = len(self.uploaded) + 1
        stored = StoredMedia(url=f"https://media.test/image/upload/{filename}", public_id=f"test_{n}")
        self.uploaded.append(stored)
        return stored

    async def destroy(self, public_id: str) -> None:
        self.destroyed.append(public_id)
        if self.fail_destroy:
            raise MediaStorageError(f"destroy rejected: {public_id}")


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def storage():
    return FakeMediaStorage()


@pytest.fixture
def client(db, mailer, storage):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_media_storage] = lambda: storage
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(
    db,
    username: str = "testuser",
    email: str = "test@example.com",
    password: str = PASSWORD,
    verified: bool = True,
    **fields
) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(password),
        verified_email=verified,
        **fields
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def make_trip(db, user: User, country: str = "Japan", photos: Optional[list] = None) -> Trip:
    trip = Trip(
        user_id=user.id,
        country=country,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 10),
        weather_notes="Cold and dry",
        clothing_tips="Bring warm clothes",
        visited_places=[VisitedPlace(name="Tokyo", description="Amazing city", rating=5)],
        accommodations=[Accommodation(name="Hotel Tokyo", type="Hotel", cost=100)],
        transportations=[Transportation(type="Train", cost=50)],
        budget_items=[BudgetItem(category="Food", amount=500)],
        photos=[
            TripPhoto(url=url, public_id=public_id)
            for url, public_id in (photos if photos is not None else [("https://example.com/photo1.jpg", "photo1")])
        ]
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def headers(user):
    return auth_header(user)
