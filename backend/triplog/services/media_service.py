"""
Media storage for trip photos, avatars and cover images.

Photos live outside the database and are addressed by a public URL plus an
opaque public id used to delete them later.
"""
import asyncio
import hashlib
import logging
import os
import time
import uuid
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import httpx

from triplog.core.config import settings

logger = logging.getLogger(__name__)


class MediaStorageError(Exception):
    """Raised when the storage backend rejects an upload or deletion."""


@dataclass
class StoredMedia:
    url: str
    public_id: str


@dataclass
class MediaFile:
    """An uploaded file already read into memory."""
    filename: str
    content: bytes
    content_type: str


class MediaStorage:
    """Interface for media backends."""

    async def upload(self, filename: str, content: bytes, content_type: str) -> StoredMedia:
        raise NotImplementedError

    async def destroy(self, public_id: str) -> None:
        raise NotImplementedError


class LocalMediaStorage(MediaStorage):
    """Stores files under UPLOAD_DIR, served by the /static mount."""

    def __init__(self, upload_dir: str = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR

    async def upload(self, filename: str, content: bytes, content_type: str) -> StoredMedia:
        os.makedirs(self.upload_dir, exist_ok=True)
        file_ext = os.path.splitext(filename or "")[1]
        unique_filename = f"{uuid.uuid4()}{file_ext}"
        file_path = os.path.join(self.upload_dir, unique_filename)
        try:
            with open(file_path, "wb") as buffer:
                buffer.write(content)
        except OSError as e:
            raise MediaStorageError(f"Failed to store {filename}: {e}") from e
        return StoredMedia(url=f"/static/{unique_filename}", public_id=unique_filename)

    async def destroy(self, public_id: str) -> None:
        file_path = os.path.join(self.upload_dir, os.path.basename(public_id))
        try:
            if os.path.exists(file_path):
                os.remove(file_path)
        except OSError as e:
            raise MediaStorageError(f"Failed to delete {public_id}: {e}") from e


class CloudinaryMediaStorage(MediaStorage):
    """
    Cloudinary image storage through its signed REST API.

    API Documentation: https://cloudinary.com/documentation/image_upload_api_reference
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = ""):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.base_url = f"https://api.cloudinary.com/v1_1/{cloud_name}/image"

    def _sign(self, params: dict) -> str:
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    def _signed(self, params: dict) -> dict:
        params = {k: v for k, v in params.items() if v not in (None, "")}
        params["timestamp"] = str(int(time.time()))
        params["signature"] = self._sign(params)
        params["api_key"] = self.api_key
        return params

    async def upload(self, filename: str, content: bytes, content_type: str) -> StoredMedia:
        data = self._signed({"folder": self.folder})
        files = {"file": (filename, content, content_type)}
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(f"{self.base_url}/upload", data=data, files=files, timeout=30.0)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Cloudinary upload failed for {filename}: {e}")
            raise MediaStorageError(f"Upload failed for {filename}") from e

        return StoredMedia(url=result["secure_url"], public_id=result["public_id"])

    async def destroy(self, public_id: str) -> None:
        data = self._signed({"public_id": public_id})
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(f"{self.base_url}/destroy", data=data, timeout=30.0)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Cloudinary destroy failed for {public_id}: {e}")
            raise MediaStorageError(f"Destroy failed for {public_id}") from e

        if result.get("result") not in ("ok", "not found"):
            raise MediaStorageError(f"Destroy failed for {public_id}: {result}")


async def upload_all(storage: MediaStorage, files: Sequence[MediaFile]) -> List[StoredMedia]:
    """
    Upload every file concurrently.

    Either all uploads succeed or MediaStorageError is raised. Files that did
    upload before the failure are logged as orphans.
    """
    results = await asyncio.gather(
        *(storage.upload(f.filename, f.content, f.content_type) for f in files),
        return_exceptions=True
    )
    stored = [r for r in results if isinstance(r, StoredMedia)]
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        if stored:
            logger.error(
                f"Orphaned uploads after failed batch, manual cleanup needed: "
                f"{[s.public_id for s in stored]}"
            )
        raise MediaStorageError(str(failures[0])) from failures[0]
    return stored


async def destroy_quietly(storage: MediaStorage, public_ids: Sequence[str], context: str = "") -> Tuple[int, int]:
    """
    Destroy assets, logging and swallowing failures.

    Returns (destroyed, failed) counts.
    """
    results = await asyncio.gather(
        *(storage.destroy(public_id) for public_id in public_ids),
        return_exceptions=True
    )
    failed = 0
    for public_id, result in zip(public_ids, results):
        if isinstance(result, Exception):
            failed += 1
            logger.warning(f"Could not destroy media {public_id} ({context}): {result}")
    return len(public_ids) - failed, failed


def get_media_storage() -> MediaStorage:
    """Dependency returning the configured media backend."""
    if settings.MEDIA_BACKEND == "cloudinary":
        return CloudinaryMediaStorage(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.CLOUDINARY_FOLDER
        )
    return LocalMediaStorage()
