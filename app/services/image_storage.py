"""
Image storage - complaint and proof photos.

The core only handles opaque references; bytes are never inspected.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Dict, Optional, Tuple
import logging
import threading
import uuid

from app.core.exceptions import NotFound
from app.core.settings import settings
from app.utils.firestore_helpers import firestore_errors

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def new_reference(folder: str, content_type: Optional[str]) -> str:
    return f"{folder}/{uuid.uuid4().hex}{EXTENSIONS.get(content_type or '', '')}"


class ImageStorage(ABC):

    @abstractmethod
    def upload_image(self, data: bytes, content_type: Optional[str] = None, folder: str = "complaints") -> str:
        """Store the bytes and return an opaque reference."""
        raise NotImplementedError

    @abstractmethod
    def image_url(self, reference: str) -> str:
        """Dereferenceable URL for a stored image."""
        raise NotImplementedError


class InMemoryImageStorage(ImageStorage):

    def __init__(self, base_url: str = "memory://images"):
        self.base_url = base_url.rstrip("/")
        self._lock = threading.Lock()
        self._blobs: Dict[str, Tuple[bytes, Optional[str]]] = {}

    def upload_image(self, data: bytes, content_type: Optional[str] = None, folder: str = "complaints") -> str:
        reference = new_reference(folder, content_type)
        with self._lock:
            self._blobs[reference] = (bytes(data), content_type)
        return reference

    def image_url(self, reference: str) -> str:
        with self._lock:
            if reference not in self._blobs:
                raise NotFound(f"Image {reference} not found")
        return f"{self.base_url}/{reference}"

    def get_image(self, reference: str) -> Tuple[bytes, Optional[str]]:
        with self._lock:
            if reference not in self._blobs:
                raise NotFound(f"Image {reference} not found")
            return self._blobs[reference]


class FirebaseImageStorage(ImageStorage):
    """Firebase Storage bucket; URLs are V4 signed URLs."""

    def __init__(self, bucket=None):
        if bucket is None:
            from app.config.firebase import get_bucket
            bucket = get_bucket()
        self.bucket = bucket

    def upload_image(self, data: bytes, content_type: Optional[str] = None, folder: str = "complaints") -> str:
        reference = new_reference(folder, content_type)
        blob = self.bucket.blob(reference)
        with firestore_errors("upload_image", reference):
            blob.upload_from_string(data, content_type=content_type or "application/octet-stream")
        logger.info(f"Uploaded image {reference} ({len(data)} bytes)")
        return reference

    def image_url(self, reference: str) -> str:
        blob = self.bucket.blob(reference)
        with firestore_errors("image_url", reference):
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(minutes=settings.IMAGE_URL_EXPIRY_MINUTES),
                method="GET",
            )


_storage: Optional[ImageStorage] = None


def get_image_storage() -> ImageStorage:
    """Get or create the configured ImageStorage singleton."""
    global _storage
    if _storage is None:
        _storage = InMemoryImageStorage() if settings.USE_MOCK_DB else FirebaseImageStorage()
    return _storage
