"""Service layer: phone normalization, upload validation and queries."""

from .phone import normalize_phone
from .school_repository import SchoolRepository, StoredImage
from .uploads import UploadedImage, read_uploads, validate_uploads

__all__ = [
    "SchoolRepository",
    "StoredImage",
    "UploadedImage",
    "normalize_phone",
    "read_uploads",
    "validate_uploads",
]
