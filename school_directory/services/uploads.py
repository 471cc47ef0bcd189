"""Validation of multipart photo uploads before anything is persisted."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from fastapi import UploadFile

from school_directory.config.settings import UploadConfig
from school_directory.errors import (
    FileTooLargeError,
    TooManyFilesError,
    UnsupportedTypeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(slots=True)
class UploadedImage:
    """An uploaded file fully read into memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def _megabytes(size: int) -> str:
    value = size / (1024 * 1024)
    return f"{value:g}MB"


def resolve_content_type(raw: str | None) -> str:
    """Return the lower-cased MIME type without parameters."""

    if not raw:
        return DEFAULT_CONTENT_TYPE
    return raw.split(";", 1)[0].strip().lower() or DEFAULT_CONTENT_TYPE


def check_file_count(count: int, limits: UploadConfig) -> None:
    if count > limits.max_files:
        raise TooManyFilesError(
            f"Too many files. Maximum allowed is {limits.max_files} files"
        )
    if count < limits.min_files:
        raise ValidationError("At least one image is required")


def validate_uploads(files: Sequence[UploadedImage], limits: UploadConfig) -> None:
    """Reject the batch if any count, size or type limit is violated."""

    check_file_count(len(files), limits)

    allowed = {mime.lower() for mime in limits.allowed_mime_types}
    for upload in files:
        if upload.size > limits.max_file_size:
            raise FileTooLargeError(
                "File too large. Maximum size allowed is "
                f"{_megabytes(limits.max_file_size)}"
            )
        if resolve_content_type(upload.content_type) not in allowed:
            raise UnsupportedTypeError(
                "Invalid file type. Allowed types: "
                + ", ".join(limits.allowed_mime_types)
            )


async def read_uploads(
    uploads: Iterable[UploadFile],
    limits: UploadConfig,
) -> list[UploadedImage]:
    """Read ``UploadFile`` objects into memory and validate the batch.

    Each file is read up to one byte past the size limit, which is enough to
    detect an oversize file without buffering arbitrarily large bodies.
    """

    upload_list = [upload for upload in uploads if upload.filename]
    check_file_count(len(upload_list), limits)

    images: list[UploadedImage] = []
    for upload in upload_list:
        data = await upload.read(limits.max_file_size + 1)
        images.append(
            UploadedImage(
                filename=upload.filename or "upload",
                content_type=resolve_content_type(upload.content_type),
                data=data,
            )
        )

    validate_uploads(images, limits)
    logger.debug("Accepted %d uploaded image(s)", len(images))
    return images


__all__ = [
    "UploadedImage",
    "check_file_count",
    "read_uploads",
    "resolve_content_type",
    "validate_uploads",
]
