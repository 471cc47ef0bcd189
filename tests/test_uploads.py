"""Upload batch validation."""

from __future__ import annotations

import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from conftest import PNG_BYTES, png_upload
from school_directory.config.settings import UploadConfig
from school_directory.errors import (
    FileTooLargeError,
    TooManyFilesError,
    UnsupportedTypeError,
    ValidationError,
)
from school_directory.services.uploads import (
    UploadedImage,
    read_uploads,
    resolve_content_type,
    validate_uploads,
)

LIMITS = UploadConfig()
SIX_MEGABYTES = 6 * 1024 * 1024


def _upload_file(data: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_accepts_batch_within_limits():
    files = [png_upload(f"photo-{index}.png") for index in range(10)]

    validate_uploads(files, LIMITS)


def test_eleven_files_fail_with_too_many_files():
    files = [png_upload(f"photo-{index}.png") for index in range(11)]

    with pytest.raises(TooManyFilesError):
        validate_uploads(files, LIMITS)


def test_empty_batch_requires_at_least_one_image():
    with pytest.raises(ValidationError) as excinfo:
        validate_uploads([], LIMITS)

    assert not isinstance(excinfo.value, TooManyFilesError)
    assert "At least one image" in excinfo.value.message


def test_six_megabyte_file_fails_with_file_too_large():
    files = [png_upload(data=b"\x00" * SIX_MEGABYTES)]

    with pytest.raises(FileTooLargeError) as excinfo:
        validate_uploads(files, LIMITS)

    assert "5MB" in excinfo.value.message


def test_file_exactly_at_limit_is_accepted():
    validate_uploads([png_upload(data=b"\x00" * LIMITS.max_file_size)], LIMITS)


def test_text_file_with_image_extension_fails_on_declared_type():
    disguised = UploadedImage(
        filename="notes.png",
        content_type="text/plain",
        data=b"just some text",
    )

    with pytest.raises(UnsupportedTypeError):
        validate_uploads([disguised], LIMITS)


def test_declared_type_is_compared_without_parameters_or_case():
    upload = UploadedImage(
        filename="photo.webp",
        content_type="IMAGE/WEBP; charset=binary",
        data=PNG_BYTES,
    )

    validate_uploads([upload], LIMITS)
    assert resolve_content_type("IMAGE/WEBP; charset=binary") == "image/webp"
    assert resolve_content_type(None) == "application/octet-stream"


def test_lower_bound_can_be_disabled():
    validate_uploads([], UploadConfig(min_files=0))


async def test_read_uploads_returns_file_contents():
    uploads = [_upload_file(PNG_BYTES, "front.png", "image/png")]

    images = await read_uploads(uploads, LIMITS)

    assert images == [
        UploadedImage(filename="front.png", content_type="image/png", data=PNG_BYTES)
    ]


async def test_read_uploads_rejects_oversize_file():
    uploads = [_upload_file(b"\x00" * SIX_MEGABYTES, "huge.png", "image/png")]

    with pytest.raises(FileTooLargeError):
        await read_uploads(uploads, LIMITS)


async def test_read_uploads_rejects_count_before_reading():
    class ExplodingFile(io.BytesIO):
        def read(self, *args, **kwargs):  # pragma: no cover - must not run
            raise AssertionError("file should not be read")

    uploads = [
        UploadFile(file=ExplodingFile(), filename=f"p{index}.png")
        for index in range(11)
    ]

    with pytest.raises(TooManyFilesError):
        await read_uploads(uploads, LIMITS)


async def test_read_uploads_skips_empty_file_parts():
    uploads = [
        _upload_file(b"", "", "application/octet-stream"),
        _upload_file(PNG_BYTES, "front.png", "image/png"),
    ]

    images = await read_uploads(uploads, LIMITS)

    assert [image.filename for image in images] == ["front.png"]
