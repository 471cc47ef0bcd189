"""School controller: create, list, search and fetch schools."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from school_directory.controllers.dependencies import (
    RepositoryDep,
    SettingsDep,
    parse_identifier,
)
from school_directory.errors import ValidationError
from school_directory.services import read_uploads
from school_directory.telemetry import record_images_uploaded
from school_directory.views import (
    Envelope,
    SchoolCreateRequest,
    SchoolResponse,
    build_school_request,
)

router = APIRouter(prefix="/api/schools", tags=["schools"])

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "address", "city", "state", "contact", "email_id")

_IMAGES_UPLOAD = File(None)


def _build_payload(fields: dict[str, Optional[str]]) -> SchoolCreateRequest:
    if any(not (value or "").strip() for value in fields.values()):
        raise ValidationError(
            "All fields are required: " + ", ".join(REQUIRED_FIELDS)
        )
    return build_school_request(**fields)


@router.post(
    "",
    response_model=Envelope[SchoolResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_school(
    repository: RepositoryDep,
    app_settings: SettingsDep,
    name: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    contact: Optional[str] = Form(None),
    email_id: Optional[str] = Form(None),
    images: Optional[list[UploadFile]] = _IMAGES_UPLOAD,
) -> Envelope[SchoolResponse]:
    """Create a school from multipart form fields and 1-10 photos."""

    uploads = await read_uploads(images or [], app_settings.uploads)
    payload = _build_payload(
        {
            "name": name,
            "address": address,
            "city": city,
            "state": state,
            "contact": contact,
            "email_id": email_id,
        }
    )

    school = await repository.create_school(payload, uploads)
    record_images_uploaded(len(uploads))
    return Envelope(data=school, message="School created successfully")


@router.get(
    "",
    response_model=Envelope[list[SchoolResponse]],
    response_model_exclude_none=True,
)
async def list_schools(repository: RepositoryDep) -> Envelope[list[SchoolResponse]]:
    schools = await repository.list_schools()
    return Envelope(data=schools)


@router.get(
    "/search",
    response_model=Envelope[list[SchoolResponse]],
    response_model_exclude_none=True,
)
async def search_schools(
    repository: RepositoryDep,
    q: Optional[str] = Query(None, max_length=255),
) -> Envelope[list[SchoolResponse]]:
    """Match ``q`` against name, city or state; blank ``q`` lists everything."""

    schools = await repository.search_schools(q)
    term = (q or "").strip()
    logger.debug("Search %r matched %d school(s)", term, len(schools))
    return Envelope(
        data=schools,
        message=f'Found {len(schools)} schools matching "{term}"',
    )


@router.get(
    "/{school_id}",
    response_model=Envelope[SchoolResponse],
    response_model_exclude_none=True,
)
async def get_school(
    school_id: str,
    repository: RepositoryDep,
) -> Envelope[SchoolResponse]:
    school = await repository.get_school(parse_identifier(school_id, "school"))
    return Envelope(data=school)
