"""Query layer for schools and their stored photos.

Listing, searching and fetching run a single ``schools LEFT OUTER JOIN
school_images`` statement and fold the rows into per-school image-id lists,
so the number of queries never grows with the number of schools.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from sqlalchemy import Select, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.errors import NotFoundError, PersistenceError
from school_directory.models import School, SchoolImage
from school_directory.services.phone import normalize_phone
from school_directory.services.uploads import UploadedImage
from school_directory.views import SchoolCreateRequest, SchoolResponse

logger = logging.getLogger(__name__)

_LIKE_ESCAPE = "\\"
# Integer primary keys are int4 on PostgreSQL.
MAX_IDENTIFIER = 2**31 - 1


@dataclass(frozen=True, slots=True)
class StoredImage:
    """Raw image content as persisted in the record store."""

    data: bytes
    mime_type: str
    filename: str


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; values are always written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _serialize(school: School, image_ids: Iterable[Any]) -> SchoolResponse:
    return SchoolResponse(
        id=school.id,
        name=school.name,
        address=school.address,
        city=school.city,
        state=school.state,
        contact=school.contact,
        email_id=school.email_id,
        images=[str(image_id) for image_id in image_ids],
        created_at=_as_utc(school.created_at),
    )


def _escape_like(term: str) -> str:
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )


def _schools_with_image_ids() -> Select:
    return (
        select(School, SchoolImage.id)
        .outerjoin(SchoolImage, SchoolImage.school_id == School.id)
        .order_by(School.created_at.desc(), School.id.desc(), SchoolImage.id.asc())
    )


def _fold_rows(rows: Iterable[Any]) -> list[SchoolResponse]:
    """Group joined ``(School, image_id)`` rows, keeping row order."""

    grouped: dict[int, tuple[School, list[int]]] = {}
    for school, image_id in rows:
        _, image_ids = grouped.setdefault(school.id, (school, []))
        if image_id is not None:
            image_ids.append(image_id)
    return [_serialize(school, image_ids) for school, image_ids in grouped.values()]


class SchoolRepository:
    """CRUD-style access to schools bound to a single session."""

    def __init__(self, session: AsyncSession, *, country_code: str = "91") -> None:
        self.session = session
        self.country_code = country_code

    async def _fetch(self, statement: Select) -> list[SchoolResponse]:
        try:
            result = await self.session.execute(statement)
            rows = result.all()
        except SQLAlchemyError as exc:
            logger.exception("School query failed")
            raise PersistenceError(
                "Failed to fetch schools. Please try again."
            ) from exc
        return _fold_rows(rows)

    async def create_school(
        self,
        payload: SchoolCreateRequest,
        files: Sequence[UploadedImage],
    ) -> SchoolResponse:
        """Insert a school and its images in one transaction."""

        contact = normalize_phone(payload.contact, self.country_code)

        school = School(
            name=payload.name,
            address=payload.address,
            city=payload.city,
            state=payload.state,
            contact=contact,
            email_id=str(payload.email_id),
            images=[
                SchoolImage(
                    image_name=upload.filename,
                    image_data=upload.data,
                    mime_type=upload.content_type,
                )
                for upload in files
            ],
        )
        self.session.add(school)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Failed to create school %r", payload.name)
            raise PersistenceError(
                "Failed to create school. Please try again."
            ) from exc

        image_ids = [image.id for image in school.images]
        logger.info(
            "Created school id=%s with %d image(s)", school.id, len(image_ids)
        )
        return _serialize(school, image_ids)

    async def list_schools(self) -> list[SchoolResponse]:
        """Return every school, newest first."""

        return await self._fetch(_schools_with_image_ids())

    async def search_schools(self, query: str | None) -> list[SchoolResponse]:
        """Case-insensitive substring match on name, city or state."""

        term = (query or "").strip()
        if not term:
            return await self.list_schools()

        # ILIKE on PostgreSQL; SQLite's lower() folds ASCII letters only.
        pattern = f"%{_escape_like(term)}%"
        statement = _schools_with_image_ids().where(
            or_(
                School.name.ilike(pattern, escape=_LIKE_ESCAPE),
                School.city.ilike(pattern, escape=_LIKE_ESCAPE),
                School.state.ilike(pattern, escape=_LIKE_ESCAPE),
            )
        )
        return await self._fetch(statement)

    async def get_school(self, school_id: int) -> SchoolResponse:
        if not 1 <= school_id <= MAX_IDENTIFIER:
            raise NotFoundError("School not found")
        schools = await self._fetch(
            _schools_with_image_ids().where(School.id == school_id)
        )
        if not schools:
            raise NotFoundError("School not found")
        return schools[0]

    async def get_image(self, image_id: int) -> StoredImage:
        if not 1 <= image_id <= MAX_IDENTIFIER:
            raise NotFoundError("Image not found")
        try:
            result = await self.session.execute(
                select(
                    SchoolImage.image_data,
                    SchoolImage.mime_type,
                    SchoolImage.image_name,
                ).where(SchoolImage.id == image_id)
            )
            row = result.one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Image query failed for id=%s", image_id)
            raise PersistenceError(
                "Failed to fetch image. Please try again."
            ) from exc

        if row is None:
            raise NotFoundError("Image not found")

        return StoredImage(
            data=row.image_data,
            mime_type=row.mime_type,
            filename=row.image_name,
        )


__all__ = ["SchoolRepository", "StoredImage"]
