"""Query layer behaviour against a real (SQLite) record store."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from conftest import JPEG_BYTES, PNG_BYTES, png_upload, school_request
from school_directory.errors import NotFoundError, PersistenceError, ValidationError
from school_directory.models import School, SchoolImage
from school_directory.services import SchoolRepository, UploadedImage


async def _count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def test_create_school_returns_images_and_normalized_contact(repository):
    jpeg = UploadedImage(filename="gate.jpg", content_type="image/jpeg", data=JPEG_BYTES)

    school = await repository.create_school(
        school_request(contact="+91 98765 43210"),
        [png_upload(), jpeg],
    )

    assert school.id > 0
    assert school.contact == "+919876543210"
    assert len(school.images) == 2
    assert all(isinstance(image_id, str) for image_id in school.images)
    assert school.created_at.tzinfo is not None


async def test_list_includes_created_school_with_resolvable_images(repository):
    created = await repository.create_school(
        school_request(),
        [png_upload("front.png"), png_upload("back.png", data=PNG_BYTES[::-1])],
    )

    schools = await repository.list_schools()

    assert [school.id for school in schools] == [created.id]
    listed = schools[0]
    assert listed.images == created.images
    for image_id, expected in zip(listed.images, (PNG_BYTES, PNG_BYTES[::-1])):
        image = await repository.get_image(int(image_id))
        assert image.data == expected
        assert image.mime_type == "image/png"


async def test_list_orders_newest_first_and_keeps_schools_without_images(repository):
    first = await repository.create_school(school_request(name="First School"), [])
    second = await repository.create_school(
        school_request(name="Second School"), [png_upload()]
    )

    schools = await repository.list_schools()

    assert [school.id for school in schools] == [second.id, first.id]
    assert schools[1].images == []


async def test_search_matches_name_city_or_state_case_insensitively(repository):
    mumbai = await repository.create_school(
        school_request(name="Greenwood High", city="Mumbai", state="Maharashtra"),
        [png_upload()],
    )
    delhi = await repository.create_school(
        school_request(name="Modern Public School", city="Delhi", state="Delhi"),
        [png_upload()],
    )

    assert [s.id for s in await repository.search_schools("mumb")] == [mumbai.id]
    assert [s.id for s in await repository.search_schools("DELHI")] == [delhi.id]
    assert [s.id for s in await repository.search_schools("maha")] == [mumbai.id]
    assert [s.id for s in await repository.search_schools("public")] == [delhi.id]
    assert await repository.search_schools("Chennai") == []


async def test_blank_search_equals_listing(repository):
    await repository.create_school(school_request(name="Alpha Academy"), [png_upload()])
    await repository.create_school(school_request(name="Beta Academy"), [png_upload()])

    listing = await repository.list_schools()

    assert await repository.search_schools("") == listing
    assert await repository.search_schools("   ") == listing
    assert await repository.search_schools(None) == listing


async def test_search_treats_like_wildcards_literally(repository):
    await repository.create_school(school_request(name="Plain School"), [png_upload()])
    percent = await repository.create_school(
        school_request(name="100% Learning"), [png_upload()]
    )

    assert [s.id for s in await repository.search_schools("%")] == [percent.id]
    assert await repository.search_schools("_") == []


async def test_search_matches_non_ascii_names(repository):
    ecole = await repository.create_school(
        school_request(name="\u00c9cole Internationale", city="Pondicherry"),
        [png_upload()],
    )

    assert [s.id for s in await repository.search_schools("\u00c9cole")] == [ecole.id]
    assert [s.id for s in await repository.search_schools("INTERNATIONALE")] == [ecole.id]


async def test_get_school_returns_aggregated_images(repository):
    created = await repository.create_school(
        school_request(), [png_upload("a.png"), png_upload("b.png")]
    )

    fetched = await repository.get_school(created.id)

    assert fetched == created.model_copy(update={"created_at": fetched.created_at})
    assert fetched.images == created.images


async def test_get_school_unknown_id_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        await repository.get_school(9999)


async def test_get_image_unknown_id_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        await repository.get_image(9999)


async def test_ids_beyond_integer_key_range_raise_not_found(repository):
    with pytest.raises(NotFoundError, match="School not found"):
        await repository.get_school(2**63)
    with pytest.raises(NotFoundError, match="Image not found"):
        await repository.get_image(2**31)


async def test_invalid_contact_is_rejected_before_any_write(repository, session):
    with pytest.raises(ValidationError):
        await repository.create_school(school_request(contact="12345"), [png_upload()])

    assert await _count(session, School) == 0
    assert await _count(session, SchoolImage) == 0


async def test_failed_image_insert_leaves_no_orphaned_school(repository, session):
    broken = UploadedImage(filename="broken.png", content_type=None, data=PNG_BYTES)

    with pytest.raises(PersistenceError):
        await repository.create_school(school_request(), [png_upload(), broken])

    assert await _count(session, School) == 0
    assert await _count(session, SchoolImage) == 0
    assert await repository.list_schools() == []


async def test_deleting_school_cascades_to_images(database):
    async with database.session_scope() as session:
        created = await SchoolRepository(session).create_school(
            school_request(), [png_upload()]
        )

    async with database.session_scope() as session:
        school = await session.get(School, created.id)
        await session.delete(school)
        await session.commit()

    async with database.session_scope() as session:
        assert await _count(session, SchoolImage) == 0
        with pytest.raises(NotFoundError):
            await SchoolRepository(session).get_image(int(created.images[0]))
