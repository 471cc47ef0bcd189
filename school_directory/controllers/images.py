"""Image controller streaming stored photo blobs."""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Response

from school_directory.controllers.dependencies import RepositoryDep, parse_identifier

router = APIRouter(prefix="/api/images", tags=["images"])


def content_disposition(filename: str) -> str:
    """Build an ``inline`` Content-Disposition header safe for any filename."""

    cleaned = filename.replace('"', "").replace("\r", "").replace("\n", "")
    ascii_name = cleaned.encode("ascii", "ignore").decode("ascii") or "image"
    header = f'inline; filename="{ascii_name}"'
    if ascii_name != cleaned:
        header += f"; filename*=UTF-8''{quote(cleaned)}"
    return header


@router.get("/{image_id}", response_class=Response)
async def get_image(image_id: str, repository: RepositoryDep) -> Response:
    image = await repository.get_image(parse_identifier(image_id, "image"))
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Content-Disposition": content_disposition(image.filename)},
    )
