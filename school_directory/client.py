"""Async HTTP client for the school directory API.

Read requests are memoized for a freshness window so repeated identical
queries within it are served locally; creating a school invalidates the
cached school queries. Connectivity failures are retried a fixed number of
times, everything else is terminal for the call.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Callable, Optional, Sequence

import httpx

from school_directory.config.settings import UploadConfig
from school_directory.services.school_repository import StoredImage
from school_directory.services.uploads import UploadedImage, validate_uploads
from school_directory.views import SchoolCreateRequest, SchoolResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 30.0
DEFAULT_STALE_AFTER = 5 * 60.0
QUERY_RETRIES = 2
MUTATION_RETRIES = 1

_FILENAME_PATTERN = re.compile(r'filename="([^"]*)"')


class ApiError(Exception):
    """The server answered with an error envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiConnectionError(ApiError):
    """No response was received from the server."""


class SchoolDirectoryClient:
    """Typed wrapper around the five school directory endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        stale_after: float = DEFAULT_STALE_AFTER,
        query_retries: int = QUERY_RETRIES,
        mutation_retries: int = MUTATION_RETRIES,
        retry_delay: float = 0.5,
        upload_limits: Optional[UploadConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.stale_after = stale_after
        self.query_retries = query_retries
        self.mutation_retries = mutation_retries
        self.retry_delay = retry_delay
        self.upload_limits = upload_limits or UploadConfig()
        self._clock = clock
        self._cache: dict[tuple[str, tuple[tuple[str, str], ...]], tuple[float, Any]] = {}
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SchoolDirectoryClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def invalidate(self, prefix: str = "/api/schools") -> None:
        """Drop cached queries whose path starts with ``prefix``."""

        for key in [key for key in self._cache if key[0].startswith(prefix)]:
            del self._cache[key]

    async def _send(
        self,
        method: str,
        path: str,
        retries: int,
        **kwargs: Any,
    ) -> httpx.Response:
        attempt = 0
        while True:
            try:
                logger.debug("API request %s %s", method, path)
                response = await self._http.request(method, path, **kwargs)
                break
            except httpx.TransportError as exc:
                if attempt >= retries:
                    logger.error("API request %s %s failed: %s", method, path, exc)
                    raise ApiConnectionError(
                        "Unable to connect to server. Please check your connection."
                    ) from exc
                attempt += 1
                logger.warning(
                    "Retrying %s %s after %s (attempt %d/%d)",
                    method,
                    path,
                    type(exc).__name__,
                    attempt,
                    retries,
                )
                if self.retry_delay:
                    await asyncio.sleep(self.retry_delay * attempt)

        if response.is_error:
            raise ApiError(self._error_message(response), response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return "Server error occurred"
        if isinstance(body, dict):
            return str(body.get("error") or body.get("message") or "Server error occurred")
        return "Server error occurred"

    @staticmethod
    def _unwrap(response: httpx.Response, failure: str) -> Any:
        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError(failure, response.status_code) from exc
        if not isinstance(body, dict) or not body.get("success") or body.get("data") is None:
            error = body.get("error") if isinstance(body, dict) else None
            raise ApiError(error or failure, response.status_code)
        return body["data"]

    async def _query(
        self,
        path: str,
        failure: str,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        now = self._clock()
        expired = [
            key
            for key, (fetched_at, _) in self._cache.items()
            if now - fetched_at >= self.stale_after
        ]
        for key in expired:
            del self._cache[key]

        key = (path, tuple(sorted((params or {}).items())))
        cached = self._cache.get(key)
        if cached is not None:
            return cached[1]

        response = await self._send("GET", path, self.query_retries, params=params)
        data = self._unwrap(response, failure)
        self._cache[key] = (self._clock(), data)
        return data

    async def create_school(
        self,
        school: SchoolCreateRequest,
        images: Sequence[UploadedImage],
    ) -> SchoolResponse:
        """Validate locally, then POST the school as multipart form data."""

        validate_uploads(images, self.upload_limits)

        form = school.model_dump(mode="json")
        files = [
            ("images", (image.filename, image.data, image.content_type))
            for image in images
        ]
        response = await self._send(
            "POST",
            "/api/schools",
            self.mutation_retries,
            data=form,
            files=files,
        )
        created = SchoolResponse.model_validate(
            self._unwrap(response, "Failed to create school")
        )
        self.invalidate()
        return created

    async def list_schools(self) -> list[SchoolResponse]:
        data = await self._query("/api/schools", "Failed to fetch schools")
        return [SchoolResponse.model_validate(item) for item in data]

    async def search_schools(self, query: str) -> list[SchoolResponse]:
        term = query.strip()
        if not term:
            return await self.list_schools()

        data = await self._query(
            "/api/schools/search",
            "Failed to search schools",
            params={"q": term},
        )
        return [SchoolResponse.model_validate(item) for item in data]

    async def get_school(self, school_id: int) -> SchoolResponse:
        data = await self._query(f"/api/schools/{school_id}", "Failed to fetch school")
        return SchoolResponse.model_validate(data)

    async def get_image(self, image_id: int | str) -> StoredImage:
        response = await self._send("GET", f"/api/images/{image_id}", self.query_retries)
        disposition = response.headers.get("content-disposition", "")
        match = _FILENAME_PATTERN.search(disposition)
        return StoredImage(
            data=response.content,
            mime_type=response.headers.get("content-type", "application/octet-stream"),
            filename=match.group(1) if match else str(image_id),
        )

    def image_url(self, image_id: int | str) -> str:
        return f"{self.base_url}/api/images/{image_id}"

    async def health_check(self) -> dict[str, Any]:
        response = await self._send("GET", "/health", self.query_retries)
        return response.json()


__all__ = [
    "ApiConnectionError",
    "ApiError",
    "SchoolDirectoryClient",
]
