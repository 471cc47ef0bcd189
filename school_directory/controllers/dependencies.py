"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.config.settings import Settings
from school_directory.database import get_session
from school_directory.errors import ValidationError
from school_directory.services import SchoolRepository

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_settings(request: Request) -> Settings:
    """Return the settings the running application was created with."""

    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_repository(session: SessionDep, app_settings: SettingsDep) -> SchoolRepository:
    return SchoolRepository(session, country_code=app_settings.phone_country_code)


RepositoryDep = Annotated[SchoolRepository, Depends(get_repository)]


def parse_identifier(raw: str, label: str) -> int:
    """Parse a positive integer path parameter or raise ``ValidationError``."""

    value = raw.strip()
    if not (value.isascii() and value.isdigit()) or int(value) < 1:
        raise ValidationError(f"Valid {label} ID is required")
    return int(value)


__all__ = [
    "SessionDep",
    "SettingsDep",
    "RepositoryDep",
    "get_repository",
    "get_settings",
    "parse_identifier",
]
