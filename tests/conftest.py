"""Shared fixtures: a throwaway SQLite record store and app instances."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from school_directory.config.settings import DatabaseConfig, Settings  # noqa: E402
from school_directory.database import Database  # noqa: E402
from school_directory.main import create_app  # noqa: E402
from school_directory.services import SchoolRepository, UploadedImage  # noqa: E402
from school_directory.views import SchoolCreateRequest  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(64))
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"JFIF" + bytes(range(64, 128))


def school_fields(**overrides: str) -> dict[str, str]:
    fields = {
        "name": "Greenwood High",
        "address": "12 MG Road, Andheri West",
        "city": "Mumbai",
        "state": "Maharashtra",
        "contact": "9876543210",
        "email_id": "office@greenwood.edu.in",
    }
    fields.update(overrides)
    return fields


def school_request(**overrides: str) -> SchoolCreateRequest:
    return SchoolCreateRequest(**school_fields(**overrides))


def png_upload(filename: str = "front.png", data: bytes = PNG_BYTES) -> UploadedImage:
    return UploadedImage(filename=filename, content_type="image/png", data=data)


@pytest.fixture
def app_settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="test",
        log_file=str(tmp_path / "logs" / "app.log"),
        database=DatabaseConfig(
            override_url=f"sqlite+aiosqlite:///{tmp_path / 'schools.db'}"
        ),
    )


@pytest.fixture
def client(app_settings: Settings):
    app = create_app(app_settings, configure_logging=False)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def database(app_settings: Settings):
    store = Database(app_settings.database)
    await store.init_models()
    yield store
    await store.dispose()


@pytest.fixture
async def session(database: Database):
    async with database.session_scope() as db_session:
        yield db_session


@pytest.fixture
def repository(session) -> SchoolRepository:
    return SchoolRepository(session)
