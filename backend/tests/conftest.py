"""
Storefront Backend — Test Configuration (conftest.py)
=======================================================

Shared pytest fixtures for the whole suite.

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session:   AsyncSession stand-in; add() records objects and
    │                      flush() assigns integer ids like the database would
    ├── auth_config:       AuthConfig with a test secret and cheap bcrypt cost
    ├── fake_uploader:     in-memory ImageUploader that records every call
    ├── sample_image:      small JPEG wrapped in UploadedImage
    ├── prepared_db:       real SQLite schema (aiosqlite) with shops 1 and 2
    └── test_client:       httpx AsyncClient on the app, uploads faked
"""

import os
import tempfile

# Settings are read at import time, so the environment must be in place
# before anything under `app` is imported
_test_dir = tempfile.mkdtemp(prefix="storefront_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_dir}/test.db"
os.environ["UPLOAD_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = os.path.join(_test_dir, "storage")
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

from itertools import count  # noqa: E402
from typing import List, Tuple  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.security import AuthConfig  # noqa: E402
from app.services.upload_base import ImageUploader, UploadedImage, UploadResult  # noqa: E402

JPEG_BYTES = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)


class FakeUploader(ImageUploader):
    """Records uploads and returns predictable URLs."""

    def __init__(self):
        self.calls: List[Tuple[bytes, str]] = []
        self.fail_with = None

    async def upload(self, file_buffer: bytes, file_name: str) -> UploadResult:
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append((file_buffer, file_name))
        n = len(self.calls)
        return UploadResult(url=f"https://cdn.test/{n}/{file_name}", file_id=str(n), name=file_name)

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def mock_db_session():
    """
    AsyncSession mock.

    Usage:
        result = MagicMock()
        result.scalar_one_or_none.return_value = product
        mock_db_session.execute.return_value = result

    Objects passed to add() are kept in `session.added`; flush() gives any
    of them without an id the next integer id.
    """
    session = AsyncMock()
    session.added = []
    ids = count(1)

    def _add(obj):
        session.added.append(obj)

    async def _flush():
        for obj in session.added:
            if getattr(obj, "id", None) is None:
                obj.id = next(ids)

    session.add = MagicMock(side_effect=_add)
    session.flush = AsyncMock(side_effect=_flush)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def auth_config():
    return AuthConfig(
        jwt_secret="unit-test-secret",
        jwt_algorithm="HS256",
        token_expires_minutes=30,
        bcrypt_rounds=4,
        default_shop_id=1,
    )


@pytest.fixture
def fake_uploader():
    return FakeUploader()


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG: SOI + JFIF header + EOI. Enough for validation, not a real photo."""
    return JPEG_BYTES


@pytest.fixture
def sample_image():
    return UploadedImage(filename="photo.jpg", content=JPEG_BYTES, content_type="image/jpeg")


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest_asyncio.fixture
async def prepared_db():
    """
    Fresh schema in the SQLite test database.

    ASGITransport does not run the app lifespan, and tests never run
    Alembic, so tables are created straight from the model metadata.
    """
    from app.database import Base, async_session_factory, engine
    from app.models import Shop

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        session.add_all([Shop(id=1, name="Default Shop"), Shop(id=2, name="Second Shop")])
        await session.commit()

    yield async_session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(prepared_db, fake_uploader, monkeypatch):
    """
    HTTPX AsyncClient wired to the FastAPI app.

    Product and dashboard uploads go to `fake_uploader`, so tests can
    assert on the calls without touching disk or the network.
    """
    from app.main import app
    from app.services.admin_service import admin_service
    from app.services.product_service import product_service

    monkeypatch.setattr(product_service, "uploader", fake_uploader)
    monkeypatch.setattr(admin_service, "uploader", fake_uploader)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
