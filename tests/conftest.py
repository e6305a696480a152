import os
import tempfile
from typing import AsyncGenerator

# Settings are read at import time; point them somewhere harmless first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="docshare-storage-"))
os.environ.setdefault("SEARCH_DEBOUNCE_SECONDS", "0")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from docshare.models import metadata
from docshare.storage import LocalAttachmentService
from docshare.store import SQLAlchemyEntityStore


# Each test gets its own file-backed SQLite database so concurrent sessions
# (listener tasks, reloads) use real separate connections.
@pytest.fixture(scope="function")
async def db_test_session_manager(
    tmp_path,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture(scope="function")
def store(db_test_session_manager) -> SQLAlchemyEntityStore:
    return SQLAlchemyEntityStore(db_test_session_manager)


@pytest.fixture(scope="function")
def attachments(tmp_path) -> LocalAttachmentService:
    return LocalAttachmentService(
        root=tmp_path / "objects", public_base_url="http://test/storage"
    )
