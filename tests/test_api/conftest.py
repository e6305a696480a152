from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from docshare.api.dependencies import get_attachment_service, get_entity_store
from docshare.main import app
from docshare.services.provider import SessionProvider
from docshare.storage import LocalAttachmentService
from docshare.store import SQLAlchemyEntityStore


# Fixture for the FastAPI app with the store and object storage pointed at
# the per-test database and directory
@pytest.fixture(scope="function")
async def test_app(
    store: SQLAlchemyEntityStore, attachments: LocalAttachmentService
) -> AsyncGenerator[FastAPI, None]:
    app.dependency_overrides[get_entity_store] = lambda: store
    app.dependency_overrides[get_attachment_service] = lambda: attachments

    yield app

    app.dependency_overrides.clear()
    # Sessions hold subscriptions on this test's store; close them with it
    await SessionProvider.close_all()
    SessionProvider.clear()


@pytest.fixture(scope="function")
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app), base_url="http://test"
    ) as client:
        yield client
