import pytest
from httpx import AsyncClient

from docshare.services.provider import SessionProvider
from docshare.store import Eq, SQLAlchemyEntityStore
from tests.test_helpers import (
    as_user,
    create_test_friendship,
    create_test_group,
    create_test_profile,
    wait_until,
)

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def seeded(store: SQLAlchemyEntityStore):
    for user_id, name in (("u1", "Una"), ("u2", "Ben"), ("u3", "Cat")):
        await create_test_profile(
            store, id=user_id, email=f"{user_id}@example.com", full_name=name
        )
    await create_test_friendship(store, "u1", "u2")
    await create_test_group(store, "Team", ["u1", "u2"], id="g1")


async def test_requests_without_user_header_are_rejected(test_client: AsyncClient):
    response = await test_client.get("/chat/state")
    assert response.status_code == 401


async def test_health(test_client: AsyncClient):
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_refresh_returns_relationships(test_client: AsyncClient, seeded):
    response = await test_client.post("/chat/refresh", headers=as_user("u1"))

    assert response.status_code == 200
    data = response.json()
    assert [friend["id"] for friend in data["friends"]] == ["u2"]
    assert [group["id"] for group in data["groups"]] == ["g1"]
    assert data["active_conversation"] is None


async def test_select_and_send_text(test_client: AsyncClient, seeded):
    response = await test_client.put(
        "/chat/conversation", json={"type": "group", "id": "g1"}, headers=as_user("u1")
    )
    assert response.status_code == 200
    assert response.json()["active_conversation"] == {"type": "group", "id": "g1"}

    response = await test_client.post(
        "/chat/messages", json={"content": "hello"}, headers=as_user("u1")
    )
    assert response.status_code == 200
    result = response.json()
    assert result["sent"] is True
    assert result["message"]["group_id"] == "g1"

    state = (await test_client.get("/chat/state", headers=as_user("u1"))).json()
    assert [m["content"] for m in state["messages"]] == ["hello"]


async def test_send_without_conversation_is_skipped(test_client: AsyncClient, seeded):
    response = await test_client.post(
        "/chat/messages", json={"content": "hello"}, headers=as_user("u1")
    )

    assert response.status_code == 200
    assert response.json() == {"sent": False, "message": None}


async def test_other_users_message_reaches_open_session(
    test_client: AsyncClient, seeded
):
    await test_client.put(
        "/chat/conversation", json={"type": "friend", "id": "u2"}, headers=as_user("u1")
    )
    await test_client.put(
        "/chat/conversation", json={"type": "friend", "id": "u1"}, headers=as_user("u2")
    )

    await test_client.post(
        "/chat/messages", json={"content": "from ben"}, headers=as_user("u2")
    )

    session = SessionProvider._sessions["u1"]
    await wait_until(lambda: [m.content for m in session.messages] == ["from ben"])


async def test_clear_conversation(test_client: AsyncClient, seeded):
    await test_client.put(
        "/chat/conversation", json={"type": "group", "id": "g1"}, headers=as_user("u1")
    )

    response = await test_client.delete("/chat/conversation", headers=as_user("u1"))

    assert response.status_code == 200
    assert response.json()["active_conversation"] is None


async def test_upload_file(test_client: AsyncClient, seeded, attachments):
    await test_client.put(
        "/chat/conversation", json={"type": "friend", "id": "u2"}, headers=as_user("u1")
    )

    response = await test_client.post(
        "/chat/files",
        files={"file": ("notes.txt", b"some notes", "text/plain")},
        data={"caption": "Notes"},
        headers=as_user("u1"),
    )

    assert response.status_code == 200
    message = response.json()["message"]
    assert message["file_name"] == "notes.txt"
    assert message["file_size"] == 10
    assert message["content"] == "Notes"
    assert message["file_url"].startswith("http://test/storage/documents/u1/")
    stored = list((attachments.root / "documents" / "u1").iterdir())
    assert [path.read_bytes() for path in stored] == [b"some notes"]


async def test_upload_over_limit_returns_413(test_client: AsyncClient, seeded):
    await test_client.put(
        "/chat/conversation", json={"type": "friend", "id": "u2"}, headers=as_user("u1")
    )
    session = SessionProvider._sessions["u1"]
    session.attachment_pipeline.max_file_size = 4

    response = await test_client.post(
        "/chat/files",
        files={"file": ("big.bin", b"12345", "application/octet-stream")},
        headers=as_user("u1"),
    )

    assert response.status_code == 413


async def test_friend_request_flow(
    test_client: AsyncClient, store: SQLAlchemyEntityStore, seeded
):
    response = await test_client.post(
        "/chat/requests", json={"addressee_id": "u3"}, headers=as_user("u1")
    )
    assert response.status_code == 201
    request_id = response.json()["id"]

    duplicate = await test_client.post(
        "/chat/requests", json={"addressee_id": "u1"}, headers=as_user("u3")
    )
    assert duplicate.status_code == 409

    forbidden = await test_client.post(
        f"/chat/requests/{request_id}/accept", headers=as_user("u1")
    )
    assert forbidden.status_code == 403

    response = await test_client.post(
        f"/chat/requests/{request_id}/accept", headers=as_user("u3")
    )
    assert response.status_code == 200
    assert [friend["id"] for friend in response.json()["friends"]] == ["u1"]
    assert response.json()["pending_requests"] == []

    rows = await store.query("friendships", Eq("id", request_id))
    assert rows[0]["status"] == "accepted"


async def test_accept_unknown_request_returns_404(test_client: AsyncClient, seeded):
    response = await test_client.post(
        "/chat/requests/missing/accept", headers=as_user("u1")
    )
    assert response.status_code == 404


async def test_friend_request_to_self_returns_422(test_client: AsyncClient, seeded):
    response = await test_client.post(
        "/chat/requests", json={"addressee_id": "u1"}, headers=as_user("u1")
    )
    assert response.status_code == 422


async def test_search(test_client: AsyncClient, seeded):
    response = await test_client.get(
        "/chat/search", params={"q": "CAT"}, headers=as_user("u1")
    )

    assert response.status_code == 200
    data = response.json()
    assert data["superseded"] is False
    assert [profile["id"] for profile in data["results"]] == ["u3"]


async def test_sign_out_discards_the_session(test_client: AsyncClient, seeded):
    await test_client.put(
        "/chat/conversation", json={"type": "group", "id": "g1"}, headers=as_user("u1")
    )

    response = await test_client.post("/chat/sign-out", headers=as_user("u1"))

    assert response.status_code == 204
    assert "u1" not in SessionProvider._sessions
