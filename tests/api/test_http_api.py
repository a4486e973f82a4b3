from uuid import uuid4

import pytest
from httpx import AsyncClient, ASGITransport

from regionchat.main import create_app


@pytest.fixture
async def async_test_client(chat_server):
    app = create_app(chat_server)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

@pytest.fixture
def auth_headers(test_token):
    return {"Authorization": f"Bearer {test_token}"}

@pytest.mark.asyncio
async def test_recent_messages_exclude_private(async_test_client, storage):
    await storage.add_message("alice", "hello")
    await storage.add_message("alice", "secret", recipient="bob")

    response = await async_test_client.get("/api/messages", params={"limit": 10})
    assert response.status_code == 200
    messages = response.json()
    assert [m["text"] for m in messages] == ["hello"]
    assert messages[0]["type"] == "user"
    assert messages[0]["isPrivate"] is False
    assert messages[0]["timestamp"].endswith("+00:00")

@pytest.mark.asyncio
async def test_private_thread(async_test_client, storage):
    await storage.add_message("alice", "secret", recipient="bob", voice_data="UklGRg==", voice_duration=2)

    response = await async_test_client.get(
        "/api/private-messages", params={"username": "bob", "recipient": "alice"}
    )
    assert response.status_code == 200
    [message] = response.json()
    assert message["recipient"] == "bob"
    assert message["isVoiceMessage"] is True
    assert message["voiceDuration"] == 2

@pytest.mark.asyncio
async def test_private_thread_requires_both_names(async_test_client):
    response = await async_test_client.get("/api/private-messages", params={"username": "bob"})
    assert response.status_code == 400
    assert response.json()["message"] == "Both username and recipient are required query parameters"

@pytest.mark.asyncio
async def test_reactions_round_trip(async_test_client, storage, auth_headers, chat_server, make_ws):
    message = await storage.add_message("alice", "react to me")
    watcher = make_ws("watcher")
    await chat_server.presence_service.join(watcher, "watcher")
    watcher.clear()
    url = f"/api/messages/{message.id}/reactions"

    response = await async_test_client.post(url, json={"emoji": "🔥"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"messageId": str(message.id), "reactions": {"🔥": ["testuser"]}}
    assert watcher.frames("update_reactions")[0]["reactions"] == {"🔥": ["testuser"]}

    response = await async_test_client.get(url)
    assert response.json()["reactions"] == {"🔥": ["testuser"]}

    response = await async_test_client.delete(url, params={"emoji": "🔥"}, headers=auth_headers)
    assert response.json()["reactions"] == {}

@pytest.mark.asyncio
async def test_reactions_require_auth_and_existing_message(async_test_client, auth_headers):
    url = f"/api/messages/{uuid4()}/reactions"
    assert (await async_test_client.post(url, json={"emoji": "🔥"})).status_code in (401, 403)
    response = await async_test_client.post(url, json={"emoji": "🔥"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Message not found"}

@pytest.mark.asyncio
async def test_online_users_snapshot(async_test_client, chat_server, make_ws):
    await chat_server.presence_service.join(make_ws("alice"), "alice")

    response = await async_test_client.get("/api/users")
    assert response.status_code == 200
    data = response.json()
    assert [u["username"] for u in data["users"]] == ["alice"]
    assert data["users"][0]["chatMode"] == "global"
    assert data["roomCounts"]["general"] == 1

@pytest.mark.asyncio
async def test_leaderboard(async_test_client, storage):
    await storage.add_chat_user("alice")

    response = await async_test_client.get("/api/leaderboard")
    assert response.status_code == 200
    [entry] = response.json()
    assert entry["username"] == "alice"
    assert entry["totalTimeOnline"] == 0
    assert entry["isActive"] is True

@pytest.mark.asyncio
async def test_user_settings(async_test_client, auth_headers):
    response = await async_test_client.get("/api/user/settings", headers=auth_headers)
    assert response.json() == {"phoneNumber": None, "notifyFriendOnline": False}

    response = await async_test_client.post(
        "/api/user/settings",
        json={"phoneNumber": "+15550001111", "notifyFriendOnline": True},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"phoneNumber": "+15550001111", "notifyFriendOnline": True}

    response = await async_test_client.post(
        "/api/user/settings",
        json={"phoneNumber": "call me maybe", "notifyFriendOnline": True},
        headers=auth_headers,
    )
    assert response.status_code == 422

@pytest.mark.asyncio
async def test_send_test_sms(async_test_client, auth_headers, notifier):
    response = await async_test_client.post(
        "/api/user/test-sms", json={"phoneNumber": "+15550001111"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Test SMS sent successfully"}
    assert notifier.sent == [("+15550001111", "This is a test message from ChatApp!")]

@pytest.mark.asyncio
async def test_send_test_sms_errors(async_test_client, auth_headers, notifier):
    response = await async_test_client.post("/api/user/test-sms", json={}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"message": "Phone number is required"}
    assert notifier.sent == []

    notifier.result = False
    response = await async_test_client.post(
        "/api/user/test-sms", json={"phoneNumber": "+15550001111"}, headers=auth_headers
    )
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to send test SMS"}

    response = await async_test_client.post("/api/user/test-sms", json={"phoneNumber": "+1555"})
    assert response.status_code in (401, 403)
