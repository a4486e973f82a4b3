import pytest
from fastapi import status

from regionchat.core.exceptions import ContentFilteredException, PersistenceFailureException
from regionchat.schemas.chat import ChatMode, ChatRegion


@pytest.fixture
async def room(chat_server, make_ws):
    """alice, bob and carol joined in global scope, with their join traffic cleared."""
    sockets = {}
    for name in ("alice", "bob", "carol"):
        sockets[name] = make_ws(name)
        await chat_server.presence_service.join(sockets[name], name)
    for ws in sockets.values():
        ws.clear()
    return sockets

@pytest.mark.asyncio
async def test_global_chat_reaches_global_sessions(chat_server, room):
    message = await chat_server.chat_service.handle_chat(room["bob"], "hi")

    for name in ("alice", "bob", "carol"):
        frame = room[name].frames("chat")[0]
        assert frame["username"] == "bob"
        assert frame["text"] == "hi"
        assert frame["id"] == str(message.id)
        assert frame["kind"] == "user"
        assert frame["isPrivate"] is False

@pytest.mark.asyncio
async def test_local_chat_stays_in_region(chat_server, room):
    registry = chat_server.registry
    registry.update(room["alice"], chat_mode=ChatMode.LOCAL, region=ChatRegion.EUROPE)
    registry.update(room["bob"], chat_mode=ChatMode.LOCAL, region=ChatRegion.ASIA)

    await chat_server.chat_service.handle_chat(room["alice"], "bonjour")

    assert [f["text"] for f in room["alice"].frames("chat")] == ["bonjour"]
    assert room["bob"].frames("chat") == []
    assert room["carol"].frames("chat") == []

@pytest.mark.asyncio
async def test_global_chat_skips_local_sessions(chat_server, room):
    chat_server.registry.update(room["alice"], chat_mode=ChatMode.LOCAL)

    await chat_server.chat_service.handle_chat(room["carol"], "anyone?")

    assert room["alice"].frames("chat") == []
    assert room["bob"].frames("chat")[0]["text"] == "anyone?"

@pytest.mark.asyncio
async def test_filtered_message_is_delivered_redacted(chat_server, room):
    await chat_server.chat_service.handle_chat(room["bob"], "fuck this")

    errors = room["bob"].frames("error")
    assert errors[0]["text"] == "Your message contained inappropriate language and has been filtered."
    assert room["alice"].frames("error") == []
    for ws in room.values():
        assert ws.frames("chat")[0]["text"] == "**** this"

    stored = await chat_server.storage.get_messages(10)
    assert stored[-1].text == "**** this"

@pytest.mark.asyncio
async def test_private_message_reaches_only_the_pair(chat_server, room):
    await chat_server.chat_service.handle_private(room["alice"], "yo", "bob")

    for name in ("alice", "bob"):
        frame = room[name].frames("private_message")[0]
        assert frame["username"] == "alice"
        assert frame["recipient"] == "bob"
        assert frame["isPrivate"] is True
    assert room["carol"].sent == []
    assert room["alice"].frames("error") == []

@pytest.mark.asyncio
async def test_private_message_to_offline_user_is_echoed_and_stored(chat_server, room):
    await chat_server.chat_service.handle_private(room["alice"], "are you there", "zed")

    assert room["alice"].frames("private_message")[0]["text"] == "are you there"
    assert room["alice"].frames("error")[0]["text"] == "User zed is not online or doesn't exist."
    assert room["bob"].sent == []

    thread = await chat_server.storage.get_private_messages("zed", "alice", 10)
    assert [m.text for m in thread] == ["are you there"]

@pytest.mark.asyncio
async def test_filtered_private_message_uses_private_notice(chat_server, room):
    await chat_server.chat_service.handle_private(room["alice"], "b1tch", "bob")

    assert room["alice"].frames("error")[0]["text"] == (
        "Your private message contained inappropriate language and has been filtered."
    )
    assert room["bob"].frames("private_message")[0]["text"] == "*****"

@pytest.mark.asyncio
async def test_voice_messages_carry_audio(chat_server, room):
    await chat_server.chat_service.handle_voice(room["alice"], "Voice message", "UklGRg==", 3)
    await chat_server.chat_service.handle_private_voice(room["alice"], "Voice message", "bob", "UklGRg==", 5)

    public = room["carol"].frames("voice_message")[0]
    assert public["isVoiceMessage"] is True
    assert public["voiceData"] == "UklGRg=="
    assert public["voiceDuration"] == 3

    private = room["bob"].frames("voice_message_private")[0]
    assert private["voiceDuration"] == 5
    assert private["recipient"] == "bob"
    assert room["carol"].frames("voice_message_private") == []

@pytest.mark.asyncio
async def test_storage_failure_broadcasts_nothing(chat_server, room, monkeypatch):
    async def broken(*args, **kwargs):
        raise PersistenceFailureException()

    monkeypatch.setattr(chat_server.storage, "add_message", broken)

    with pytest.raises(PersistenceFailureException):
        await chat_server.chat_service.handle_chat(room["bob"], "hi")

    for ws in room.values():
        assert ws.sent == []

@pytest.mark.asyncio
async def test_unjoined_connection_is_ignored(chat_server, room, make_ws):
    stranger = make_ws("stranger")

    assert await chat_server.chat_service.handle_chat(stranger, "hello?") is None
    assert stranger.sent == []
    assert room["alice"].sent == []

@pytest.mark.asyncio
async def test_closed_connection_does_not_break_delivery(chat_server, room):
    room["carol"].close()

    await chat_server.chat_service.handle_chat(room["bob"], "still here")

    assert room["alice"].frames("chat")[0]["text"] == "still here"
    assert room["carol"].sent == []

@pytest.mark.asyncio
async def test_private_recipient_name_must_match_exactly(chat_server, room):
    await chat_server.chat_service.handle_private(room["alice"], "hey", "Bob")

    assert room["bob"].sent == []
    assert room["alice"].frames("error")[0]["text"] == "User Bob is not online or doesn't exist."

def test_filtered_content_maps_to_unprocessable_content():
    assert ContentFilteredException().status_code == status.HTTP_422_UNPROCESSABLE_CONTENT == 422
