from uuid import uuid4

import pytest

from regionchat.core.exceptions import MessageNotFoundException
from regionchat.schemas.chat import ChatMode, ChatRegion
from regionchat.services.reaction_service import add_to_reactions, remove_from_reactions


@pytest.fixture
async def message(storage):
    return await storage.add_message("alice", "react to me")

def test_add_and_remove_helpers_prune_empty_keys():
    reactions = add_to_reactions({}, "alice", "👍")
    assert reactions == {"👍": ["alice"]}
    assert add_to_reactions(reactions, "alice", "👍") == reactions
    assert remove_from_reactions(reactions, "alice", "👍") == {}
    assert remove_from_reactions({}, "alice", "👍") == {}

@pytest.mark.asyncio
async def test_add_then_remove_restores_prior_map(chat_server, message):
    reactions = chat_server.reaction_service
    await reactions.add_reaction(message.id, "bob", "🎉")
    before = await reactions.get_reactions(message.id)

    await reactions.add_reaction(message.id, "alice", "👍")
    await reactions.remove_reaction(message.id, "alice", "👍")

    assert await reactions.get_reactions(message.id) == before == {"🎉": ["bob"]}

@pytest.mark.asyncio
async def test_add_is_idempotent(chat_server, message):
    reactions = chat_server.reaction_service
    once = await reactions.add_reaction(str(message.id), "alice", "👍")
    twice = await reactions.add_reaction(str(message.id), "alice", "👍")
    assert once == twice == {"👍": ["alice"]}

@pytest.mark.asyncio
async def test_remove_when_absent_is_noop(chat_server, message):
    await chat_server.reaction_service.add_reaction(message.id, "alice", "👍")
    result = await chat_server.reaction_service.remove_reaction(message.id, "bob", "👍")
    assert result == {"👍": ["alice"]}

@pytest.mark.asyncio
async def test_unknown_message(chat_server):
    with pytest.raises(MessageNotFoundException):
        await chat_server.reaction_service.add_reaction(uuid4(), "alice", "👍")
    with pytest.raises(MessageNotFoundException):
        await chat_server.reaction_service.remove_reaction("not-a-uuid", "alice", "👍")
    with pytest.raises(MessageNotFoundException):
        await chat_server.reaction_service.get_reactions("not-a-uuid")

@pytest.mark.asyncio
async def test_updates_reach_every_session_regardless_of_scope(chat_server, make_ws, message):
    alice, bob = make_ws("alice"), make_ws("bob")
    await chat_server.presence_service.join(alice, "alice")
    await chat_server.presence_service.join(bob, "bob")
    chat_server.registry.update(bob, chat_mode=ChatMode.LOCAL, region=ChatRegion.AFRICA)
    alice.clear()
    bob.clear()

    await chat_server.reaction_service.add_reaction(message.id, "alice", "❤️")

    for ws in (alice, bob):
        frame = ws.frames("update_reactions")[0]
        assert frame["messageId"] == str(message.id)
        assert frame["reactions"] == {"❤️": ["alice"]}

@pytest.mark.asyncio
async def test_reactions_to_unknown_messages_leave_no_locks(chat_server, message):
    reactions = chat_server.reaction_service
    for _ in range(10):
        with pytest.raises(MessageNotFoundException):
            await reactions.add_reaction(uuid4(), "alice", "👍")
    await reactions.add_reaction(message.id, "alice", "👍")

    assert len(reactions._locks) == 0
