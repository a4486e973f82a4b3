from typing import Dict, List
from uuid import UUID

from regionchat.core.exceptions import MessageNotFoundException
from regionchat.database.storage import ChatStorage
from regionchat.schemas.events import reactions_frame
from regionchat.utils.keyed_lock import KeyedLock
from regionchat.utils.websocket_manager import WebsocketManager

Reactions = Dict[str, List[str]]


def _parse_message_id(message_id) -> UUID:
    if isinstance(message_id, UUID):
        return message_id
    try:
        return UUID(str(message_id))
    except ValueError:
        raise MessageNotFoundException()


def add_to_reactions(reactions: Reactions, username: str, emoji: str) -> Reactions:
    updated = {key: list(users) for key, users in reactions.items()}
    users = updated.setdefault(emoji, [])
    if username not in users:
        users.append(username)
    return updated


def remove_from_reactions(reactions: Reactions, username: str, emoji: str) -> Reactions:
    updated = {key: list(users) for key, users in reactions.items()}
    users = updated.get(emoji)
    if users is None:
        return updated
    if username in users:
        users.remove(username)
    if not users:
        del updated[emoji]
    return updated


class ReactionService:
    """Emoji reactions per message; every change is broadcast to all sessions."""

    def __init__(self, storage: ChatStorage, websocket_manager: WebsocketManager):
        self.storage = storage
        self.websocket_manager = websocket_manager
        self._locks = KeyedLock()

    async def get_reactions(self, message_id) -> Reactions:
        message = await self.storage.get_message(_parse_message_id(message_id))
        if message is None:
            raise MessageNotFoundException()
        return message.reactions or {}

    async def _mutate(self, message_id, username: str, emoji: str, change) -> Reactions:
        key = _parse_message_id(message_id)
        # Read-modify-write on the JSON column; two reactions to one message must not interleave
        async with self._locks.hold(key):
            message = await self.storage.get_message(key)
            if message is None:
                raise MessageNotFoundException()
            reactions = await self.storage.set_message_reactions(
                key, change(message.reactions or {}, username, emoji)
            )

        await self.websocket_manager.publish(reactions_frame(str(key), reactions))
        return reactions

    async def add_reaction(self, message_id, username: str, emoji: str) -> Reactions:
        return await self._mutate(message_id, username, emoji, add_to_reactions)

    async def remove_reaction(self, message_id, username: str, emoji: str) -> Reactions:
        return await self._mutate(message_id, username, emoji, remove_from_reactions)
