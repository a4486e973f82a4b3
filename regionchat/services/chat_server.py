"""Composition root for the realtime core.

``ChatServer`` owns the session registry and wires it to the router, the
services and the storage gateway. One instance lives on ``app.state``.
"""
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from regionchat.core.config import settings
from regionchat.core.log_config import logger
from regionchat.database.session import create_engine
from regionchat.database.storage import ChatStorage, SqlChatStorage
from regionchat.schemas.frames import (
    AddReactionFrame,
    ChatFrame,
    FriendAcceptFrame,
    FriendColorUpdateFrame,
    FriendRejectFrame,
    FriendRemoveFrame,
    FriendRequestFrame,
    JoinFrame,
    LeaveFrame,
    PrivateMessageFrame,
    PrivateVoiceMessageFrame,
    RemoveReactionFrame,
    UpdateAvatarFrame,
    UpdateChatModeFrame,
    UpdateChatroomFrame,
    UpdateRegionFrame,
    VoiceMessageFrame,
)
from regionchat.services.chat_service import ChatService
from regionchat.services.friend_service import FriendService
from regionchat.services.notification_service import SmsNotificationService
from regionchat.services.presence_service import PresenceService
from regionchat.services.reaction_service import ReactionService
from regionchat.services.router import ScopeRouter
from regionchat.utils.session_registry import SessionRegistry
from regionchat.utils.websocket_manager import WebsocketManager

Handler = Callable[[Any, Any], Awaitable[None]]


class ChatServer:
    def __init__(
        self,
        storage: ChatStorage,
        notification_service: Optional[SmsNotificationService] = None,
    ):
        self.storage = storage
        self.notification_service = notification_service or SmsNotificationService()

        self.registry = SessionRegistry()
        self.router = ScopeRouter(self.registry)
        self.websocket_manager = WebsocketManager(self.registry, self.router)

        self.friend_service = FriendService(storage, self.websocket_manager)
        self.presence_service = PresenceService(
            self.registry,
            self.websocket_manager,
            storage,
            self.friend_service,
            self.notification_service,
        )
        self.chat_service = ChatService(
            self.registry, self.websocket_manager, storage, self.presence_service
        )
        self.reaction_service = ReactionService(storage, self.websocket_manager)

        self._handlers: Dict[Type, Handler] = {
            JoinFrame: self._on_join,
            LeaveFrame: self._on_leave,
            ChatFrame: self._on_chat,
            VoiceMessageFrame: self._on_voice,
            PrivateMessageFrame: self._on_private,
            PrivateVoiceMessageFrame: self._on_private_voice,
            UpdateChatModeFrame: self._on_chat_mode,
            UpdateRegionFrame: self._on_region,
            UpdateChatroomFrame: self._on_chat_room,
            UpdateAvatarFrame: self._on_avatar,
            AddReactionFrame: self._on_add_reaction,
            RemoveReactionFrame: self._on_remove_reaction,
            FriendRequestFrame: self._on_friend_request,
            FriendAcceptFrame: self._on_friend_accept,
            FriendRejectFrame: self._on_friend_reject,
            FriendRemoveFrame: self._on_friend_remove,
            FriendColorUpdateFrame: self._on_friend_color,
        }

    @classmethod
    def from_settings(cls) -> "ChatServer":
        return cls(SqlChatStorage(create_engine(settings.database_url)))

    async def startup(self):
        await self.storage.initialize()

    async def shutdown(self):
        await self.presence_service.drain()
        await self.notification_service.close()
        await self.storage.close()
        logger.info("Chat server stopped.")

    async def dispatch(self, handle: Any, frame: Any):
        """Run the handler for one decoded client frame."""
        await self._handlers[type(frame)](handle, frame)

    async def disconnect(self, handle: Any) -> bool:
        return await self.presence_service.disconnect(handle)

    def _username(self, handle: Any) -> Optional[str]:
        session = self.registry.get(handle)
        return session.username if session else None

    async def _on_join(self, handle, frame: JoinFrame):
        await self.presence_service.join(handle, frame.username)

    async def _on_leave(self, handle, frame: LeaveFrame):
        await self.presence_service.disconnect(handle)

    async def _on_chat(self, handle, frame: ChatFrame):
        await self.chat_service.handle_chat(handle, frame.text)

    async def _on_voice(self, handle, frame: VoiceMessageFrame):
        await self.chat_service.handle_voice(handle, frame.text, frame.voice_data, frame.voice_duration)

    async def _on_private(self, handle, frame: PrivateMessageFrame):
        await self.chat_service.handle_private(handle, frame.text, frame.recipient)

    async def _on_private_voice(self, handle, frame: PrivateVoiceMessageFrame):
        await self.chat_service.handle_private_voice(
            handle, frame.text, frame.recipient, frame.voice_data, frame.voice_duration
        )

    async def _on_chat_mode(self, handle, frame: UpdateChatModeFrame):
        await self.presence_service.update_chat_mode(handle, frame.chat_mode)

    async def _on_region(self, handle, frame: UpdateRegionFrame):
        await self.presence_service.update_region(handle, frame.region)

    async def _on_chat_room(self, handle, frame: UpdateChatroomFrame):
        await self.presence_service.update_chat_room(handle, frame.chat_room)

    async def _on_avatar(self, handle, frame: UpdateAvatarFrame):
        await self.presence_service.update_avatar(
            handle, frame.avatar_color, frame.avatar_shape, frame.avatar_initials
        )

    async def _on_add_reaction(self, handle, frame: AddReactionFrame):
        username = self._username(handle)
        if username:
            await self.reaction_service.add_reaction(frame.message_id, username, frame.emoji)

    async def _on_remove_reaction(self, handle, frame: RemoveReactionFrame):
        username = self._username(handle)
        if username:
            await self.reaction_service.remove_reaction(frame.message_id, username, frame.emoji)

    async def _on_friend_request(self, handle, frame: FriendRequestFrame):
        username = self._username(handle)
        if username:
            await self.friend_service.send_friend_request(username, frame.friend_username)

    async def _on_friend_accept(self, handle, frame: FriendAcceptFrame):
        username = self._username(handle)
        if username:
            await self.friend_service.accept_friend_request(username, frame.friend_username)

    async def _on_friend_reject(self, handle, frame: FriendRejectFrame):
        username = self._username(handle)
        if username:
            await self.friend_service.reject_friend_request(username, frame.friend_username)

    async def _on_friend_remove(self, handle, frame: FriendRemoveFrame):
        username = self._username(handle)
        if username:
            await self.friend_service.remove_friend(username, frame.friend_username)

    async def _on_friend_color(self, handle, frame: FriendColorUpdateFrame):
        username = self._username(handle)
        if username:
            await self.friend_service.update_friend_color(
                username, frame.friend_username, frame.friend_color
            )
