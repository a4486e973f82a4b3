import asyncio
from typing import Any, Optional, Set

from regionchat.core.config import settings
from regionchat.core.exceptions import PersistenceFailureException
from regionchat.core.log_config import logger
from regionchat.database.storage import ChatStorage
from regionchat.schemas.chat import (
    AvatarShape,
    ChatMode,
    ChatRegion,
    ChatRoom,
    FrameType,
    FriendStatus,
    MessageKind,
    UserRole,
    DEFAULT_AVATAR_COLOR,
)
from regionchat.schemas.events import (
    chatroom_frame,
    history_frame,
    message_frame,
    online_users,
    system_notice,
    users_frame,
)
from regionchat.schemas.user import OnlineUsersResponse
from regionchat.services.friend_service import FriendService
from regionchat.services.notification_service import SmsNotificationService
from regionchat.utils.keyed_lock import KeyedLock
from regionchat.utils.session_registry import Avatar, Session, SessionRegistry
from regionchat.utils.websocket_manager import WebsocketManager


class PresenceService:
    """
    Join and leave transitions, per-session preference updates and time-online
    accounting.

    Explicit leave frames and transport closes both end up in ``disconnect``,
    which only acts for a handle that is still registered, so a connection
    produces at most one leave notice.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        websocket_manager: WebsocketManager,
        storage: ChatStorage,
        friend_service: FriendService,
        notification_service: SmsNotificationService,
        history_limit: int = settings.history_limit,
    ):
        self.registry = registry
        self.websocket_manager = websocket_manager
        self.storage = storage
        self.friend_service = friend_service
        self.notification_service = notification_service
        self.history_limit = history_limit
        self._activity_locks = KeyedLock()
        self._background_tasks: Set[asyncio.Task] = set()

    @staticmethod
    def role_for(username: str) -> UserRole:
        if username in settings.owner_usernames:
            return UserRole.OWNER
        if username in settings.moderator_usernames:
            return UserRole.MODERATOR
        return UserRole.USER

    def snapshot(self) -> OnlineUsersResponse:
        return online_users(self.registry.all(), self.registry.room_counts())

    async def broadcast_users(self):
        await self.websocket_manager.publish(
            users_frame(self.registry.all(), self.registry.room_counts())
        )

    async def join(self, handle: Any, username: str) -> Session:
        """
        Register a connection under ``username`` and announce it.

        Raises:
            AlreadyJoinedException, UsernameTakenException, UsernameUnsafeException:
                the name cannot be used; nothing is persisted or broadcast
            PersistenceFailureException: the session is rolled back out of the registry
        """
        session = self.registry.register(handle, username)
        session.role = self.role_for(username)

        try:
            # Snapshot before the join notice is stored so the newcomer does not see its own
            history = await self.storage.get_messages(self.history_limit)
            chat_user = await self.storage.add_chat_user(username, session.role)
            join_message = await self.storage.add_message(
                username, f"{username} has joined the chat", MessageKind.SYSTEM
            )
        except PersistenceFailureException:
            self.registry.unregister(handle)
            raise

        session.avatar = Avatar(
            color=chat_user.avatar_color or DEFAULT_AVATAR_COLOR,
            shape=chat_user.avatar_shape or AvatarShape.CIRCLE,
            initials=chat_user.avatar_initials or session.avatar.initials,
        )
        logger.info(f"User {username} joined ({len(self.registry)} online).")

        await self.broadcast_users()
        await self.websocket_manager.publish(message_frame(FrameType.JOIN, join_message))
        await self.websocket_manager.send(handle, history_frame(history))
        await self.friend_service.push_friend_list(username)

        self._spawn(self._notify_friends_online(username))
        return session

    async def disconnect(self, handle: Any) -> bool:
        """Tear down a session. Returns False if the handle was not (or no longer) joined."""
        session = self.registry.unregister(handle)
        if session is None:
            return False

        username = session.username
        logger.info(f"User {username} left ({len(self.registry)} online).")
        leave_message = None
        try:
            await self.record_activity(username)
            await self.storage.remove_chat_user(username)
            leave_message = await self.storage.add_message(
                username, f"{username} has left the chat", MessageKind.SYSTEM
            )
        except PersistenceFailureException as e:
            logger.error(f"Could not persist departure of {username}: {e.detail}")

        await self.broadcast_users()
        if leave_message is not None:
            await self.websocket_manager.publish(message_frame(FrameType.LEAVE, leave_message))
        return True

    async def record_activity(self, username: str):
        """Accumulate time online; serialized per username so elapsed time is counted once."""
        async with self._activity_locks.hold(username):
            await self.storage.update_user_last_active(username)

    async def update_chat_mode(self, handle: Any, chat_mode: ChatMode):
        if self.registry.update(handle, chat_mode=chat_mode) is None:
            return
        await self.websocket_manager.send(
            handle, system_notice(f"Your chat mode has been updated to {chat_mode.value.title()}")
        )

    async def update_region(self, handle: Any, region: ChatRegion):
        if self.registry.update(handle, region=region) is None:
            return
        await self.websocket_manager.send(
            handle, system_notice(f"Your region has been updated to {region.display_name}")
        )

    async def update_chat_room(self, handle: Any, chat_room: ChatRoom):
        if self.registry.update(handle, chat_room=chat_room) is None:
            return
        await self.websocket_manager.send(handle, chatroom_frame(chat_room, self.registry.room_counts()))
        await self.broadcast_users()

    async def update_avatar(
        self,
        handle: Any,
        color: Optional[str] = None,
        shape: Optional[AvatarShape] = None,
        initials: Optional[str] = None,
    ):
        session = self.registry.get(handle)
        if session is None:
            return

        avatar = Avatar(
            color=color or session.avatar.color,
            shape=shape or session.avatar.shape,
            initials=initials[:2] if initials else session.avatar.initials,
        )
        await self.storage.update_chat_user_avatar(
            session.username, avatar.color, avatar.shape, avatar.initials
        )
        self.registry.update(handle, avatar=avatar)

        await self.websocket_manager.send(handle, system_notice("Your avatar has been updated"))
        await self.broadcast_users()

    def _spawn(self, coroutine):
        task = asyncio.create_task(coroutine)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _notify_friends_online(self, username: str):
        try:
            friendships = await self.storage.get_friendships(username, FriendStatus.ACCEPTED)
            friends = await self.storage.get_users_by_usernames(
                [f.other(username) for f in friendships]
            )
            for friend in friends:
                if friend.notify_friend_online and friend.phone_number:
                    await self.notification_service.notify(
                        friend.phone_number, f"{username} is now online!"
                    )
        except Exception as e:
            logger.error(f"Failed to send friend-online notifications for {username}: {e}")

    async def drain(self):
        """Wait for outstanding background notifications."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
