"""Persistence gateway.

``ChatStorage`` is the contract the realtime core depends on; ``SqlChatStorage``
implements it on an async SQLAlchemy engine. Every failing database operation
surfaces as ``PersistenceFailureException`` after the transaction is rolled back.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from regionchat.core.exceptions import (
    PersistenceFailureException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from regionchat.core.log_config import logger
from regionchat.database.session import create_session_factory, initialize_db
from regionchat.models.base import utcnow
from regionchat.models.friendship import FriendColor, Friendship, pair_key
from regionchat.models.message import ChatMessage
from regionchat.models.user import ChatUser, User
from regionchat.schemas.chat import AvatarShape, FriendStatus, MessageKind, UserRole

Reactions = Dict[str, List[str]]


class ChatStorage(ABC):
    """Durable store for accounts, presence rows, messages, reactions and friendships."""

    @abstractmethod
    async def initialize(self): ...

    @abstractmethod
    async def close(self): ...

    # Accounts
    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def get_users_by_usernames(self, usernames: Sequence[str]) -> List[User]: ...

    @abstractmethod
    async def create_user(self, username: str, hashed_password: str) -> User: ...

    @abstractmethod
    async def update_user_settings(
        self, username: str, phone_number: Optional[str], notify_friend_online: bool
    ) -> User: ...

    # Presence
    @abstractmethod
    async def add_chat_user(self, username: str, role: UserRole = UserRole.USER) -> ChatUser: ...

    @abstractmethod
    async def remove_chat_user(self, username: str): ...

    @abstractmethod
    async def get_chat_user(self, username: str) -> Optional[ChatUser]: ...

    @abstractmethod
    async def update_chat_user_avatar(
        self, username: str, color: str, shape: AvatarShape, initials: str
    ): ...

    @abstractmethod
    async def update_user_last_active(self, username: str) -> Optional[ChatUser]: ...

    @abstractmethod
    async def get_users_by_time_online(self, limit: int) -> List[ChatUser]: ...

    # Messages
    @abstractmethod
    async def add_message(
        self,
        username: str,
        text: str,
        kind: MessageKind = MessageKind.USER,
        recipient: Optional[str] = None,
        voice_data: Optional[str] = None,
        voice_duration: Optional[int] = None,
    ) -> ChatMessage: ...

    @abstractmethod
    async def get_messages(self, limit: int) -> List[ChatMessage]: ...

    @abstractmethod
    async def get_private_messages(self, user_a: str, user_b: str, limit: int) -> List[ChatMessage]: ...

    @abstractmethod
    async def get_message(self, message_id: UUID) -> Optional[ChatMessage]: ...

    @abstractmethod
    async def set_message_reactions(self, message_id: UUID, reactions: Reactions) -> Reactions: ...

    # Friendships
    @abstractmethod
    async def get_friendship(self, user_a: str, user_b: str) -> Optional[Friendship]: ...

    @abstractmethod
    async def save_friend_request(self, requester: str, addressee: str) -> Friendship: ...

    @abstractmethod
    async def set_friendship_status(self, requester: str, addressee: str, status: FriendStatus) -> Friendship: ...

    @abstractmethod
    async def seed_friend_colors(self, user_a: str, user_b: str, color: str): ...

    @abstractmethod
    async def delete_friendship(self, user_a: str, user_b: str): ...

    @abstractmethod
    async def get_friendships(self, username: str, status: FriendStatus) -> List[Friendship]: ...

    @abstractmethod
    async def get_friend_colors(self, owner: str) -> Dict[str, str]: ...

    @abstractmethod
    async def set_friend_color(self, owner: str, friend: str, color: str): ...


class SqlChatStorage(ChatStorage):
    def __init__(self, engine: AsyncEngine, session_factory: Optional[async_sessionmaker] = None):
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)

    @asynccontextmanager
    async def _transaction(self, action: str):
        async with self.session_factory() as db:
            try:
                yield db
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Storage failed to {action}: {e}")
                raise PersistenceFailureException(detail=f"Failed to {action}") from e

    async def initialize(self):
        try:
            await initialize_db(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceFailureException(detail="Failed to initialize database") from e
        logger.info("Database initialized successfully")

    async def close(self):
        await self.engine.dispose()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    @staticmethod
    async def _get_user(db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).filter(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._transaction("load user") as db:
            return await self._get_user(db, username)

    async def get_users_by_usernames(self, usernames: Sequence[str]) -> List[User]:
        if not usernames:
            return []
        async with self._transaction("load users") as db:
            result = await db.execute(select(User).filter(User.username.in_(list(usernames))))
            return list(result.scalars().all())

    async def create_user(self, username: str, hashed_password: str) -> User:
        user = User(username=username, hashed_password=hashed_password)
        try:
            async with self._transaction("create user") as db:
                db.add(user)
                await db.flush()
        except PersistenceFailureException as e:
            if isinstance(e.__cause__, IntegrityError):
                raise UserAlreadyExistsException() from e
            raise
        return user

    async def update_user_settings(
        self, username: str, phone_number: Optional[str], notify_friend_online: bool
    ) -> User:
        async with self._transaction("update user settings") as db:
            user = await self._get_user(db, username)
            if user is None:
                raise UserNotFoundException()
            user.phone_number = phone_number or None
            user.notify_friend_online = notify_friend_online
            return user

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    @staticmethod
    async def _get_chat_user(db: AsyncSession, username: str) -> Optional[ChatUser]:
        result = await db.execute(select(ChatUser).filter(ChatUser.username == username))
        return result.scalar_one_or_none()

    async def add_chat_user(self, username: str, role: UserRole = UserRole.USER) -> ChatUser:
        """Insert a presence row, or reactivate an existing one."""
        async with self._transaction("add chat user") as db:
            chat_user = await self._get_chat_user(db, username)
            now = utcnow()
            if chat_user is None:
                chat_user = ChatUser(
                    username=username,
                    role=role,
                    avatar_initials=username[:1].upper(),
                    join_time=now,
                    last_active=now,
                    total_time_online=0,
                )
                db.add(chat_user)
            else:
                # Time spent offline must not count toward time online
                chat_user.last_active = now
                if role != UserRole.USER:
                    chat_user.role = role
            chat_user.is_active = True
            await db.flush()
            return chat_user

    async def remove_chat_user(self, username: str):
        async with self._transaction("remove chat user") as db:
            chat_user = await self._get_chat_user(db, username)
            if chat_user is not None:
                chat_user.is_active = False

    async def get_chat_user(self, username: str) -> Optional[ChatUser]:
        async with self._transaction("load chat user") as db:
            return await self._get_chat_user(db, username)

    async def update_chat_user_avatar(
        self, username: str, color: str, shape: AvatarShape, initials: str
    ):
        async with self._transaction("update avatar") as db:
            chat_user = await self._get_chat_user(db, username)
            if chat_user is not None:
                chat_user.avatar_color = color
                chat_user.avatar_shape = shape
                chat_user.avatar_initials = initials

    async def update_user_last_active(self, username: str) -> Optional[ChatUser]:
        async with self._transaction("record activity") as db:
            chat_user = await self._get_chat_user(db, username)
            if chat_user is None:
                return None
            now = utcnow()
            if chat_user.last_active is not None:
                elapsed = int((now - chat_user.last_active).total_seconds())
                chat_user.total_time_online = (chat_user.total_time_online or 0) + max(elapsed, 0)
            chat_user.last_active = now
            return chat_user

    async def get_users_by_time_online(self, limit: int) -> List[ChatUser]:
        async with self._transaction("load leaderboard") as db:
            result = await db.execute(
                select(ChatUser)
                .order_by(ChatUser.total_time_online.desc(), ChatUser.username)
                .limit(limit)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self,
        username: str,
        text: str,
        kind: MessageKind = MessageKind.USER,
        recipient: Optional[str] = None,
        voice_data: Optional[str] = None,
        voice_duration: Optional[int] = None,
    ) -> ChatMessage:
        message = ChatMessage(
            username=username,
            text=text,
            kind=kind,
            timestamp=utcnow(),
            recipient=recipient,
            is_private=recipient is not None,
            is_voice_message=voice_data is not None,
            voice_data=voice_data,
            voice_duration=voice_duration,
            reactions={},
        )
        async with self._transaction("store message") as db:
            db.add(message)
            await db.flush()
        return message

    async def get_messages(self, limit: int) -> List[ChatMessage]:
        async with self._transaction("load messages") as db:
            result = await db.execute(
                select(ChatMessage)
                .filter(ChatMessage.is_private.is_(False))
                .order_by(ChatMessage.timestamp.desc())
                .limit(limit)
            )
            return list(reversed(result.scalars().all()))

    async def get_private_messages(self, user_a: str, user_b: str, limit: int) -> List[ChatMessage]:
        async with self._transaction("load private messages") as db:
            result = await db.execute(
                select(ChatMessage)
                .filter(
                    ChatMessage.is_private.is_(True),
                    or_(
                        and_(ChatMessage.username == user_a, ChatMessage.recipient == user_b),
                        and_(ChatMessage.username == user_b, ChatMessage.recipient == user_a),
                    ),
                )
                .order_by(ChatMessage.timestamp.desc())
                .limit(limit)
            )
            return list(reversed(result.scalars().all()))

    async def get_message(self, message_id: UUID) -> Optional[ChatMessage]:
        async with self._transaction("load message") as db:
            return await db.get(ChatMessage, message_id)

    async def set_message_reactions(self, message_id: UUID, reactions: Reactions) -> Reactions:
        async with self._transaction("update reactions") as db:
            message = await db.get(ChatMessage, message_id)
            if message is None:
                return None
            # New object so the JSON column is flagged dirty
            message.reactions = {emoji: list(users) for emoji, users in reactions.items()}
            return message.reactions

    # ------------------------------------------------------------------
    # Friendships
    # ------------------------------------------------------------------

    @staticmethod
    async def _get_friendship(db: AsyncSession, user_a: str, user_b: str) -> Optional[Friendship]:
        low, high = pair_key(user_a, user_b)
        result = await db.execute(
            select(Friendship).filter(Friendship.user_low == low, Friendship.user_high == high)
        )
        return result.scalar_one_or_none()

    async def get_friendship(self, user_a: str, user_b: str) -> Optional[Friendship]:
        async with self._transaction("load friendship") as db:
            return await self._get_friendship(db, user_a, user_b)

    async def save_friend_request(self, requester: str, addressee: str) -> Friendship:
        """Create a pending row, reusing a previously rejected row for the same pair."""
        async with self._transaction("save friend request") as db:
            friendship = await self._get_friendship(db, requester, addressee)
            if friendship is None:
                low, high = pair_key(requester, addressee)
                friendship = Friendship(user_low=low, user_high=high)
                db.add(friendship)
            friendship.requester = requester
            friendship.addressee = addressee
            friendship.status = FriendStatus.PENDING
            friendship.created_at = utcnow()
            friendship.updated_at = friendship.created_at
            await db.flush()
            return friendship

    async def set_friendship_status(self, requester: str, addressee: str, status: FriendStatus) -> Friendship:
        async with self._transaction("update friendship") as db:
            friendship = await self._get_friendship(db, requester, addressee)
            if friendship is None:
                return None
            friendship.status = status
            friendship.updated_at = utcnow()
            return friendship

    async def seed_friend_colors(self, user_a: str, user_b: str, color: str):
        async with self._transaction("seed friend colors") as db:
            result = await db.execute(
                select(FriendColor).filter(
                    or_(
                        and_(FriendColor.owner == user_a, FriendColor.friend == user_b),
                        and_(FriendColor.owner == user_b, FriendColor.friend == user_a),
                    )
                )
            )
            existing = {(row.owner, row.friend) for row in result.scalars().all()}
            for owner, friend in ((user_a, user_b), (user_b, user_a)):
                if (owner, friend) not in existing:
                    db.add(FriendColor(owner=owner, friend=friend, color=color))

    async def delete_friendship(self, user_a: str, user_b: str):
        """Delete the pair's row together with both directions' color preferences."""
        low, high = pair_key(user_a, user_b)
        async with self._transaction("delete friendship") as db:
            await db.execute(
                delete(Friendship).where(Friendship.user_low == low, Friendship.user_high == high)
            )
            await db.execute(
                delete(FriendColor).where(
                    or_(
                        and_(FriendColor.owner == user_a, FriendColor.friend == user_b),
                        and_(FriendColor.owner == user_b, FriendColor.friend == user_a),
                    )
                )
            )

    async def get_friendships(self, username: str, status: FriendStatus) -> List[Friendship]:
        async with self._transaction("load friendships") as db:
            result = await db.execute(
                select(Friendship)
                .filter(
                    Friendship.status == status,
                    or_(Friendship.requester == username, Friendship.addressee == username),
                )
                .order_by(Friendship.created_at)
            )
            return list(result.scalars().all())

    async def get_friend_colors(self, owner: str) -> Dict[str, str]:
        async with self._transaction("load friend colors") as db:
            result = await db.execute(select(FriendColor).filter(FriendColor.owner == owner))
            return {row.friend: row.color for row in result.scalars().all()}

    async def set_friend_color(self, owner: str, friend: str, color: str):
        async with self._transaction("update friend color") as db:
            result = await db.execute(
                select(FriendColor).filter(FriendColor.owner == owner, FriendColor.friend == friend)
            )
            preference = result.scalar_one_or_none()
            if preference is None:
                db.add(FriendColor(owner=owner, friend=friend, color=color))
            else:
                preference.color = color
