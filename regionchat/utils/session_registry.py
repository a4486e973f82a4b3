from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from regionchat.core.exceptions import (
    AlreadyJoinedException,
    UsernameTakenException,
    UsernameUnsafeException,
)
from regionchat.schemas.chat import (
    AvatarShape,
    ChatMode,
    ChatRegion,
    ChatRoom,
    UserRole,
    DEFAULT_AVATAR_COLOR,
)
from regionchat.services.moderation import is_username_safe


@dataclass
class Avatar:
    color: str = DEFAULT_AVATAR_COLOR
    shape: AvatarShape = AvatarShape.CIRCLE
    initials: str = ""


@dataclass(eq=False)
class Session:
    """Attributes of one live, joined connection."""
    handle: Any
    username: str
    chat_mode: ChatMode = ChatMode.GLOBAL
    region: ChatRegion = ChatRegion.GLOBAL
    chat_room: ChatRoom = ChatRoom.GENERAL
    avatar: Avatar = field(default_factory=Avatar)
    role: UserRole = UserRole.USER

    @property
    def is_local(self) -> bool:
        return self.chat_mode == ChatMode.LOCAL


class SessionRegistry:
    """
    In-memory table of live sessions keyed by connection handle.

    All methods are synchronous. On a single event loop a check-then-insert in
    ``register`` therefore cannot interleave with another join, which is what
    keeps usernames unique among active sessions.
    """

    def __init__(self):
        self._sessions: Dict[Any, Session] = {}

    def register(self, handle: Any, username: str) -> Session:
        if handle in self._sessions:
            raise AlreadyJoinedException()
        if self.is_online(username):
            raise UsernameTakenException()
        if not is_username_safe(username):
            raise UsernameUnsafeException()

        session = Session(
            handle=handle,
            username=username,
            avatar=Avatar(initials=username[:1].upper()),
        )
        self._sessions[handle] = session
        return session

    def unregister(self, handle: Any) -> Optional[Session]:
        """Remove and return the session; ``None`` if the handle was not joined."""
        return self._sessions.pop(handle, None)

    def get(self, handle: Any) -> Optional[Session]:
        return self._sessions.get(handle)

    def update(self, handle: Any, **changes) -> Optional[Session]:
        session = self._sessions.get(handle)
        if session is None:
            return None
        for name, value in changes.items():
            if not hasattr(session, name) or name == "handle":
                raise AttributeError(f"Session has no mutable attribute '{name}'")
            setattr(session, name, value)
        return session

    def all(self) -> List[Session]:
        return list(self._sessions.values())

    def find_by_username(self, username: str) -> List[Session]:
        # Exact match. Case folding applies to join uniqueness only (see is_online)
        return [s for s in self._sessions.values() if s.username == username]

    def is_online(self, username: str) -> bool:
        wanted = username.casefold()
        return any(s.username.casefold() == wanted for s in self._sessions.values())

    def room_counts(self) -> Dict[ChatRoom, int]:
        counts = {room: 0 for room in ChatRoom}
        for session in self._sessions.values():
            counts[session.chat_room] += 1
        return counts

    def __len__(self) -> int:
        return len(self._sessions)
