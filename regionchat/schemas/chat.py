from enum import Enum


class ChatMode(str, Enum):
    LOCAL = "local"
    GLOBAL = "global"

class ChatRegion(str, Enum):
    GLOBAL = "global"
    NORTH_AMERICA = "north_america"
    EUROPE = "europe"
    ASIA = "asia"
    SOUTH_AMERICA = "south_america"
    AFRICA = "africa"
    OCEANIA = "oceania"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

class ChatRoom(str, Enum):
    GENERAL = "general"
    CASUAL = "casual"
    TECH = "tech"
    GAMING = "gaming"

class AvatarShape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    ROUNDED = "rounded"

class UserRole(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    OWNER = "owner"

class MessageKind(str, Enum):
    USER = "user"
    SYSTEM = "system"

class FriendStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class FrameType(str, Enum):
    JOIN = "join"
    LEAVE = "leave"
    CHAT = "chat"
    VOICE_MESSAGE = "voice_message"
    PRIVATE_MESSAGE = "private_message"
    VOICE_MESSAGE_PRIVATE = "voice_message_private"
    USERS = "users"
    HISTORY = "history"
    ERROR = "error"
    UPDATE_CHAT_MODE = "update_chat_mode"
    UPDATE_REGION = "update_region"
    UPDATE_CHATROOM = "update_chatroom"
    UPDATE_AVATAR = "update_avatar"
    ADD_REACTION = "add_reaction"
    REMOVE_REACTION = "remove_reaction"
    UPDATE_REACTIONS = "update_reactions"
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPT = "friend_accept"
    FRIEND_REJECT = "friend_reject"
    FRIEND_REMOVE = "friend_remove"
    FRIEND_COLOR_UPDATE = "friend_color_update"
    FRIEND_LIST_UPDATE = "friend_list_update"


DEFAULT_AVATAR_COLOR = "#6366f1"
DEFAULT_FRIEND_COLOR = "rgb(99, 102, 241)"
SYSTEM_USERNAME = "System"
