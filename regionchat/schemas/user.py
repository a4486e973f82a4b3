from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from regionchat.schemas.chat import (
    AvatarShape,
    ChatMode,
    ChatRegion,
    ChatRoom,
    UserRole,
)
from regionchat.schemas.message import isoformat


class OnlineUserResponse(BaseModel):
    """One entry of the live ``users`` snapshot."""
    username: str
    is_active: bool = Field(True, serialization_alias="isActive")
    role: UserRole
    chat_mode: ChatMode = Field(..., serialization_alias="chatMode")
    region: ChatRegion
    chat_room: ChatRoom = Field(..., serialization_alias="chatRoom")
    avatar_color: str = Field(..., serialization_alias="avatarColor")
    avatar_shape: AvatarShape = Field(..., serialization_alias="avatarShape")
    avatar_initials: str = Field(..., serialization_alias="avatarInitials")


class OnlineUsersResponse(BaseModel):
    users: List[OnlineUserResponse]
    room_counts: Dict[ChatRoom, int] = Field(..., serialization_alias="roomCounts")


class LeaderboardEntry(BaseModel):
    id: UUID
    username: str
    is_active: bool = Field(..., serialization_alias="isActive")
    role: UserRole
    join_time: Optional[datetime] = Field(None, serialization_alias="joinTime")
    last_active: Optional[datetime] = Field(None, serialization_alias="lastActive")
    total_time_online: int = Field(0, serialization_alias="totalTimeOnline")

    class Config:
        from_attributes = True

    @field_serializer("join_time", "last_active")
    def _serialize_times(self, value: Optional[datetime]) -> Optional[str]:
        return isoformat(value) if value else None


class UserSettings(BaseModel):
    phone_number: Optional[str] = Field(
        None, alias="phoneNumber", max_length=32, pattern=r"^\+?[0-9 ()-]{0,31}$"
    )
    notify_friend_online: bool = Field(False, alias="notifyFriendOnline")

    class Config:
        populate_by_name = True

class SmsTestRequest(BaseModel):
    phone_number: Optional[str] = Field(None, alias="phoneNumber", max_length=32)

    class Config:
        populate_by_name = True
