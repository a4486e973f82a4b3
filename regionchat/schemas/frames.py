"""Inbound WebSocket frames.

Every client frame is decoded exactly once at the transport boundary into one
member of the ``ClientFrame`` union, discriminated on ``type``. Field names are
camelCase on the wire and snake_case in Python.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter

from regionchat.schemas.chat import AvatarShape, ChatMode, ChatRegion, ChatRoom


class _Frame(BaseModel):
    class Config:
        populate_by_name = True
        extra = "ignore"


class JoinFrame(_Frame):
    type: Literal["join"]
    username: str = Field(..., min_length=1, max_length=50)

class LeaveFrame(_Frame):
    type: Literal["leave"]

class ChatFrame(_Frame):
    type: Literal["chat"]
    text: str = Field(..., min_length=1, max_length=2000)

class VoiceMessageFrame(_Frame):
    type: Literal["voice_message"]
    text: str = Field(..., min_length=1, max_length=2000)
    voice_data: str = Field(..., alias="voiceData")
    voice_duration: int = Field(..., alias="voiceDuration", ge=0)

class PrivateMessageFrame(_Frame):
    type: Literal["private_message"]
    text: str = Field(..., min_length=1, max_length=2000)
    recipient: str = Field(..., min_length=1)

class PrivateVoiceMessageFrame(_Frame):
    type: Literal["voice_message_private"]
    text: str = Field(..., min_length=1, max_length=2000)
    recipient: str = Field(..., min_length=1)
    voice_data: str = Field(..., alias="voiceData")
    voice_duration: int = Field(..., alias="voiceDuration", ge=0)

class UpdateChatModeFrame(_Frame):
    type: Literal["update_chat_mode"]
    chat_mode: ChatMode = Field(..., validation_alias=AliasChoices("chatMode", "mode", "chat_mode"))

class UpdateRegionFrame(_Frame):
    type: Literal["update_region"]
    region: ChatRegion

class UpdateChatroomFrame(_Frame):
    type: Literal["update_chatroom"]
    chat_room: ChatRoom = Field(..., validation_alias=AliasChoices("chatRoom", "room", "chat_room"))

class UpdateAvatarFrame(_Frame):
    type: Literal["update_avatar"]
    avatar_color: Optional[str] = Field(None, alias="avatarColor", max_length=32)
    avatar_shape: Optional[AvatarShape] = Field(None, alias="avatarShape")
    avatar_initials: Optional[str] = Field(None, alias="avatarInitials")

class AddReactionFrame(_Frame):
    type: Literal["add_reaction"]
    message_id: str = Field(..., alias="messageId")
    emoji: str = Field(..., min_length=1, max_length=32)

class RemoveReactionFrame(_Frame):
    type: Literal["remove_reaction"]
    message_id: str = Field(..., alias="messageId")
    emoji: str = Field(..., min_length=1, max_length=32)

class FriendRequestFrame(_Frame):
    type: Literal["friend_request"]
    friend_username: str = Field(..., alias="friendUsername", min_length=1)

class FriendAcceptFrame(_Frame):
    type: Literal["friend_accept"]
    friend_username: str = Field(..., alias="friendUsername", min_length=1)

class FriendRejectFrame(_Frame):
    type: Literal["friend_reject"]
    friend_username: str = Field(..., alias="friendUsername", min_length=1)

class FriendRemoveFrame(_Frame):
    type: Literal["friend_remove"]
    friend_username: str = Field(..., alias="friendUsername", min_length=1)

class FriendColorUpdateFrame(_Frame):
    type: Literal["friend_color_update"]
    friend_username: str = Field(..., alias="friendUsername", min_length=1)
    friend_color: str = Field(..., alias="friendColor", min_length=1, max_length=64)


ClientFrame = Annotated[
    Union[
        JoinFrame,
        LeaveFrame,
        ChatFrame,
        VoiceMessageFrame,
        PrivateMessageFrame,
        PrivateVoiceMessageFrame,
        UpdateChatModeFrame,
        UpdateRegionFrame,
        UpdateChatroomFrame,
        UpdateAvatarFrame,
        AddReactionFrame,
        RemoveReactionFrame,
        FriendRequestFrame,
        FriendAcceptFrame,
        FriendRejectFrame,
        FriendRemoveFrame,
        FriendColorUpdateFrame,
    ],
    Field(discriminator="type"),
]

client_frame_adapter = TypeAdapter(ClientFrame)


def parse_client_frame(raw: str) -> ClientFrame:
    """Decode one raw text frame. Raises ``pydantic.ValidationError`` on bad input."""
    return client_frame_adapter.validate_json(raw)
