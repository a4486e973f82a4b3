"""Outbound (server to client) frame builders."""
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from regionchat.models.base import utcnow
from regionchat.models.message import ChatMessage
from regionchat.schemas.chat import ChatRoom, FrameType, MessageKind, SYSTEM_USERNAME
from regionchat.schemas.friend import FriendResponse
from regionchat.schemas.message import MessageResponse, isoformat
from regionchat.schemas.user import OnlineUserResponse, OnlineUsersResponse
from regionchat.utils.session_registry import Session

Frame = Dict[str, Any]


def message_payload(message: ChatMessage) -> Frame:
    return MessageResponse.model_validate(message).model_dump(mode="json", by_alias=True)


def message_frame(frame_type: FrameType, message: ChatMessage) -> Frame:
    """A persisted message as a chat-shaped frame; ``kind`` keeps the user/system distinction."""
    payload = message_payload(message)
    payload["kind"] = payload.pop("type")
    return {"type": frame_type.value, **payload}


def history_frame(messages: Iterable[ChatMessage]) -> Frame:
    return {"type": FrameType.HISTORY.value, "messages": [message_payload(m) for m in messages]}


def system_notice(text: str) -> Frame:
    """An unpersisted chat-shaped notice addressed to a single connection."""
    return {
        "type": FrameType.CHAT.value,
        "id": str(uuid4()),
        "username": SYSTEM_USERNAME,
        "text": text,
        "timestamp": isoformat(utcnow()),
        "kind": MessageKind.SYSTEM.value,
    }


def error_frame(text: str) -> Frame:
    return {"type": FrameType.ERROR.value, "text": text, "timestamp": isoformat(utcnow())}


def online_user(session: Session) -> OnlineUserResponse:
    return OnlineUserResponse(
        username=session.username,
        role=session.role,
        chat_mode=session.chat_mode,
        region=session.region,
        chat_room=session.chat_room,
        avatar_color=session.avatar.color,
        avatar_shape=session.avatar.shape,
        avatar_initials=session.avatar.initials,
    )


def online_users(sessions: List[Session], room_counts: Dict[ChatRoom, int]) -> OnlineUsersResponse:
    return OnlineUsersResponse(
        users=[online_user(s) for s in sessions],
        room_counts=room_counts,
    )


def users_frame(sessions: List[Session], room_counts: Dict[ChatRoom, int]) -> Frame:
    snapshot = online_users(sessions, room_counts).model_dump(mode="json", by_alias=True)
    return {"type": FrameType.USERS.value, **snapshot}


def chatroom_frame(chat_room: ChatRoom, room_counts: Dict[ChatRoom, int]) -> Frame:
    return {
        "type": FrameType.UPDATE_CHATROOM.value,
        "chatRoom": chat_room.value,
        "roomCounts": {room.value: count for room, count in room_counts.items()},
    }


def reactions_frame(message_id: str, reactions: Dict[str, List[str]]) -> Frame:
    return {"type": FrameType.UPDATE_REACTIONS.value, "messageId": message_id, "reactions": reactions}


def friend_list_frame(friends: List[FriendResponse], requests: List[FriendResponse]) -> Frame:
    return {
        "type": FrameType.FRIEND_LIST_UPDATE.value,
        "friends": [f.model_dump(mode="json") for f in friends],
        "friendRequests": [r.model_dump(mode="json") for r in requests],
    }


def friend_frame(
    frame_type: FrameType,
    friend_username: str,
    status: Optional[str] = None,
    **extra: Any,
) -> Frame:
    frame = {"type": frame_type.value, "friendUsername": friend_username}
    if status is not None:
        frame["friendStatus"] = status
    frame.update(extra)
    return frame
