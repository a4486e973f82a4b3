from typing import List

from regionchat.core.exceptions import (
    RelationshipConflictException,
    RelationshipNotFoundException,
)
from regionchat.core.log_config import logger
from regionchat.database.storage import ChatStorage
from regionchat.models.friendship import Friendship
from regionchat.schemas.chat import DEFAULT_FRIEND_COLOR, FrameType, FriendStatus
from regionchat.schemas.events import friend_frame, friend_list_frame
from regionchat.schemas.friend import FriendResponse
from regionchat.utils.websocket_manager import WebsocketManager


class FriendService:
    """
    Friend request state machine plus per-viewer friend colors.

    A pair of usernames has at most one friendship row. Pending rows move to
    accepted or rejected; accepted rows are deleted on removal, together with
    the color both sides picked for each other.
    """

    def __init__(self, storage: ChatStorage, websocket_manager: WebsocketManager):
        self.storage = storage
        self.websocket_manager = websocket_manager

    async def get_friends(self, username: str) -> List[FriendResponse]:
        friendships = await self.storage.get_friendships(username, FriendStatus.ACCEPTED)
        colors = await self.storage.get_friend_colors(username)
        return [
            FriendResponse(
                username=f.other(username),
                status=FriendStatus.ACCEPTED,
                color=colors.get(f.other(username), DEFAULT_FRIEND_COLOR),
            )
            for f in friendships
        ]

    async def get_friend_requests(self, username: str) -> List[FriendResponse]:
        """Pending requests addressed to ``username``."""
        friendships = await self.storage.get_friendships(username, FriendStatus.PENDING)
        return [
            FriendResponse(username=f.requester, status=FriendStatus.PENDING)
            for f in friendships
            if f.addressee == username
        ]

    async def push_friend_list(self, username: str):
        friends = await self.get_friends(username)
        requests = await self.get_friend_requests(username)
        await self.websocket_manager.send_to_user(username, friend_list_frame(friends, requests))

    async def _get_pending_for(self, addressee: str, requester: str) -> Friendship:
        friendship = await self.storage.get_friendship(requester, addressee)
        if (
            friendship is None
            or friendship.status != FriendStatus.PENDING
            or friendship.addressee != addressee
        ):
            raise RelationshipNotFoundException(
                detail=f"No pending friend request from {requester}"
            )
        return friendship

    async def _get_accepted(self, username: str, friend: str) -> Friendship:
        friendship = await self.storage.get_friendship(username, friend)
        if friendship is None or friendship.status != FriendStatus.ACCEPTED:
            raise RelationshipNotFoundException(detail=f"You are not friends with {friend}")
        return friendship

    async def send_friend_request(self, requester: str, addressee: str):
        if requester == addressee:
            raise RelationshipConflictException(detail="You cannot send a friend request to yourself")

        existing = await self.storage.get_friendship(requester, addressee)
        if existing is not None and existing.status == FriendStatus.ACCEPTED:
            raise RelationshipConflictException(detail=f"You are already friends with {addressee}")
        if existing is not None and existing.status == FriendStatus.PENDING:
            raise RelationshipConflictException(
                detail=f"A friend request between you and {addressee} is already pending"
            )

        await self.storage.save_friend_request(requester, addressee)
        logger.info(f"Friend request {requester} -> {addressee}")

        pending = await self.get_friend_requests(addressee)
        await self.websocket_manager.send_to_user(
            addressee,
            friend_frame(
                FrameType.FRIEND_REQUEST,
                requester,
                FriendStatus.PENDING.value,
                friends=[r.model_dump(mode="json") for r in pending],
            ),
        )
        await self.push_friend_list(requester)

    async def accept_friend_request(self, addressee: str, requester: str):
        await self._get_pending_for(addressee, requester)
        await self.storage.set_friendship_status(requester, addressee, FriendStatus.ACCEPTED)
        await self.storage.seed_friend_colors(requester, addressee, DEFAULT_FRIEND_COLOR)
        logger.info(f"Friend request {requester} -> {addressee} accepted")

        await self.websocket_manager.send_to_user(
            requester,
            friend_frame(FrameType.FRIEND_ACCEPT, addressee, FriendStatus.ACCEPTED.value),
        )
        await self.push_friend_list(requester)
        await self.push_friend_list(addressee)

    async def reject_friend_request(self, addressee: str, requester: str):
        await self._get_pending_for(addressee, requester)
        await self.storage.set_friendship_status(requester, addressee, FriendStatus.REJECTED)
        logger.info(f"Friend request {requester} -> {addressee} rejected")

        await self.websocket_manager.send_to_user(
            requester,
            friend_frame(FrameType.FRIEND_REJECT, addressee, FriendStatus.REJECTED.value),
        )
        await self.push_friend_list(addressee)

    async def remove_friend(self, username: str, friend: str):
        await self._get_accepted(username, friend)
        await self.storage.delete_friendship(username, friend)
        logger.info(f"Friendship {username} <-> {friend} removed")

        await self.websocket_manager.send_to_user(friend, friend_frame(FrameType.FRIEND_REMOVE, username))
        await self.websocket_manager.send_to_user(username, friend_frame(FrameType.FRIEND_REMOVE, friend))
        await self.push_friend_list(username)
        await self.push_friend_list(friend)

    async def update_friend_color(self, viewer: str, friend: str, color: str):
        """Changes how ``viewer`` sees ``friend``; the reverse preference is untouched."""
        await self._get_accepted(viewer, friend)
        await self.storage.set_friend_color(viewer, friend, color)
        await self.websocket_manager.send_to_user(
            viewer,
            friend_frame(FrameType.FRIEND_COLOR_UPDATE, friend, friendColor=color),
        )
