from typing import Any, Optional

from regionchat.core.exceptions import ContentFilteredException, RecipientOfflineException
from regionchat.core.log_config import logger
from regionchat.database.storage import ChatStorage
from regionchat.models.message import ChatMessage
from regionchat.schemas.chat import FrameType, MessageKind
from regionchat.schemas.events import error_frame, message_frame
from regionchat.services.moderation import moderate
from regionchat.services.presence_service import PresenceService
from regionchat.utils.session_registry import Session, SessionRegistry
from regionchat.utils.websocket_manager import WebsocketManager

PUBLIC_FILTERED_NOTICE = ContentFilteredException().detail
PRIVATE_FILTERED_NOTICE = (
    "Your private message contained inappropriate language and has been filtered."
)


class ChatService:
    """
    Message pipeline for public and private, text and voice messages.

    Every message goes through the same steps: resolve the sender's session,
    moderate the text, record activity, persist, then route and push. A storage
    failure raises before anything is pushed, so no recipient ever sees a
    message that was not stored.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        websocket_manager: WebsocketManager,
        storage: ChatStorage,
        presence_service: PresenceService,
    ):
        self.registry = registry
        self.websocket_manager = websocket_manager
        self.storage = storage
        self.presence_service = presence_service

    async def _moderate(self, handle: Any, text: str, notice: str) -> str:
        result = moderate(text)
        if result.flagged:
            logger.warning(f"Filtered message from connection {id(handle):x}")
            await self.websocket_manager.send(handle, error_frame(notice))
        return result.cleaned

    async def _process(
        self,
        handle: Any,
        frame_type: FrameType,
        text: str,
        recipient: Optional[str] = None,
        voice_data: Optional[str] = None,
        voice_duration: Optional[int] = None,
    ) -> Optional[ChatMessage]:
        session: Optional[Session] = self.registry.get(handle)
        if session is None:
            logger.debug(f"Ignoring {frame_type.value} from connection that has not joined")
            return None

        notice = PRIVATE_FILTERED_NOTICE if recipient is not None else PUBLIC_FILTERED_NOTICE
        text = await self._moderate(handle, text, notice)

        await self.presence_service.record_activity(session.username)
        message = await self.storage.add_message(
            session.username,
            text,
            MessageKind.USER,
            recipient=recipient,
            voice_data=voice_data,
            voice_duration=voice_duration,
        )

        delivery = await self.websocket_manager.publish(
            message_frame(frame_type, message), sender=session, recipient=recipient
        )
        if delivery.recipient_offline:
            await self.websocket_manager.send(
                handle, error_frame(RecipientOfflineException(recipient).detail)
            )
        return message

    async def handle_chat(self, handle: Any, text: str) -> Optional[ChatMessage]:
        return await self._process(handle, FrameType.CHAT, text)

    async def handle_voice(
        self, handle: Any, text: str, voice_data: str, voice_duration: int
    ) -> Optional[ChatMessage]:
        """Only the caption is moderated; the audio payload passes through untouched."""
        return await self._process(
            handle,
            FrameType.VOICE_MESSAGE,
            text,
            voice_data=voice_data,
            voice_duration=voice_duration,
        )

    async def handle_private(self, handle: Any, text: str, recipient: str) -> Optional[ChatMessage]:
        return await self._process(handle, FrameType.PRIVATE_MESSAGE, text, recipient=recipient)

    async def handle_private_voice(
        self, handle: Any, text: str, recipient: str, voice_data: str, voice_duration: int
    ) -> Optional[ChatMessage]:
        return await self._process(
            handle,
            FrameType.VOICE_MESSAGE_PRIVATE,
            text,
            recipient=recipient,
            voice_data=voice_data,
            voice_duration=voice_duration,
        )

    async def get_messages(self, limit: int):
        return await self.storage.get_messages(limit)

    async def get_private_messages(self, username: str, recipient: str, limit: int):
        return await self.storage.get_private_messages(username, recipient, limit)
