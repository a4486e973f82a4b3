from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from regionchat.schemas.chat import MessageKind


def isoformat(value: datetime) -> str:
    """Render a stored (naive UTC) timestamp as an explicit UTC ISO-8601 string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class MessageResponse(BaseModel):
    id: UUID
    username: str
    text: str
    timestamp: datetime
    type: MessageKind = Field(..., validation_alias="kind")
    recipient: Optional[str] = None
    is_private: bool = Field(False, serialization_alias="isPrivate")
    is_voice_message: bool = Field(False, serialization_alias="isVoiceMessage")
    voice_data: Optional[str] = Field(None, serialization_alias="voiceData")
    voice_duration: Optional[int] = Field(None, serialization_alias="voiceDuration")
    reactions: Dict[str, List[str]] = {}

    class Config:
        from_attributes = True
        populate_by_name = True

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return isoformat(value)


class ReactionRequest(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=32)


class ReactionsResponse(BaseModel):
    message_id: UUID = Field(..., serialization_alias="messageId")
    reactions: Dict[str, List[str]]
