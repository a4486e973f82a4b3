from sqlalchemy import Column, Text, DateTime, Enum, Integer, String, Boolean, JSON

from .base import Base, utcnow
from regionchat.schemas.chat import MessageKind


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    username = Column(String(50), nullable=False, index=True)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    kind = Column(Enum(MessageKind), default=MessageKind.USER, nullable=False)

    # Private message information; recipient is set iff is_private
    recipient = Column(String(50), nullable=True, index=True)
    is_private = Column(Boolean, default=False, nullable=False)

    is_voice_message = Column(Boolean, default=False, nullable=False)
    voice_data = Column(Text, nullable=True)  # base64 audio
    voice_duration = Column(Integer, nullable=True)  # seconds

    # {emoji: [username, ...]}; replaced wholesale on every change
    reactions = Column(JSON, default=dict, nullable=False)

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, username={self.username}, text='{self.text[:50]}...')>"
