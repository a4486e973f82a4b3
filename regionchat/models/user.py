from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum

from regionchat.models.base import Base, utcnow
from regionchat.schemas.chat import AvatarShape, UserRole, DEFAULT_AVATAR_COLOR


class User(Base):
    """Registered account."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone_number = Column(String(32), nullable=True)
    notify_friend_online = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


class ChatUser(Base):
    """Presence and time-online statistics for a chat participant."""
    __tablename__ = "chat_users"

    username = Column(String(50), unique=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)

    avatar_color = Column(String(32), default=DEFAULT_AVATAR_COLOR)
    avatar_shape = Column(Enum(AvatarShape), default=AvatarShape.CIRCLE)
    avatar_initials = Column(String(2), nullable=True)

    join_time = Column(DateTime, default=utcnow)
    last_active = Column(DateTime, default=utcnow)
    total_time_online = Column(Integer, default=0, nullable=False)  # seconds

    def __repr__(self):
        return f"<ChatUser(username='{self.username}', active={self.is_active})>"
