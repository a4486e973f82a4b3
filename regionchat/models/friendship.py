from sqlalchemy import Column, DateTime, Enum, String, UniqueConstraint

from .base import Base, utcnow
from regionchat.schemas.chat import FriendStatus


def pair_key(first: str, second: str) -> tuple[str, str]:
    """Order-independent key for a pair of usernames."""
    return (first, second) if first <= second else (second, first)


class Friendship(Base):
    """Directed friendship row; at most one per unordered pair of usernames."""
    __tablename__ = "friendships"
    __table_args__ = (UniqueConstraint("user_low", "user_high", name="uq_friendship_pair"),)

    requester = Column(String(50), nullable=False, index=True)
    addressee = Column(String(50), nullable=False, index=True)
    user_low = Column(String(50), nullable=False)
    user_high = Column(String(50), nullable=False)
    status = Column(Enum(FriendStatus), default=FriendStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def other(self, username: str) -> str:
        return self.addressee if username == self.requester else self.requester

    def __repr__(self):
        return f"<Friendship({self.requester} -> {self.addressee}, {self.status})>"


class FriendColor(Base):
    """Color one user picked for displaying one friend."""
    __tablename__ = "friend_colors"
    __table_args__ = (UniqueConstraint("owner", "friend", name="uq_friend_color"),)

    owner = Column(String(50), nullable=False, index=True)
    friend = Column(String(50), nullable=False)
    color = Column(String(64), nullable=False)
