from typing import Optional

from pydantic import BaseModel

from regionchat.schemas.chat import FriendStatus


class FriendResponse(BaseModel):
    """A relationship as seen by one viewer."""
    username: str
    status: FriendStatus
    color: Optional[str] = None
