"""Delivery-set computation for outbound events.

Three classes of event exist:

* private content goes to the named recipient's sessions plus an echo to the sender;
* public content (chat and voice) follows the sender's scope: a global-scope
  sender reaches every global-scope session, a local-scope sender reaches every
  session in the same region whatever its scope;
* control events (user lists, room counts, join/leave notices, reaction
  updates) reach every session.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from regionchat.schemas.chat import FrameType
from regionchat.utils.session_registry import Session, SessionRegistry


class DeliveryClass(str, Enum):
    PRIVATE = "private"
    CONTENT = "content"
    CONTROL = "control"


DELIVERY_CLASSES = {
    FrameType.PRIVATE_MESSAGE: DeliveryClass.PRIVATE,
    FrameType.VOICE_MESSAGE_PRIVATE: DeliveryClass.PRIVATE,
    FrameType.CHAT: DeliveryClass.CONTENT,
    FrameType.VOICE_MESSAGE: DeliveryClass.CONTENT,
    FrameType.USERS: DeliveryClass.CONTROL,
    FrameType.JOIN: DeliveryClass.CONTROL,
    FrameType.LEAVE: DeliveryClass.CONTROL,
    FrameType.UPDATE_CHATROOM: DeliveryClass.CONTROL,
    FrameType.UPDATE_REACTIONS: DeliveryClass.CONTROL,
}


@dataclass
class Delivery:
    targets: List[Session] = field(default_factory=list)
    recipient_offline: bool = False


class ScopeRouter:
    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    def route(
        self,
        frame_type: FrameType,
        sender: Optional[Session] = None,
        recipient: Optional[str] = None,
    ) -> Delivery:
        delivery_class = DELIVERY_CLASSES.get(frame_type)
        if delivery_class is None:
            raise ValueError(f"Frame type '{frame_type.value}' is not routable")

        if delivery_class == DeliveryClass.PRIVATE:
            return self._route_private(sender, recipient)
        if delivery_class == DeliveryClass.CONTENT:
            return Delivery(targets=self._route_content(sender))
        return Delivery(targets=self.registry.all())

    def _route_private(self, sender: Session, recipient: str) -> Delivery:
        if sender is None or not recipient:
            raise ValueError("Private events need both a sender and a recipient")
        matches = self.registry.find_by_username(recipient)
        targets = [s for s in matches if s is not sender]
        targets.append(sender)
        return Delivery(targets=targets, recipient_offline=not matches)

    def _route_content(self, sender: Session) -> List[Session]:
        if sender is None:
            raise ValueError("Content events need a sender")
        sessions = self.registry.all()
        if sender.is_local:
            return [s for s in sessions if s.region == sender.region]
        return [s for s in sessions if not s.is_local]
