import asyncio
from typing import Any, Dict, Iterable, Optional

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from regionchat.core.log_config import logger
from regionchat.schemas.chat import FrameType
from regionchat.services.router import Delivery, ScopeRouter
from regionchat.utils.session_registry import Session, SessionRegistry


class WebsocketManager:
    """
    Pushes JSON frames to live connections. Connections are addressed either
    directly by handle, by username, or through the router's delivery sets.
    """

    def __init__(self, registry: SessionRegistry, router: Optional[ScopeRouter] = None):
        self.registry = registry
        self.router = router or ScopeRouter(registry)

    async def connect(self, websocket: WebSocket):
        """Accepts a new WebSocket connection; it stays anonymous until it joins."""
        await websocket.accept()
        logger.info(f"Connection {id(websocket):x} accepted.")

    async def send(self, handle: Any, frame: Dict[str, Any]) -> bool:
        """Sends one frame, returning False instead of raising if the peer is gone."""
        if getattr(handle, "application_state", None) != WebSocketState.CONNECTED:
            return False
        try:
            await handle.send_json(frame)
            return True
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Dropping frame for closed connection {id(handle):x}: {e}")
            return False

    async def deliver(self, sessions: Iterable[Session], frame: Dict[str, Any]):
        """Sends the same frame to every given session concurrently."""
        # Materialize first: a disconnect during the awaits below mutates the registry
        targets = [session.handle for session in sessions]
        if targets:
            await asyncio.gather(*(self.send(handle, frame) for handle in targets))

    async def send_to_user(self, username: str, frame: Dict[str, Any]):
        """Sends a frame to every live session of one username, if any."""
        await self.deliver(self.registry.find_by_username(username), frame)

    async def publish(
        self,
        frame: Dict[str, Any],
        sender: Optional[Session] = None,
        recipient: Optional[str] = None,
    ) -> Delivery:
        """Routes a frame by its ``type`` and pushes it to the resulting delivery set."""
        delivery = self.router.route(FrameType(frame["type"]), sender=sender, recipient=recipient)
        await self.deliver(delivery.targets, frame)
        return delivery
