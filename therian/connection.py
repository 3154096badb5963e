import logging
import uuid
from typing import Protocol

from fastapi import WebSocket, WebSocketDisconnect

from therian.schemas.events import OutboundEvent

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Transport handle for one live client connection."""

    id: str

    async def send_event(self, event: OutboundEvent) -> bool:
        ...

    async def close(self, code: int = 1000, reason: str = "") -> None:
        ...


class WebSocketConnection:
    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.id = uuid.uuid4().hex
        self.closed = False

    async def send_event(self, event: OutboundEvent) -> bool:
        """Deliver one event; a dead socket is reported, not raised."""
        if self.closed:
            return False
        try:
            await self.websocket.send_text(event.model_dump_json())
            return True
        except Exception as e:
            logger.debug(f"Send to connection {self.id} failed: {e}")
            return False

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self.websocket.close(code=code, reason=reason)
        except (RuntimeError, WebSocketDisconnect, OSError) as e:
            # already closed by the peer
            logger.debug(f"Close of connection {self.id} failed: {e}")

    def __repr__(self):
        return f"<WebSocketConnection {self.id}>"
