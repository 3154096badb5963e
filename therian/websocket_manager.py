from typing import List

from fastapi import WebSocket
from sqlalchemy.ext.asyncio import async_sessionmaker

from therian.auth import TokenIssuer, token_issuer
from therian.channels import ChannelMembership
from therian.config import settings
from therian.connection import WebSocketConnection
from therian.database import AsyncSessionLocal
from therian.dispatcher import MessageDispatcher
from therian.moderation import Moderator
from therian.sessions import SessionRegistry


class ChatHub:
    """Wires the session registry, channel membership, dispatcher and moderation together."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        issuer: TokenIssuer = token_issuer,
        admin_uid: str = settings.ADMIN_UID,
    ):
        self.issuer = issuer
        self.membership = ChannelMembership()
        self.registry = SessionRegistry(issuer, session_factory, self.membership)
        self.dispatcher = MessageDispatcher(self.membership, session_factory)
        self.moderator = Moderator(self.registry, self.dispatcher, session_factory, admin_uid)

    async def connect(self, websocket: WebSocket) -> WebSocketConnection:
        await websocket.accept()
        return WebSocketConnection(websocket)

    async def disconnect(self, connection: WebSocketConnection):
        connection.closed = True
        await self.registry.terminate(connection)

    def get_connected_users(self) -> List[str]:
        return self.registry.online_user_ids()

hub = ChatHub(AsyncSessionLocal)

def get_hub() -> ChatHub:
    return hub
