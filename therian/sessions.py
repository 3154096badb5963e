"""
Registry of authenticated live connections.

The registry is the single source of truth for who is online and as whom.
It is keyed by connection id, with a reverse index by identity id so that
every session of one identity can be found (and evicted) at once.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from therian.auth import TokenIssuer
from therian.channels import ChannelMembership
from therian.connection import Connection
from therian.errors import AuthError, AuthFailure, StorageError
from therian.repositories.user_repository import UserRepository
from therian.schemas.events import BannedNotice
from therian.schemas.user import PublicUserResponse

logger = logging.getLogger(__name__)

# WebSocket policy violation
EVICT_CLOSE_CODE = 1008


@dataclass(eq=False)
class Session:
    """Live binding of one connection to one identity, with a profile snapshot."""

    connection: Connection
    user_id: str
    name: str
    photo: Optional[str]
    premium: bool
    closed: bool = False

    def profile(self) -> PublicUserResponse:
        return PublicUserResponse(id=self.user_id, name=self.name, photo=self.photo, premium=self.premium)


class SessionRegistry:
    def __init__(self, issuer: TokenIssuer, session_factory: async_sessionmaker, membership: ChannelMembership):
        self._issuer = issuer
        self._session_factory = session_factory
        self._membership = membership
        self._sessions: Dict[str, Session] = {}
        self._by_identity: Dict[str, Dict[str, Session]] = {}
        # bumped by every eviction; an authentication that straddles one is refused
        self._evictions: Dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    async def authenticate(self, connection: Connection, token: str) -> Session:
        user_id = self._issuer.verify(token)
        generation = self._evictions.get(user_id, 0)

        try:
            async with self._session_factory() as db:
                user = await UserRepository(db).get_by_id(user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load user {user_id}") from e

        if user is None:
            raise AuthError(AuthFailure.UNKNOWN_IDENTITY, "User not found")
        if user.banned:
            raise AuthError(AuthFailure.BANNED, "User is banned")

        session = Session(
            connection=connection,
            user_id=user.id,
            name=user.name,
            photo=user.photo,
            premium=bool(user.premium),
        )
        async with self._lock:
            if self._evictions.get(user.id, 0) != generation:
                raise AuthError(AuthFailure.BANNED, "User is banned")
            previous = self._sessions.get(connection.id)
            if previous is not None:
                self._unindex(previous)
            self._sessions[connection.id] = session
            self._by_identity.setdefault(user.id, {})[connection.id] = session

        logger.info(f"Connection {connection.id} authenticated as {user.id}")
        self._touch_last_seen(user.id)
        return session

    def lookup(self, connection: Connection) -> Optional[Session]:
        return self._sessions.get(connection.id)

    def sessions_for(self, user_id: str) -> List[Session]:
        return list(self._by_identity.get(user_id, {}).values())

    def online_user_ids(self) -> List[str]:
        return list(self._by_identity)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._by_identity

    async def terminate(self, connection: Connection) -> bool:
        """Release every piece of state held for ``connection``.

        Safe to call any number of times, including concurrently from a
        disconnect and an eviction; only the first call reports True.
        """
        async with self._lock:
            session = self._sessions.pop(connection.id, None)
            if session is not None:
                session.closed = True
                self._unindex(session)

        await self._membership.leave(connection)

        if session is None:
            return False
        self._touch_last_seen(session.user_id)
        return True

    async def evict(self, user_id: str) -> int:
        """Notify and forcibly disconnect every live session of ``user_id``."""
        async with self._lock:
            self._evictions[user_id] = self._evictions.get(user_id, 0) + 1
            sessions = list(self._by_identity.get(user_id, {}).values())

        for session in sessions:
            try:
                await session.connection.send_event(BannedNotice())
            finally:
                try:
                    await self.terminate(session.connection)
                finally:
                    await self._close_quietly(session.connection)

        if sessions:
            logger.info(f"Evicted {len(sessions)} session(s) of {user_id}")
        return len(sessions)

    async def _close_quietly(self, connection: Connection):
        try:
            await connection.close(code=EVICT_CLOSE_CODE, reason="banned")
        except Exception as e:
            logger.warning(f"Could not close evicted connection {connection.id}: {e}")

    def _unindex(self, session: Session):
        sessions = self._by_identity.get(session.user_id)
        if sessions is None:
            return
        if sessions.get(session.connection.id) is session:
            del sessions[session.connection.id]
        if not sessions:
            del self._by_identity[session.user_id]

    def _touch_last_seen(self, user_id: str):
        task = asyncio.create_task(self._update_last_seen(user_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _update_last_seen(self, user_id: str):
        try:
            async with self._session_factory() as db:
                await UserRepository(db).touch_last_seen(user_id)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Could not update last_seen for {user_id}: {e}")

    async def wait_idle(self):
        """Wait for pending last-seen updates."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
