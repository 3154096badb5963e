import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from therian.dispatcher import MessageDispatcher
from therian.errors import AuthError, AuthFailure, StorageError
from therian.repositories.message_repository import MessageRepository
from therian.repositories.user_repository import UserRepository
from therian.sessions import SessionRegistry

logger = logging.getLogger(__name__)


class Moderator:
    """Administrator actions whose effects must also reach live sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        dispatcher: MessageDispatcher,
        session_factory: async_sessionmaker,
        admin_uid: str,
    ):
        self._registry = registry
        self._dispatcher = dispatcher
        self._session_factory = session_factory
        self.admin_uid = admin_uid

    def is_admin(self, user_id: str) -> bool:
        return bool(self.admin_uid) and user_id == self.admin_uid

    def require_admin(self, user_id: str):
        if not self.is_admin(user_id):
            raise AuthError(AuthFailure.FORBIDDEN, "Administrator only")

    async def ban(self, admin_id: str, target_id: str) -> bool:
        """Set the ban flag, then evict every live session of the target.

        Returns False when the target identity does not exist.
        """
        self.require_admin(admin_id)
        if not await self._set_banned(target_id, True):
            return False
        evicted = await self._registry.evict(target_id)
        logger.info(f"{admin_id} banned {target_id} ({evicted} live session(s) evicted)")
        return True

    async def unban(self, admin_id: str, target_id: str) -> bool:
        self.require_admin(admin_id)
        found = await self._set_banned(target_id, False)
        if found:
            logger.info(f"{admin_id} unbanned {target_id}")
        return found

    async def delete_room_message(self, admin_id: str, message_id: int) -> bool:
        self.require_admin(admin_id)
        try:
            async with self._session_factory() as db:
                room_id = await MessageRepository(db).delete_room_message(message_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not delete message {message_id}") from e

        if room_id is None:
            return False
        await self._dispatcher.retract_room_message(message_id, room_id)
        logger.info(f"{admin_id} deleted message {message_id} from room {room_id!r}")
        return True

    async def _set_banned(self, target_id: str, banned: bool) -> bool:
        try:
            async with self._session_factory() as db:
                return await UserRepository(db).set_banned(target_id, banned)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not update ban flag of {target_id}") from e
