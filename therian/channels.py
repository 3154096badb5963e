"""
Channel membership for live connections.

A channel is either a room (open to anyone) or a direct channel between two
identities, named ``<uid>_<uid>`` with the ids in sorted order. Channels are
implicit: one exists only while it has at least one member connection, and a
connection belongs to at most one channel at a time.

Mutations are serialized by a single lock. Reads (``members_of``,
``channel_of``) take a snapshot without awaiting, so on the event loop they
always see a state between two complete mutations.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from therian.connection import Connection
from therian.errors import ValidationError

if TYPE_CHECKING:
    from therian.sessions import Session

logger = logging.getLogger(__name__)

DIRECT_SEPARATOR = "_"


class ChannelKind(str, Enum):
    ROOM = "room"
    DIRECT = "dm"


@dataclass(frozen=True)
class Channel:
    kind: ChannelKind
    name: str

    @classmethod
    def room(cls, room_id: str) -> "Channel":
        return cls(ChannelKind.ROOM, room_id)

    @classmethod
    def direct(cls, chat_id: str) -> "Channel":
        return cls(ChannelKind.DIRECT, canonical_direct_name(chat_id))

    def __str__(self):
        return f"{self.kind.value}_{self.name}"


def split_direct_name(chat_id: str) -> Tuple[str, str]:
    """Decompose a direct channel name into its two participant ids."""
    if not isinstance(chat_id, str):
        raise ValidationError("Direct channel name must be a string")
    parts = chat_id.split(DIRECT_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise ValidationError(f"Malformed direct channel name: {chat_id!r}")
    if parts[0] == parts[1]:
        raise ValidationError("Direct channel needs two distinct identities")
    return parts[0], parts[1]


def direct_channel_name(first: str, second: str) -> str:
    return DIRECT_SEPARATOR.join(sorted((first, second)))


def canonical_direct_name(chat_id: str) -> str:
    return direct_channel_name(*split_direct_name(chat_id))


def is_direct_participant(chat_id: str, user_id: str) -> bool:
    try:
        return user_id in split_direct_name(chat_id)
    except ValidationError:
        return False


class ChannelMembership:
    def __init__(self):
        self._members: Dict[Channel, Dict[str, Connection]] = {}
        self._current: Dict[str, Channel] = {}
        self._lock = asyncio.Lock()

    async def join_room(self, session: "Session", room_id: str) -> Optional[Channel]:
        return await self._join(session, Channel.room(room_id))

    async def join_direct(self, session: "Session", chat_id: str) -> Optional[Channel]:
        """Join a direct channel the session's identity participates in.

        Unauthorized or malformed names leave membership unchanged and
        return None.
        """
        if not is_direct_participant(chat_id, session.user_id):
            logger.debug(f"Refused direct join of {chat_id!r} by {session.user_id}")
            return None
        return await self._join(session, Channel.direct(chat_id))

    async def _join(self, session: "Session", channel: Channel) -> Optional[Channel]:
        async with self._lock:
            # terminated while waiting for the lock
            if session.closed:
                return None
            connection = session.connection
            self._detach(connection.id)
            self._members.setdefault(channel, {})[connection.id] = connection
            self._current[connection.id] = channel
        return channel

    async def leave(self, connection: Connection) -> Optional[Channel]:
        """Drop the connection from its channel, if any. Idempotent."""
        async with self._lock:
            return self._detach(connection.id)

    def _detach(self, connection_id: str) -> Optional[Channel]:
        channel = self._current.pop(connection_id, None)
        if channel is None:
            return None
        members = self._members.get(channel)
        if members is not None:
            members.pop(connection_id, None)
            if not members:
                del self._members[channel]
        return channel

    def channel_of(self, connection: Connection) -> Optional[Channel]:
        return self._current.get(connection.id)

    def is_member(self, connection: Connection, channel: Channel) -> bool:
        return self._current.get(connection.id) == channel

    def members_of(self, channel: Channel) -> List[Connection]:
        return list(self._members.get(channel, {}).values())

    def channels(self) -> List[Channel]:
        return list(self._members)
