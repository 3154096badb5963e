"""
Validate, persist, then fan out chat messages.

A message is broadcast only after the store has acknowledged it, and it
carries the id and timestamp the store assigned. Sends to one channel are
serialized so that persisted-id order and delivery order agree.
"""

import asyncio
import logging
import weakref
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from therian.channels import Channel, ChannelMembership, canonical_direct_name, split_direct_name
from therian.config import settings
from therian.errors import AuthorizationError, StorageError, ValidationError
from therian.repositories.message_repository import MessageRepository
from therian.schemas.events import (
    MessageRetracted,
    NewDirectMessage,
    NewRoomMessage,
    OutboundEvent,
    ReasonData,
    RetractionData,
    SendFailed,
)
from therian.schemas.message import DirectMessageResponse, RoomMessageResponse
from therian.sessions import Session

logger = logging.getLogger(__name__)


class MessageDispatcher:
    def __init__(
        self,
        membership: ChannelMembership,
        session_factory: async_sessionmaker,
        max_length: int = settings.MESSAGE_MAX_LENGTH,
    ):
        self._membership = membership
        self._session_factory = session_factory
        self.max_length = max_length
        self._locks: "weakref.WeakValueDictionary[Channel, asyncio.Lock]" = weakref.WeakValueDictionary()

    def clean_text(self, text) -> str:
        if not isinstance(text, str) or len(text) > self.max_length:
            raise ValidationError(f"Message must be at most {self.max_length} characters")
        text = text.strip()
        if not text:
            raise ValidationError("Message is empty")
        return text

    def _require_room_member(self, session: Session, channel: Channel):
        if session.closed or not self._membership.is_member(session.connection, channel):
            raise AuthorizationError(f"{session.user_id} has not joined room {channel.name!r}")

    def _channel_lock(self, channel: Channel) -> asyncio.Lock:
        lock = self._locks.get(channel)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[channel] = lock
        return lock

    async def send_room_message(self, session: Session, room_id: str, text: str) -> RoomMessageResponse:
        text = self.clean_text(text)
        channel = Channel.room(room_id)
        self._require_room_member(session, channel)

        lock = self._channel_lock(channel)
        async with lock:
            # the sender may have left or been evicted while waiting
            self._require_room_member(session, channel)
            try:
                async with self._session_factory() as db:
                    message = await MessageRepository(db).create_room_message(room_id, session.user_id, text)
            except SQLAlchemyError as e:
                await self._report_failure(session, channel, e)
                raise StorageError("Message could not be saved") from e

            payload = RoomMessageResponse(
                id=message.id,
                room_id=message.room_id,
                user_id=session.user_id,
                name=session.name,
                photo=session.photo,
                premium=session.premium,
                text=message.text,
                created_at=message.created_at,
            )
            await self.broadcast(channel, NewRoomMessage(data=payload))
        return payload

    async def send_direct_message(self, session: Session, chat_id: str, text: str) -> DirectMessageResponse:
        text = self.clean_text(text)
        # membership comes from the channel name, not from the current join
        if session.user_id not in split_direct_name(chat_id):
            raise AuthorizationError(f"{session.user_id} is not a participant of {chat_id!r}")
        chat_id = canonical_direct_name(chat_id)
        channel = Channel.direct(chat_id)

        lock = self._channel_lock(channel)
        async with lock:
            if session.closed:
                raise AuthorizationError(f"Session of {session.user_id} is closed")
            try:
                async with self._session_factory() as db:
                    message = await MessageRepository(db).create_direct_message(chat_id, session.user_id, text)
            except SQLAlchemyError as e:
                await self._report_failure(session, channel, e)
                raise StorageError("Message could not be saved") from e

            payload = DirectMessageResponse(
                id=message.id,
                chat_id=message.chat_id,
                user_id=session.user_id,
                name=session.name,
                photo=session.photo,
                premium=session.premium,
                text=message.text,
                created_at=message.created_at,
            )
            await self.broadcast(channel, NewDirectMessage(data=payload))
        return payload

    async def retract_room_message(self, message_id: int, room_id: str) -> int:
        channel = Channel.room(room_id)
        async with self._channel_lock(channel):
            event = MessageRetracted(data=RetractionData(message_id=message_id, room_id=room_id))
            return await self.broadcast(channel, event)

    async def broadcast(self, channel: Channel, event: OutboundEvent) -> int:
        """Send ``event`` to the channel's members as of this call."""
        members = self._membership.members_of(channel)
        if members:
            await asyncio.gather(*(connection.send_event(event) for connection in members))
        return len(members)

    async def _report_failure(self, session: Session, channel: Channel, error: Exception):
        logger.warning(f"Persisting message from {session.user_id} to {channel} failed: {error}")
        await session.connection.send_event(SendFailed(data=ReasonData(reason="Message could not be saved")))
