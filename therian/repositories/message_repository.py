from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import joinedload

from therian.models.message import RoomMessage, DirectMessage

class MessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_room_message(self, room_id: str, user_id: str, text: str) -> RoomMessage:
        message = RoomMessage(room_id=room_id, user_id=user_id, text=text)
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def create_direct_message(self, chat_id: str, user_id: str, text: str) -> DirectMessage:
        message = DirectMessage(chat_id=chat_id, user_id=user_id, text=text)
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def get_room_history(self, room_id: str, limit: int) -> List[RoomMessage]:
        """Latest ``limit`` messages of a room, oldest first."""
        result = await self.db.execute(
            select(RoomMessage).options(
                joinedload(RoomMessage.author)
            ).where(RoomMessage.room_id == room_id)
            .order_by(RoomMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def get_direct_history(self, chat_id: str, limit: int) -> List[DirectMessage]:
        """Latest ``limit`` messages of a direct channel, oldest first."""
        result = await self.db.execute(
            select(DirectMessage).options(
                joinedload(DirectMessage.author)
            ).where(DirectMessage.chat_id == chat_id)
            .order_by(DirectMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def delete_room_message(self, message_id: int) -> Optional[str]:
        """Delete a room message, returning its room id, or None if nothing was deleted."""
        message = await self.db.get(RoomMessage, message_id)
        if not message:
            return None

        room_id = message.room_id
        await self.db.delete(message)
        await self.db.commit()
        return room_id
