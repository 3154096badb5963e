from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from therian.auth import get_current_user
from therian.config import settings
from therian.database import get_db
from therian.models.user import User
from therian.repositories.message_repository import MessageRepository
from therian.schemas.message import RoomMessageResponse

router = APIRouter()

@router.get("/{room_id}/messages", response_model=List[RoomMessageResponse])
async def get_room_history(
    room_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Latest room messages, oldest first."""
    messages = await MessageRepository(db).get_room_history(room_id, settings.HISTORY_LIMIT)

    return [{
        "id": msg.id,
        "room_id": msg.room_id,
        "user_id": msg.user_id,
        "name": msg.author.name,
        "photo": msg.author.photo,
        "premium": msg.author.premium,
        "text": msg.text,
        "created_at": msg.created_at
    } for msg in messages]
