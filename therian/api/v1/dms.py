from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from therian.auth import get_current_user
from therian.channels import direct_channel_name, split_direct_name
from therian.config import settings
from therian.database import get_db
from therian.errors import AuthorizationError
from therian.models.user import User
from therian.repositories.message_repository import MessageRepository
from therian.schemas.message import DirectMessageResponse

router = APIRouter()

@router.get("/{chat_id}/messages", response_model=List[DirectMessageResponse])
async def get_direct_history(
    chat_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Latest messages of a direct channel; only its two participants may read it."""
    participants = split_direct_name(chat_id)
    if current_user.id not in participants:
        raise AuthorizationError("Access denied")

    messages = await MessageRepository(db).get_direct_history(
        direct_channel_name(*participants), settings.HISTORY_LIMIT
    )

    return [{
        "id": msg.id,
        "chat_id": msg.chat_id,
        "user_id": msg.user_id,
        "name": msg.author.name,
        "photo": msg.author.photo,
        "premium": msg.author.premium,
        "text": msg.text,
        "created_at": msg.created_at
    } for msg in messages]
