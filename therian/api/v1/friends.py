from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from therian.auth import get_current_user
from therian.database import get_db
from therian.errors import ValidationError
from therian.models.user import User
from therian.repositories.friend_repository import FriendRepository
from therian.repositories.user_repository import UserRepository
from therian.schemas.user import FriendResponse

router = APIRouter()

@router.get("", response_model=List[FriendResponse])
async def list_friends(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await FriendRepository(db).list_friends(current_user.id)

@router.post("/{friend_id}")
async def add_friend(
    friend_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Befriend another user in both directions. Repeating the call is harmless."""
    if friend_id == current_user.id:
        raise ValidationError("You cannot add yourself")

    if not await UserRepository(db).get_by_id(friend_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    await FriendRepository(db).add(current_user.id, friend_id)
    return {"ok": True}
