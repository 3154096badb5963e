from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from therian.auth import get_current_user
from therian.config import settings
from therian.database import get_db
from therian.errors import ValidationError
from therian.models.user import User
from therian.repositories.user_repository import UserRepository
from therian.schemas.user import PublicUserResponse, UpdateName, UpdatePhoto, UserResponse

router = APIRouter()

@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user)
):
    return current_user

@router.put("/me/name")
async def update_name(
    body: UpdateName,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    name = body.name.strip()
    if not name or len(name) > settings.NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be 1 to {settings.NAME_MAX_LENGTH} characters")

    await UserRepository(db).update_name(current_user.id, name)
    return {"ok": True}

@router.put("/me/photo")
async def update_photo(
    body: UpdatePhoto,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not body.photo:
        raise ValidationError("Photo required")

    await UserRepository(db).update_photo(current_user.id, body.photo)
    return {"ok": True}

@router.get("/lookup/{user_id}", response_model=PublicUserResponse)
async def lookup_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user = await UserRepository(db).get_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user
