from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from therian.models.base import utcnow
from therian.models.friend import Friendship
from therian.models.user import User
from therian.repositories import dialect_insert

class FriendRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, user_id: str, friend_id: str) -> None:
        """Insert both directions; existing rows are left untouched."""
        now = utcnow()
        stmt = dialect_insert(self.db, Friendship).values([
            {"user_id": user_id, "friend_id": friend_id, "created_at": now},
            {"user_id": friend_id, "friend_id": user_id, "created_at": now},
        ]).on_conflict_do_nothing()
        await self.db.execute(stmt)
        await self.db.commit()

    async def list_friends(self, user_id: str) -> List[User]:
        result = await self.db.execute(
            select(User).join(Friendship, Friendship.friend_id == User.id)
            .where(Friendship.user_id == user_id)
            .order_by(User.name.asc())
        )
        return list(result.scalars().all())
