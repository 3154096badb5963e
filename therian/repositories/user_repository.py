from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, update

from therian.models.base import utcnow
from therian.models.user import User
from therian.repositories import dialect_insert
from therian.schemas.user import ExternalIdentity

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id, populate_existing=True)

    async def upsert_login(self, identity: ExternalIdentity, default_name: str) -> User:
        """Create the user on first login; afterwards only refresh last_seen and the photo."""
        now = utcnow()
        stmt = dialect_insert(self.db, User).values(
            id=identity.sub,
            name=identity.name or default_name,
            photo=identity.picture or None,
            email=identity.email or "",
            premium=False,
            banned=False,
            last_seen=now,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[User.id],
            set_={
                "last_seen": now,
                "photo": func.coalesce(stmt.excluded.photo, User.photo),
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()
        return await self.get_by_id(identity.sub)

    async def update_name(self, user_id: str, name: str) -> bool:
        return await self._update(user_id, name=name)

    async def update_photo(self, user_id: str, photo: str) -> bool:
        return await self._update(user_id, photo=photo)

    async def set_banned(self, user_id: str, banned: bool) -> bool:
        return await self._update(user_id, banned=banned)

    async def touch_last_seen(self, user_id: str) -> bool:
        return await self._update(user_id, last_seen=utcnow())

    async def _update(self, user_id: str, **values) -> bool:
        result = await self.db.execute(
            update(User).where(User.id == user_id).values(**values)
        )
        await self.db.commit()
        return result.rowcount > 0
