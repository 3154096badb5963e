from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from therian.config import settings


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    # in-memory sqlite only lives as long as its single connection
    if ":memory:" in url or url.endswith("//"):
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"poolclass": NullPool}


async_engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, **_engine_options(settings.DATABASE_URL))
AsyncSessionLocal = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

async def create_tables(engine=async_engine):
    from therian.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
