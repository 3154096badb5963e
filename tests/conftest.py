import os
import tempfile
import uuid

# settings are read once at import time
_db_dir = tempfile.mkdtemp(prefix="therian-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'app.db')}")
os.environ.setdefault("ADMIN_UID", "admin-uid")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from therian.database import create_tables
from therian.errors import AuthError, AuthFailure
from therian.models.user import User
from therian.schemas.user import ExternalIdentity
from therian.websocket_manager import ChatHub

ADMIN_UID = os.environ["ADMIN_UID"]


class FakeConnection:
    """In-memory stand-in for a WebSocket connection that records outbound events."""

    def __init__(self, label: str = "conn"):
        self.id = f"{label}-{uuid.uuid4().hex[:8]}"
        self.events = []
        self.closed = False
        self.close_code = None

    async def send_event(self, event) -> bool:
        if self.closed:
            return False
        self.events.append(event)
        return True

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = True
        self.close_code = code

    def of_type(self, event_type: str):
        return [event for event in self.events if event.type == event_type]


class FakeVerifier:
    """Identity provider that accepts a fixed set of ID tokens."""

    def __init__(self, identities=None):
        self.identities = dict(identities or {})

    async def verify(self, id_token: str) -> ExternalIdentity:
        if id_token not in self.identities:
            raise AuthError(AuthFailure.INVALID, "Invalid identity token")
        return self.identities[id_token]


def make_engine(path):
    return create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)


def make_session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def add_user(session_factory, user_id: str, name: str = None, photo: str = None,
                   premium: bool = False, banned: bool = False) -> User:
    async with session_factory() as db:
        user = User(id=user_id, name=name or user_id.title(), photo=photo, email=f"{user_id}@example.com",
                    premium=premium, banned=banned)
        db.add(user)
        await db.commit()
        return user


@pytest.fixture
async def engine(tmp_path):
    engine = make_engine(tmp_path / "chat.db")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def hub(session_factory):
    hub = ChatHub(session_factory, admin_uid=ADMIN_UID)
    yield hub
    await hub.registry.wait_idle()


@pytest.fixture
def connect(hub):
    """Authenticate a fresh fake connection as ``user_id``."""
    async def _connect(user_id: str, label: str = None):
        connection = FakeConnection(label or user_id)
        session = await hub.registry.authenticate(connection, hub.issuer.issue(user_id))
        return connection, session
    return _connect
