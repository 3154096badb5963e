"""
Tests for administrator moderation reaching live sessions.
"""

import asyncio

import pytest

from therian.errors import AuthError, AuthFailure
from therian.repositories.message_repository import MessageRepository
from therian.repositories.user_repository import UserRepository

from tests.conftest import ADMIN_UID, FakeConnection, add_user


@pytest.fixture
async def users(session_factory):
    await add_user(session_factory, ADMIN_UID, name="Admin")
    for user_id in ("a", "b", "c"):
        await add_user(session_factory, user_id)


async def load_user(session_factory, user_id):
    async with session_factory() as db:
        return await UserRepository(db).get_by_id(user_id)


class TestBan:
    async def test_requires_admin(self, hub, users):
        with pytest.raises(AuthError) as exc:
            await hub.moderator.ban("a", "b")
        assert exc.value.reason == AuthFailure.FORBIDDEN

    async def test_no_admin_configured(self, hub, users):
        hub.moderator.admin_uid = ""
        with pytest.raises(AuthError):
            await hub.moderator.ban("", "b")

    async def test_sets_flag_and_evicts(self, hub, session_factory, users, connect):
        phone, session = await connect("b", "phone")
        laptop, _ = await connect("b", "laptop")
        await hub.membership.join_room(session, "lounge")

        assert await hub.moderator.ban(ADMIN_UID, "b") is True

        assert (await load_user(session_factory, "b")).banned
        for connection in (phone, laptop):
            assert connection.of_type("banned")
            assert connection.closed
        assert not hub.registry.is_online("b")
        assert hub.membership.channels() == []

    async def test_banned_identity_cannot_reauthenticate(self, hub, users):
        await hub.moderator.ban(ADMIN_UID, "b")
        with pytest.raises(AuthError) as exc:
            await hub.registry.authenticate(FakeConnection(), hub.issuer.issue("b"))
        assert exc.value.reason == AuthFailure.BANNED

    async def test_ban_landing_mid_authentication_refuses_the_bind(self, hub, users, monkeypatch):
        loaded = asyncio.Event()
        resume = asyncio.Event()
        get_by_id = UserRepository.get_by_id

        async def paused_get_by_id(self, user_id):
            user = await get_by_id(self, user_id)
            if user_id == "b":
                loaded.set()
                await resume.wait()
            return user
        monkeypatch.setattr(UserRepository, "get_by_id", paused_get_by_id)

        connection = FakeConnection()
        pending = asyncio.create_task(hub.registry.authenticate(connection, hub.issuer.issue("b")))
        await loaded.wait()
        assert await hub.moderator.ban(ADMIN_UID, "b") is True
        resume.set()

        with pytest.raises(AuthError) as exc:
            await pending
        assert exc.value.reason == AuthFailure.BANNED
        assert not hub.registry.is_online("b")
        assert hub.registry.lookup(connection) is None

    async def test_unknown_target(self, hub, users):
        assert await hub.moderator.ban(ADMIN_UID, "ghost") is False

    async def test_unban_allows_authentication_again(self, hub, session_factory, users):
        await hub.moderator.ban(ADMIN_UID, "b")
        assert await hub.moderator.unban(ADMIN_UID, "b") is True
        assert not (await load_user(session_factory, "b")).banned

        session = await hub.registry.authenticate(FakeConnection(), hub.issuer.issue("b"))
        assert session.user_id == "b"

    async def test_unban_requires_admin(self, hub, users):
        with pytest.raises(AuthError):
            await hub.moderator.unban("a", "b")


class TestDeleteRoomMessage:
    async def test_retracts_from_live_members(self, hub, session_factory, users, connect):
        a, a_session = await connect("a")
        b, b_session = await connect("b")
        c, c_session = await connect("c")
        await hub.membership.join_room(a_session, "lounge")
        await hub.membership.join_room(b_session, "lounge")
        await hub.membership.join_room(c_session, "garden")
        message = await hub.dispatcher.send_room_message(a_session, "lounge", "oops")

        assert await hub.moderator.delete_room_message(ADMIN_UID, message.id) is True

        for connection in (a, b):
            [event] = connection.of_type("message_deleted")
            assert event.data.message_id == message.id
            assert event.data.room_id == "lounge"
        assert c.of_type("message_deleted") == []

        async with session_factory() as db:
            history = await MessageRepository(db).get_room_history("lounge", 80)
        assert message.id not in [m.id for m in history]

    async def test_missing_message_broadcasts_nothing(self, hub, users, connect):
        a, a_session = await connect("a")
        await hub.membership.join_room(a_session, "lounge")
        assert await hub.moderator.delete_room_message(ADMIN_UID, 9999) is False
        assert a.events == []

    async def test_requires_admin(self, hub, users, connect):
        _, a_session = await connect("a")
        await hub.membership.join_room(a_session, "lounge")
        message = await hub.dispatcher.send_room_message(a_session, "lounge", "mine")
        with pytest.raises(AuthError):
            await hub.moderator.delete_room_message("a", message.id)
