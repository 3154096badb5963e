"""
Tests for channel naming and live channel membership.
"""

import pytest

from therian.channels import (
    Channel,
    ChannelKind,
    ChannelMembership,
    canonical_direct_name,
    direct_channel_name,
    is_direct_participant,
    split_direct_name,
)
from therian.errors import ValidationError
from therian.sessions import Session

from tests.conftest import FakeConnection


def make_session(user_id: str) -> Session:
    return Session(connection=FakeConnection(user_id), user_id=user_id, name=user_id, photo=None, premium=False)


class TestDirectNames:
    def test_name_is_order_independent(self):
        assert direct_channel_name("b", "a") == direct_channel_name("a", "b") == "a_b"

    def test_canonical_name(self):
        assert canonical_direct_name("222_111") == "111_222"
        assert Channel.direct("222_111") == Channel.direct("111_222")

    @pytest.mark.parametrize("name", ["", "abc", "a_b_c", "_b", "a_", "a_a"])
    def test_malformed_names(self, name):
        with pytest.raises(ValidationError):
            split_direct_name(name)

    def test_participants(self):
        assert is_direct_participant("a_b", "a")
        assert is_direct_participant("a_b", "b")
        assert not is_direct_participant("a_b", "c")
        assert not is_direct_participant("a_b_c", "a")

    def test_room_and_direct_channels_never_collide(self):
        assert Channel.room("a_b") != Channel.direct("a_b")
        assert Channel.room("a_b").kind == ChannelKind.ROOM


class TestMembership:
    """A connection belongs to at most one channel at a time."""

    async def test_join_room(self):
        membership = ChannelMembership()
        session = make_session("a")
        channel = await membership.join_room(session, "lounge")
        assert channel == Channel.room("lounge")
        assert membership.members_of(channel) == [session.connection]
        assert membership.channel_of(session.connection) == channel

    async def test_joining_second_channel_leaves_first(self):
        membership = ChannelMembership()
        session = make_session("a")
        await membership.join_room(session, "lounge")
        await membership.join_room(session, "garden")
        assert membership.members_of(Channel.room("lounge")) == []
        assert membership.members_of(Channel.room("garden")) == [session.connection]

    async def test_empty_channels_are_removed(self):
        membership = ChannelMembership()
        first, second = make_session("a"), make_session("b")
        await membership.join_room(first, "lounge")
        await membership.join_room(second, "lounge")
        await membership.leave(first.connection)
        assert membership.channels() == [Channel.room("lounge")]
        await membership.leave(second.connection)
        assert membership.channels() == []

    async def test_leave_is_idempotent(self):
        membership = ChannelMembership()
        session = make_session("a")
        await membership.join_room(session, "lounge")
        assert await membership.leave(session.connection) == Channel.room("lounge")
        assert await membership.leave(session.connection) is None

    async def test_join_direct_as_participant(self):
        membership = ChannelMembership()
        a, b = make_session("a"), make_session("b")
        await membership.join_direct(a, "a_b")
        await membership.join_direct(b, "b_a")
        members = membership.members_of(Channel.direct("a_b"))
        assert set(members) == {a.connection, b.connection}

    async def test_join_direct_by_outsider_changes_nothing(self):
        membership = ChannelMembership()
        session = make_session("a")
        await membership.join_room(session, "lounge")
        assert await membership.join_direct(session, "b_c") is None
        assert membership.channel_of(session.connection) == Channel.room("lounge")
        assert membership.members_of(Channel.direct("b_c")) == []

    async def test_join_direct_with_malformed_name_changes_nothing(self):
        membership = ChannelMembership()
        session = make_session("a")
        assert await membership.join_direct(session, "a") is None
        assert membership.channel_of(session.connection) is None

    async def test_closed_session_cannot_join(self):
        membership = ChannelMembership()
        session = make_session("a")
        session.closed = True
        assert await membership.join_room(session, "lounge") is None
        assert membership.channels() == []
