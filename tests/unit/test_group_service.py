from __future__ import annotations

from datetime import timedelta

import pytest

from group_chat.application.exceptions import ValidationError
from group_chat.domain.value_objects.enums import DeliveryStatus
from group_chat.services import group_service
from tests.conftest import GROUP_ID, T0, FakeUoW


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


async def _user(uow: FakeUoW, name: str = "alice"):
    user = await uow.users_w.create(name, f"https://avatars.test/{name}.svg")
    await uow.members_w.join_if_absent(GROUP_ID, user.id)
    return user


@pytest.mark.asyncio
async def test_send_message_trims_and_stores(uow):
    alice = await _user(uow)

    msg = await group_service.send_message(GROUP_ID, alice.id, "  hello  ", False, uow)

    assert msg.text == "hello"
    assert msg.user_id == alice.id
    assert msg.user_name == "alice"
    assert msg.status == DeliveryStatus.SENT
    assert uow.commits == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_send_message_rejects_blank_text(uow, text):
    alice = await _user(uow)
    with pytest.raises(ValidationError, match="text is required"):
        await group_service.send_message(GROUP_ID, alice.id, text, False, uow)
    assert uow.commits == 0


@pytest.mark.asyncio
async def test_send_message_requires_user(uow):
    with pytest.raises(ValidationError, match="User ID is required"):
        await group_service.send_message(GROUP_ID, None, "hi", False, uow)


@pytest.mark.asyncio
async def test_list_messages_since_is_exclusive(uow):
    alice = await _user(uow)
    first = await group_service.send_message(GROUP_ID, alice.id, "one", False, uow)
    second = await group_service.send_message(GROUP_ID, alice.id, "two", False, uow)

    everything = await group_service.list_messages(GROUP_ID, None, uow)
    newer = await group_service.list_messages(GROUP_ID, first.created_at, uow)

    assert [m.id for m in everything] == [first.id, second.id]
    assert [m.id for m in newer] == [second.id]


@pytest.mark.asyncio
async def test_list_messages_is_scoped_to_group(uow):
    alice = await _user(uow)
    await group_service.send_message(2, alice.id, "elsewhere", False, uow)

    assert await group_service.list_messages(GROUP_ID, None, uow) == []


@pytest.mark.asyncio
async def test_mark_read_updates_status(uow):
    alice = await _user(uow)
    msg = await group_service.send_message(GROUP_ID, alice.id, "hi", False, uow)

    await group_service.mark_read(GROUP_ID, [msg.id], uow)

    stored = await uow.messages.get_by_id(msg.id)
    assert stored.status == DeliveryStatus.READ


@pytest.mark.asyncio
async def test_mark_read_requires_ids(uow):
    with pytest.raises(ValidationError, match="Message IDs are required"):
        await group_service.mark_read(GROUP_ID, [], uow)


@pytest.mark.asyncio
async def test_list_members_computes_online_flag(uow, clock):
    alice = await _user(uow, "alice")
    bob = await _user(uow, "bob")
    carol = await _user(uow, "carol")
    await uow.users_w.touch_last_seen(alice.id, T0 - timedelta(seconds=3))
    await uow.users_w.touch_last_seen(bob.id, T0 - timedelta(seconds=30))

    members = await group_service.list_members(GROUP_ID, uow, clock)

    assert [(m.name, m.online) for m in members] == [
        ("alice", True),
        ("bob", False),
        ("carol", False),
    ]
    assert members[2].id == carol.id
