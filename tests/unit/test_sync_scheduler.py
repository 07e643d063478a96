from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import timedelta

import pytest

from group_chat.application.exceptions import MalformedResponse, NetworkFailure, ServerError
from group_chat.client.message_store import MessageStore
from group_chat.client.send_tracker import OptimisticSendTracker
from group_chat.client.sync_scheduler import SyncScheduler
from group_chat.domain.value_objects.enums import SendState
from tests.conftest import T0, make_member, make_message


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
def tracker(store, clock) -> OptimisticSendTracker:
    return OptimisticSendTracker(store, clock)


@pytest.fixture
def scheduler(fake_api, session_context, store, tracker, clock) -> SyncScheduler:
    return SyncScheduler(fake_api, session_context, store, tracker, interval=0.01, clock=clock)


@pytest.mark.asyncio
async def test_tick_merges_and_advances_cursor(scheduler, fake_api, store):
    fake_api.batches = [[make_message(1), make_message(2)]]

    await scheduler.tick()

    assert [m.id for m in store.all()] == [1, 2]
    assert scheduler.cursor == make_message(2).created_at
    assert fake_api.fetch_calls == [None]


@pytest.mark.asyncio
async def test_next_fetch_uses_cursor(scheduler, fake_api):
    fake_api.batches = [[make_message(1)], []]

    await scheduler.tick()
    await scheduler.tick()

    assert fake_api.fetch_calls == [None, make_message(1).created_at]


@pytest.mark.asyncio
async def test_overlapping_batches_are_merged_once(scheduler, fake_api, store):
    fake_api.batches = [
        [make_message(1), make_message(2)],
        [make_message(2), make_message(3)],
    ]

    await scheduler.tick()
    await scheduler.tick()

    assert [m.id for m in store.all()] == [1, 2, 3]


@pytest.mark.asyncio
async def test_cursor_never_moves_backward(scheduler, fake_api):
    fake_api.batches = [
        [make_message(5)],
        [],
        [make_message(3)],
    ]

    await scheduler.tick()
    after_first = scheduler.cursor
    await scheduler.tick()
    assert scheduler.cursor == after_first

    fake_api.errors["fetch_messages"] = NetworkFailure("offline")
    await scheduler.tick()
    assert scheduler.cursor == after_first

    del fake_api.errors["fetch_messages"]
    await scheduler.tick()
    assert scheduler.cursor == after_first


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [NetworkFailure("offline"), ServerError(500, "boom"), MalformedResponse("not a list")],
)
async def test_failed_fetch_does_not_abort_cycle(scheduler, fake_api, store, error):
    fake_api.errors["fetch_messages"] = error
    fake_api.members = [make_member(1, T0)]

    await scheduler.tick()

    assert len(store) == 0
    assert scheduler.cursor is None
    assert scheduler.presence.online_count == 1
    assert fake_api.heartbeats == [1]


@pytest.mark.asyncio
async def test_read_ack_only_for_new_messages_from_others(scheduler, fake_api, alice):
    fake_api.batches = [
        [make_message(1, user_id=2), make_message(2, user_id=alice.id), make_message(3, user_id=3)],
        [make_message(3, user_id=3)],
    ]

    await scheduler.tick()
    await scheduler.tick()

    assert fake_api.read_calls == [[1, 3]]


@pytest.mark.asyncio
async def test_read_ack_failure_is_logged_not_raised(scheduler, fake_api, store):
    fake_api.batches = [[make_message(1)]]
    fake_api.errors["mark_read"] = ServerError(503)

    await scheduler.tick()

    assert [m.id for m in store.all()] == [1]
    assert fake_api.heartbeats == [1]


@pytest.mark.asyncio
async def test_presence_is_recomputed_from_heartbeats(scheduler, fake_api, clock):
    fake_api.members = [
        make_member(1, clock.now() - timedelta(seconds=5)),
        make_member(2, clock.now() - timedelta(seconds=15)),
    ]

    await scheduler.tick()

    assert scheduler.presence.online == {1}
    assert scheduler.presence.online_count == 1
    assert [m.id for m in scheduler.members] == [1, 2]


@pytest.mark.asyncio
async def test_presence_ignores_server_online_flag(scheduler, fake_api, clock):
    stale = replace(make_member(2, clock.now() - timedelta(seconds=30)), online=True)
    fake_api.members = [stale]

    await scheduler.tick()

    assert scheduler.presence.online_count == 0


@pytest.mark.asyncio
async def test_members_failure_keeps_previous_presence(scheduler, fake_api, clock):
    fake_api.members = [make_member(1, clock.now())]
    await scheduler.tick()

    fake_api.errors["list_members"] = NetworkFailure("offline")
    await scheduler.tick()

    assert scheduler.presence.online_count == 1


@pytest.mark.asyncio
async def test_heartbeat_is_emitted_each_tick(scheduler, fake_api):
    await scheduler.tick()
    await scheduler.tick()
    assert fake_api.heartbeats == [1, 1]


@pytest.mark.asyncio
async def test_poll_echo_resolves_pending_send(scheduler, fake_api, store, tracker, alice):
    pid = tracker.begin("hi", alice, False, 1)
    fake_api.batches = [[make_message(42, user_id=alice.id, text="hi")]]

    await scheduler.tick()

    assert [m.id for m in store.all()] == [42]
    assert tracker.state_of(pid) == SendState.RESOLVED
    assert fake_api.read_calls == []


@pytest.mark.asyncio
async def test_start_runs_ticks_until_stopped(scheduler, fake_api):
    handle = scheduler.start()
    assert handle.active
    await asyncio.sleep(0.05)
    await handle.cancel()

    calls = len(fake_api.fetch_calls)
    assert calls >= 2
    assert not handle.active
    assert not scheduler.running

    await asyncio.sleep(0.03)
    assert len(fake_api.fetch_calls) == calls


@pytest.mark.asyncio
async def test_start_twice_returns_same_run(scheduler):
    first = scheduler.start()
    second = scheduler.start()
    try:
        assert first.epoch == second.epoch
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_stale_tick_results_are_discarded(scheduler, fake_api, store):
    fake_api.fetch_gate = asyncio.Event()
    fake_api.batches = [[make_message(1)]]

    tick = asyncio.create_task(scheduler.tick())
    await asyncio.sleep(0)
    await scheduler.stop()

    fake_api.fetch_gate.set()
    await tick

    assert len(store) == 0
    assert scheduler.cursor is None
    assert fake_api.heartbeats == []


@pytest.mark.asyncio
async def test_hung_fetch_does_not_block_later_ticks(scheduler, fake_api):
    fake_api.fetch_gate = asyncio.Event()

    scheduler.start()
    await asyncio.sleep(0.05)
    try:
        assert len(fake_api.fetch_calls) >= 2
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_switch_group_resets_cursor_and_store(scheduler, fake_api, store):
    fake_api.batches = [[make_message(1)]]
    await scheduler.tick()

    await scheduler.switch_group(2)

    assert scheduler.group_id == 2
    assert scheduler.cursor is None
    assert len(store) == 0
    assert not store.has_seen(1)


@pytest.mark.asyncio
async def test_handle_of_old_run_cannot_stop_new_run(scheduler):
    old = scheduler.start()
    await scheduler.stop()
    new = scheduler.start()
    try:
        await old.cancel()
        assert new.active
        assert scheduler.running
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_no_heartbeat_after_stop_during_presence(scheduler, fake_api):
    fake_api.members_gate = asyncio.Event()

    tick = asyncio.create_task(scheduler.tick())
    while fake_api.member_calls == 0:
        await asyncio.sleep(0)
    await scheduler.stop()

    fake_api.members_gate.set()
    await tick

    assert fake_api.heartbeats == []
