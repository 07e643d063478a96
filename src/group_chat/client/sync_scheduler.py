"""Polling loop that keeps the message store and presence up to date."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from group_chat.application.dto.session import SessionContext
from group_chat.application.exceptions import SyncError
from group_chat.application.ports.chat_api import ChatApi
from group_chat.application.ports.clock import Clock, SystemClock
from group_chat.client.message_store import MessageStore
from group_chat.client.send_tracker import OptimisticSendTracker
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message
from group_chat.domain.presence import (
    EMPTY_REPORT,
    PRESENCE_WINDOW,
    PresenceReport,
    classify,
    heartbeats_of,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3.0


@dataclass(frozen=True, slots=True)
class SyncHandle:
    """Ticket for one run of the scheduler; cancelling it stops that run only."""

    scheduler: SyncScheduler
    epoch: int

    @property
    def active(self) -> bool:
        return self.scheduler.running and self.scheduler.epoch == self.epoch

    async def cancel(self) -> None:
        if self.active:
            await self.scheduler.stop()


class SyncScheduler:
    """Runs a sync cycle every ``interval`` seconds while started.

    A cycle fetches messages newer than the cursor, reconciles them into the
    store, acknowledges other people's messages as read, refreshes presence
    and emits our own heartbeat. Each step fails independently.

    Ticks are spawned on a fixed schedule rather than chained, so a hung
    request only delays its own tick. Every tick remembers the epoch it was
    started in and drops its results if the epoch moved on meanwhile (stop,
    restart or group switch).
    """

    def __init__(
        self,
        api: ChatApi,
        session: SessionContext,
        store: MessageStore,
        tracker: OptimisticSendTracker,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        presence_window: timedelta = PRESENCE_WINDOW,
        clock: Clock | None = None,
    ) -> None:
        self._api = api
        self._session = session
        self._store = store
        self._tracker = tracker
        self._interval = interval
        self._presence_window = presence_window
        self._clock = clock or SystemClock()

        self._cursor: datetime | None = None
        self._epoch = 0
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

        self.members: list[Member] = []
        self.presence: PresenceReport = EMPTY_REPORT

    @property
    def cursor(self) -> datetime | None:
        return self._cursor

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def group_id(self) -> int:
        return self._session.group_id

    def start(self) -> SyncHandle:
        if self.running:
            return SyncHandle(self, self._epoch)
        self._epoch += 1
        self._loop_task = asyncio.create_task(self._run(), name="group-chat-sync")
        logger.info(
            "Sync started for group %d (interval=%.1fs, epoch=%d)",
            self.group_id, self._interval, self._epoch,
        )
        return SyncHandle(self, self._epoch)

    async def stop(self) -> None:
        self._epoch += 1
        tasks = [t for t in (self._loop_task, *self._inflight) if t is not None]
        self._loop_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._inflight.clear()
        if tasks:
            logger.info("Sync stopped for group %d", self.group_id)

    def reset(self) -> None:
        """Forget the cursor and everything merged so far."""
        self._epoch += 1
        self._cursor = None
        self._store.clear()
        self.members = []
        self.presence = EMPTY_REPORT

    async def switch_group(self, group_id: int) -> None:
        was_running = self.running
        await self.stop()
        self._session = SessionContext(
            user=self._session.user, token=self._session.token, group_id=group_id,
        )
        self._tracker.clear()
        self.reset()
        if was_running:
            self.start()

    async def tick(self) -> None:
        epoch = self._epoch
        added = await self._sync_messages(epoch)
        if self._stale(epoch):
            return
        await self._acknowledge(added, epoch)
        await self._refresh_presence(epoch)
        if self._stale(epoch):
            return
        await self._heartbeat()

    async def _run(self) -> None:
        while True:
            task = asyncio.create_task(self._guarded_tick(), name="group-chat-sync-tick")
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(self._interval)

    async def _guarded_tick(self) -> None:
        try:
            await self.tick()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Sync tick failed")

    async def _sync_messages(self, epoch: int) -> list[Message]:
        group_id = self.group_id
        try:
            batch = await self._api.fetch_messages(group_id, since=self._cursor)
        except SyncError as exc:
            logger.warning("Failed to load messages for group %d: %s", group_id, exc)
            return []
        if self._stale(epoch):
            logger.debug("Discarding %d messages fetched by a stale tick", len(batch))
            return []
        if not batch:
            return []

        added = self._tracker.reconcile(batch, self._session.user_id)
        self._advance_cursor(max(m.created_at for m in batch))
        if added:
            logger.debug("Merged %d new messages into group %d", len(added), group_id)
        return added

    def _advance_cursor(self, candidate: datetime) -> None:
        if self._cursor is None or candidate > self._cursor:
            self._cursor = candidate

    async def _acknowledge(self, added: list[Message], epoch: int) -> None:
        ids = [int(m.id) for m in added if m.user_id != self._session.user_id]
        if not ids or self._stale(epoch):
            return
        try:
            await self._api.mark_read(self.group_id, ids)
        except SyncError as exc:
            logger.warning("Failed to mark %d messages as read: %s", len(ids), exc)

    async def _refresh_presence(self, epoch: int) -> None:
        try:
            members = await self._api.list_members(self.group_id)
        except SyncError as exc:
            logger.warning("Failed to update members list: %s", exc)
            return
        if self._stale(epoch):
            return
        self.members = members
        self.presence = classify(
            heartbeats_of(members), self._clock.now(), self._presence_window,
        )

    async def _heartbeat(self) -> None:
        try:
            await self._api.heartbeat(self._session.user_id)
        except SyncError as exc:
            logger.warning("Failed to update online status: %s", exc)

    def _stale(self, epoch: int) -> bool:
        return epoch != self._epoch
