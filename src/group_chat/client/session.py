"""Client session: the surface a UI talks to."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta

from group_chat.application.dto.events import StoreChange
from group_chat.application.dto.session import SessionContext
from group_chat.application.exceptions import MalformedResponse, SendFailedError, SyncError
from group_chat.application.ports.chat_api import ChatApi
from group_chat.application.ports.clock import Clock, SystemClock
from group_chat.client.message_store import MessageStore
from group_chat.client.send_tracker import OptimisticSendTracker
from group_chat.client.sync_scheduler import DEFAULT_INTERVAL_SECONDS, SyncHandle, SyncScheduler
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message
from group_chat.domain.presence import PRESENCE_WINDOW, PresenceReport

logger = logging.getLogger(__name__)


class ChatSession:
    """Everything owned by one logged-in user; built by :meth:`login`.

    Dropping the session (``logout``) stops polling and discards the store
    and pending sends. A new login starts from an empty cursor and seen set.
    """

    def __init__(
        self,
        api: ChatApi,
        context: SessionContext,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        presence_window: timedelta = PRESENCE_WINDOW,
        clock: Clock | None = None,
    ) -> None:
        self._api = api
        self.context = context
        clock = clock or SystemClock()
        self.store = MessageStore()
        self.tracker = OptimisticSendTracker(self.store, clock)
        self.scheduler = SyncScheduler(
            api,
            context,
            self.store,
            self.tracker,
            interval=interval,
            presence_window=presence_window,
            clock=clock,
        )
        self._handle: SyncHandle | None = None

    @classmethod
    async def login(
        cls,
        api: ChatApi,
        name: str,
        *,
        group_id: int,
        start: bool = True,
        **kwargs,
    ) -> ChatSession:
        result = await api.login(name.strip())
        context = SessionContext(user=result.user, token=result.token, group_id=group_id)
        session = cls(api, context, **kwargs)
        if start:
            session.start()
        logger.info("Logged in as %s (user %d)", result.user.name, result.user.id)
        return session

    @property
    def online_count(self) -> int:
        return self.scheduler.presence.online_count

    @property
    def presence(self) -> PresenceReport:
        return self.scheduler.presence

    @property
    def members(self) -> list[Member]:
        return self.scheduler.members

    def messages(self) -> tuple[Message, ...]:
        return self.store.all()

    def subscribe(self, listener: Callable[[StoreChange], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def start(self) -> SyncHandle:
        self._handle = self.scheduler.start()
        return self._handle

    async def send(self, text: str, anonymous: bool = False) -> Message:
        """Show ``text`` immediately, then confirm it with the server.

        Raises :class:`SendFailedError` after rolling the optimistic entry
        back. There is no automatic retry.
        """
        user = self.context.user
        group_id = self.context.group_id
        provisional_id = self.tracker.begin(text, user, anonymous, group_id)
        pending = self.store.get(provisional_id)
        assert pending is not None

        try:
            sent = await self._api.send_message(
                group_id,
                text=pending.text,
                is_anonymous=anonymous,
                user_id=user.id,
                temp_id=provisional_id,
            )
            if sent.temp_id is not None and sent.temp_id != provisional_id:
                raise MalformedResponse(
                    f"send echo for {sent.temp_id!r}, expected {provisional_id!r}"
                )
        except SyncError as exc:
            logger.error("Failed to send message %s: %s", provisional_id, exc)
            if not self.tracker.discard(provisional_id):
                # Already promoted by a poll that saw the echo first.
                echoed = self.tracker.resolved_message(provisional_id)
                if echoed is not None:
                    return echoed
            raise SendFailedError("Failed to send message. Please try again.") from exc

        if group_id != self.context.group_id:
            # Group switched while the request was in flight.
            return sent.message
        self.tracker.resolve(provisional_id, sent.message)
        return sent.message

    async def switch_group(self, group_id: int) -> None:
        await self.scheduler.switch_group(group_id)
        self.context = SessionContext(user=self.context.user, token=self.context.token, group_id=group_id)

    async def logout(self) -> None:
        await self.scheduler.stop()
        self.tracker.clear()
        self.scheduler.reset()
        self._handle = None
        logger.info("Logged out user %d", self.context.user_id)
