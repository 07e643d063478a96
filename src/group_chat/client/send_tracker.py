"""Optimistic sends: provisional entries awaiting their server echo."""
from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from group_chat.application.exceptions import ValidationError
from group_chat.application.ports.clock import Clock, SystemClock
from group_chat.client.message_store import MessageStore
from group_chat.domain.entities.message import Message
from group_chat.domain.entities.user import User
from group_chat.domain.value_objects.enums import DeliveryStatus, SendState
from group_chat.domain.value_objects.ids import DurableId, ProvisionalId, make_provisional_id

logger = logging.getLogger(__name__)

# Finished sends kept around for late responses; older ones are pruned.
MAX_FINISHED_SENDS = 200


@dataclass(slots=True)
class PendingSend:
    provisional_id: ProvisionalId
    message: Message
    submitted_at: datetime
    state: SendState = SendState.PENDING
    durable_id: DurableId | None = None

    def echoed_by(self, message: Message) -> bool:
        return (
            self.state == SendState.PENDING
            and message.user_id == self.message.user_id
            and message.text == self.message.text
            and message.is_anonymous == self.message.is_anonymous
        )


class OptimisticSendTracker:
    """Lifecycle of each send: ``pending -> resolved`` or ``pending -> discarded``."""

    def __init__(self, store: MessageStore, clock: Clock | None = None) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._counter = itertools.count(1)
        self._sends: dict[str, PendingSend] = {}

    def begin(self, text: str, author: User, anonymous: bool, group_id: int) -> ProvisionalId:
        body = text.strip()
        if not body:
            raise ValidationError("Message text is required")

        provisional_id = make_provisional_id(next(self._counter))
        now = self._clock.now()
        message = Message(
            id=provisional_id,
            group_id=group_id,
            user_id=author.id,
            text=body,
            is_anonymous=anonymous,
            status=DeliveryStatus.PENDING,
            created_at=now,
            user_name=author.name,
            avatar_url=author.avatar_url,
        )
        self._store.insert_provisional(message)
        self._sends[provisional_id] = PendingSend(provisional_id, message, now)
        self._prune()
        logger.debug("Send %s started", provisional_id)
        return provisional_id

    def resolve(self, provisional_id: str, durable: Message) -> bool:
        send = self._pending(provisional_id, "resolve")
        if send is None:
            return False
        send.state = SendState.RESOLVED
        send.durable_id = DurableId(int(durable.id))
        self._store.replace_provisional(send.provisional_id, durable)
        logger.debug("Send %s resolved as message %s", provisional_id, durable.id)
        return True

    def discard(self, provisional_id: str) -> bool:
        send = self._pending(provisional_id, "discard")
        if send is None:
            return False
        send.state = SendState.DISCARDED
        self._store.remove_provisional(send.provisional_id)
        logger.debug("Send %s discarded", provisional_id)
        return True

    def state_of(self, provisional_id: str) -> SendState | None:
        send = self._sends.get(provisional_id)
        return send.state if send else None

    def resolved_message(self, provisional_id: str) -> Message | None:
        """The durable message a resolved send was promoted to, if still in view."""
        send = self._sends.get(provisional_id)
        if send is None or send.durable_id is None:
            return None
        return self._store.get(send.durable_id)

    def pending(self) -> list[PendingSend]:
        return [s for s in self._sends.values() if s.state == SendState.PENDING]

    def match_echo(self, message: Message) -> ProvisionalId | None:
        """Oldest pending send that ``message`` could be the server copy of."""
        for send in self._sends.values():
            if send.echoed_by(message):
                return send.provisional_id
        return None

    def reconcile(self, batch: Iterable[Message], local_user_id: int) -> list[Message]:
        """Merge a polled batch, promoting pending sends whose echo arrived.

        Returns the messages newly added to the store.
        """
        added: list[Message] = []
        for message in batch:
            if self._store.has_seen(int(message.id)):
                continue
            provisional_id = (
                self.match_echo(message) if message.user_id == local_user_id else None
            )
            if provisional_id is not None:
                self.resolve(provisional_id, message)
                added.append(message)
            else:
                added.extend(self._store.merge([message]))
        return added

    def clear(self) -> None:
        self._sends.clear()

    def _prune(self) -> None:
        finished = [k for k, s in self._sends.items() if s.state != SendState.PENDING]
        for key in finished[: max(0, len(finished) - MAX_FINISHED_SENDS)]:
            del self._sends[key]

    def _pending(self, provisional_id: str, action: str) -> PendingSend | None:
        send = self._sends.get(provisional_id)
        if send is None:
            logger.warning("Ignoring %s of unknown send %s", action, provisional_id)
            return None
        if send.state != SendState.PENDING:
            logger.warning(
                "Ignoring %s of send %s already %s", action, provisional_id, send.state,
            )
            return None
        return send
