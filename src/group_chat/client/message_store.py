"""Ordered, deduplicated view of the messages of the active group."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from group_chat.application.dto.events import StoreChange
from group_chat.domain.entities.message import Message
from group_chat.domain.value_objects.enums import StoreChangeKind
from group_chat.domain.value_objects.ids import MessageKey

logger = logging.getLogger(__name__)

StoreListener = Callable[[StoreChange], None]


class MessageStore:
    """Append-only message view keyed by durable or provisional id.

    Every public mutation is a plain synchronous method, so under a single
    event loop no other coroutine can observe the view and the seen set out
    of step with each other.
    """

    def __init__(self) -> None:
        self._view: list[Message] = []
        self._seen: set[int] = set()
        self._listeners: list[StoreListener] = []

    def __len__(self) -> int:
        return len(self._view)

    def __contains__(self, key: object) -> bool:
        return any(m.id == key for m in self._view)

    @property
    def seen_ids(self) -> frozenset[int]:
        return frozenset(self._seen)

    def has_seen(self, durable_id: int) -> bool:
        return durable_id in self._seen

    def all(self) -> tuple[Message, ...]:
        return tuple(self._view)

    def get(self, key: MessageKey) -> Message | None:
        for m in self._view:
            if m.id == key:
                return m
        return None

    def merge(self, incoming: Iterable[Message]) -> list[Message]:
        """Append every message whose durable id has not been seen yet.

        Returns the messages that were actually added, in arrival order.
        """
        added: list[Message] = []
        for message in incoming:
            if message.is_provisional:
                raise ValueError(f"cannot merge provisional message {message.id!r}")
            if not self._accept(message):
                continue
            added.append(message)
            self._notify(StoreChange(kind=StoreChangeKind.ADDED, message=message))
        return added

    def insert_provisional(self, message: Message) -> None:
        if not message.is_provisional:
            raise ValueError(f"{message.id!r} is not a provisional id")
        if message.id in self:
            raise ValueError(f"provisional id {message.id!r} already present")
        self._view.append(message)
        self._notify(StoreChange(kind=StoreChangeKind.ADDED, message=message))

    def replace_provisional(self, provisional_id: MessageKey, durable: Message) -> bool:
        """Swap a provisional entry for its durable counterpart in one step.

        If the durable id was already merged (its poll beat the send
        response) only the provisional entry goes away. Returns whether the
        durable message was newly added.
        """
        if durable.is_provisional:
            raise ValueError(f"{durable.id!r} is not a durable id")
        removed = self._drop(provisional_id)
        added = self._accept(durable)
        if removed or added:
            self._notify(
                StoreChange(
                    kind=StoreChangeKind.REPLACED,
                    message=durable if added else None,
                    previous_id=provisional_id if removed else None,
                )
            )
        return added

    def remove_provisional(self, provisional_id: MessageKey) -> bool:
        removed = self._drop(provisional_id)
        if removed:
            self._notify(StoreChange(kind=StoreChangeKind.REMOVED, previous_id=provisional_id))
        return removed

    def clear(self) -> None:
        self._view.clear()
        self._seen.clear()
        self._notify(StoreChange(kind=StoreChangeKind.CLEARED))

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _accept(self, message: Message) -> bool:
        durable_id = int(message.id)
        if durable_id in self._seen:
            return False
        self._view.append(message)
        self._seen.add(durable_id)
        return True

    def _drop(self, provisional_id: MessageKey) -> bool:
        for idx, m in enumerate(self._view):
            if m.id == provisional_id and m.is_provisional:
                del self._view[idx]
                return True
        return False

    def _notify(self, change: StoreChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("Store listener failed on %s", change.kind)
