"""Presence estimation from heartbeat timestamps.

A member is online while the age of their last heartbeat is strictly below
the presence window: ``now - last_seen < window``. An age of exactly the
window is offline, and a member that never sent a heartbeat is offline.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from group_chat.domain.entities.member import Member

PRESENCE_WINDOW = timedelta(seconds=10)


@dataclass(frozen=True, slots=True)
class PresenceReport:
    online: frozenset[int]
    offline: frozenset[int]

    @property
    def online_count(self) -> int:
        return len(self.online)

    def is_online(self, member_id: int) -> bool:
        return member_id in self.online


EMPTY_REPORT = PresenceReport(online=frozenset(), offline=frozenset())


def is_online(
    last_seen: datetime | None,
    now: datetime,
    window: timedelta = PRESENCE_WINDOW,
) -> bool:
    if last_seen is None:
        return False
    return now - last_seen < window


def classify(
    heartbeats: Mapping[int, datetime | None],
    now: datetime,
    window: timedelta = PRESENCE_WINDOW,
) -> PresenceReport:
    online: set[int] = set()
    offline: set[int] = set()
    for member_id, last_seen in heartbeats.items():
        if is_online(last_seen, now, window):
            online.add(member_id)
        else:
            offline.add(member_id)
    return PresenceReport(online=frozenset(online), offline=frozenset(offline))


def heartbeats_of(members: Iterable[Member]) -> dict[int, datetime | None]:
    return {m.id: m.last_seen for m in members}
