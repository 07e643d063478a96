"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import itertools
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from group_chat.application.dto.message import SentMessage
from group_chat.application.dto.session import LoginResult, SessionContext
from group_chat.application.exceptions import SyncError
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message
from group_chat.domain.entities.user import User
from group_chat.domain.value_objects.enums import DeliveryStatus, MemberRole
from group_chat.domain.value_objects.ids import DurableId

T0 = datetime(2024, 5, 3, 18, 0, 0, tzinfo=timezone.utc)
GROUP_ID = 1


@dataclass
class FixedClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def make_user(user_id: int = 1, name: str = "alice") -> User:
    return User(
        id=user_id,
        name=name,
        avatar_url=f"https://avatars.test/{name}.svg",
        created_at=T0,
    )


def make_message(
    message_id: int,
    *,
    user_id: int = 2,
    text: str | None = None,
    created_at: datetime | None = None,
    is_anonymous: bool = False,
    status: DeliveryStatus = DeliveryStatus.SENT,
    group_id: int = GROUP_ID,
) -> Message:
    return Message(
        id=DurableId(message_id),
        group_id=group_id,
        user_id=user_id,
        text=text if text is not None else f"message {message_id}",
        is_anonymous=is_anonymous,
        status=status,
        created_at=created_at or T0 + timedelta(seconds=message_id),
        user_name=f"user{user_id}",
        avatar_url=None,
    )


def make_member(member_id: int, last_seen: datetime | None, name: str | None = None) -> Member:
    return Member(
        id=member_id,
        name=name or f"user{member_id}",
        avatar_url=None,
        last_seen=last_seen,
        role=MemberRole.MEMBER,
        joined_at=T0,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def alice() -> User:
    return make_user(1, "alice")


@pytest.fixture
def session_context(alice: User) -> SessionContext:
    return SessionContext(user=alice, token="token", group_id=GROUP_ID)


# ---------------------------------------------------------------------------
# Client side: scripted chat server
# ---------------------------------------------------------------------------


@dataclass
class FakeChatApi:
    """In-memory ChatApi with scripted fetch batches and injectable failures."""

    batches: list[list[Message]] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    login_user: User = field(default_factory=make_user)
    errors: dict[str, SyncError] = field(default_factory=dict)
    fetch_gate: asyncio.Event | None = None
    send_gate: asyncio.Event | None = None
    members_gate: asyncio.Event | None = None
    echo_temp_id: bool = True

    fetch_calls: list[datetime | None] = field(default_factory=list)
    read_calls: list[list[int]] = field(default_factory=list)
    heartbeats: list[int] = field(default_factory=list)
    member_calls: int = 0
    sent: list[dict[str, Any]] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(100))

    def _maybe_fail(self, op: str) -> None:
        if op in self.errors:
            raise self.errors[op]

    async def login(self, name: str) -> LoginResult:
        self._maybe_fail("login")
        return LoginResult(user=replace(self.login_user, name=name), token="token")

    async def heartbeat(self, user_id: int) -> None:
        self._maybe_fail("heartbeat")
        self.heartbeats.append(user_id)

    async def fetch_messages(self, group_id: int, *, since: datetime | None = None) -> list[Message]:
        self.fetch_calls.append(since)
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        self._maybe_fail("fetch_messages")
        return self.batches.pop(0) if self.batches else []

    async def send_message(
        self,
        group_id: int,
        *,
        text: str,
        is_anonymous: bool,
        user_id: int,
        temp_id: str,
    ) -> SentMessage:
        self.sent.append(
            {"group_id": group_id, "text": text, "is_anonymous": is_anonymous,
             "user_id": user_id, "temp_id": temp_id}
        )
        if self.send_gate is not None:
            await self.send_gate.wait()
        self._maybe_fail("send_message")
        message = make_message(
            next(self._ids), user_id=user_id, text=text, is_anonymous=is_anonymous, group_id=group_id,
        )
        return SentMessage(message=message, temp_id=temp_id if self.echo_temp_id else "temp_999")

    async def mark_read(self, group_id: int, message_ids: Sequence[int]) -> None:
        self._maybe_fail("mark_read")
        self.read_calls.append(list(message_ids))

    async def list_members(self, group_id: int) -> list[Member]:
        self.member_calls += 1
        if self.members_gate is not None:
            await self.members_gate.wait()
        self._maybe_fail("list_members")
        return list(self.members)


@pytest.fixture
def fake_api() -> FakeChatApi:
    return FakeChatApi()


# ---------------------------------------------------------------------------
# Server side: in-memory unit of work
# ---------------------------------------------------------------------------


@dataclass
class FakeUserRepo:
    _users: dict[int, User] = field(default_factory=dict)
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    async def get_by_id(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    async def get_by_name(self, name: str) -> User | None:
        return next((u for u in self._users.values() if u.name == name), None)

    async def create(self, name: str, avatar_url: str) -> User:
        user = User(id=next(self._ids), name=name, avatar_url=avatar_url, created_at=T0)
        self._users[user.id] = user
        return user

    async def touch_last_seen(self, user_id: int, ts: datetime) -> None:
        if user_id in self._users:
            self._users[user_id] = replace(self._users[user_id], last_seen=ts)


@dataclass
class FakeMemberRepo:
    _users: FakeUserRepo
    _memberships: dict[tuple[int, int], tuple[str, datetime]] = field(default_factory=dict)

    async def list_members(self, group_id: int) -> list[Member]:
        members = []
        for (gid, uid), (role, joined_at) in self._memberships.items():
            if gid != group_id:
                continue
            user = self._users._users[uid]
            members.append(
                Member(
                    id=user.id,
                    name=user.name,
                    avatar_url=user.avatar_url,
                    last_seen=user.last_seen,
                    role=role,
                    joined_at=joined_at,
                )
            )
        return sorted(members, key=lambda m: m.name)

    async def join_if_absent(self, group_id: int, user_id: int) -> None:
        self._memberships.setdefault((group_id, user_id), (MemberRole.MEMBER.value, T0))


@dataclass
class FakeMessageRepo:
    _users: FakeUserRepo
    clock: FixedClock = field(default_factory=FixedClock)
    _messages: list[Message] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    async def list_messages(
        self,
        group_id: int,
        *,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[Message]:
        rows = sorted(
            (m for m in self._messages if m.group_id == group_id),
            key=lambda m: (m.created_at, m.id),
        )
        if since is not None:
            return [m for m in rows if m.created_at > since][:limit]
        return rows[-limit:]

    async def get_by_id(self, message_id: int) -> Message | None:
        return next((m for m in self._messages if m.id == message_id), None)

    async def create(self, group_id: int, user_id: int, text: str, is_anonymous: bool) -> int:
        user = self._users._users.get(user_id)
        self.clock.advance(1)
        message = Message(
            id=DurableId(next(self._ids)),
            group_id=group_id,
            user_id=user_id,
            text=text,
            is_anonymous=is_anonymous,
            status=DeliveryStatus.SENT,
            created_at=self.clock.now(),
            user_name=user.name if user else None,
            avatar_url=user.avatar_url if user else None,
        )
        self._messages.append(message)
        return int(message.id)

    async def mark_read(self, group_id: int, message_ids: Sequence[int]) -> None:
        wanted = set(message_ids)
        self._messages = [
            m.with_status(DeliveryStatus.READ) if m.id in wanted and m.group_id == group_id else m
            for m in self._messages
        ]


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    users: FakeUserRepo = field(default_factory=FakeUserRepo)
    users_w: FakeUserRepo | None = None
    members: FakeMemberRepo | None = None
    members_w: FakeMemberRepo | None = None
    messages: FakeMessageRepo | None = None
    messages_w: FakeMessageRepo | None = None
    commits: int = 0

    def __post_init__(self) -> None:
        self.users_w = self.users
        if self.members is None:
            self.members = FakeMemberRepo(self.users)
        self.members_w = self.members
        if self.messages is None:
            self.messages = FakeMessageRepo(self.users)
        self.messages_w = self.messages

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass
