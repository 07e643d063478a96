"""Terminal chat client: python -m group_chat.client <name>"""
from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import timedelta

from group_chat.application.dto.events import StoreChange
from group_chat.application.exceptions import AppError
from group_chat.client.config import ClientSettings
from group_chat.client.session import ChatSession
from group_chat.domain.entities.message import Message
from group_chat.domain.value_objects.enums import StoreChangeKind
from group_chat.infrastructure.http.api_client import HttpChatApi

logger = logging.getLogger(__name__)

ANONYMOUS_PREFIX = "/anon "


def _render(message: Message, own_user_id: int) -> str:
    sender = "Anonymous" if message.is_anonymous else (message.user_name or f"user {message.user_id}")
    stamp = message.created_at.astimezone().strftime("%H:%M")
    line = f"[{stamp}] {sender}: {message.text}"
    if message.user_id == own_user_id:
        line += " (sending...)" if message.is_provisional else f" [{message.status}]"
    return line


async def run_client(name: str, group_id: int, settings: ClientSettings) -> None:
    async with HttpChatApi(settings.API_BASE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS) as api:
        session = await ChatSession.login(
            api,
            name,
            group_id=group_id,
            interval=settings.SYNC_INTERVAL_SECONDS,
            presence_window=timedelta(seconds=settings.PRESENCE_WINDOW_SECONDS),
        )
        own_id = session.context.user_id

        def _print_change(change: StoreChange) -> None:
            if change.message is not None and change.kind in (StoreChangeKind.ADDED, StoreChangeKind.REPLACED):
                print(_render(change.message, own_id))

        session.subscribe(_print_change)
        print(f"Logged in as {session.context.user.name}. Prefix with {ANONYMOUS_PREFIX!r} to post anonymously.")

        try:
            while True:
                line = await asyncio.to_thread(input)
                text = line.strip()
                if not text:
                    continue
                if text == "/who":
                    print(f"{session.online_count} online")
                    continue
                anonymous = text.startswith(ANONYMOUS_PREFIX)
                if anonymous:
                    text = text[len(ANONYMOUS_PREFIX):]
                try:
                    await session.send(text, anonymous)
                except AppError as exc:
                    print(f"! {exc.detail}")
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            await session.logout()


def main() -> None:
    settings = ClientSettings()
    parser = argparse.ArgumentParser(description="Group chat terminal client")
    parser.add_argument("name")
    parser.add_argument("--group", type=int, default=settings.DEFAULT_GROUP_ID)
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_client(args.name, args.group, settings))


if __name__ == "__main__":
    main()
