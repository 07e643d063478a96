"""httpx implementation of the ChatApi port."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime
from types import TracebackType
from typing import Any, Self

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from group_chat.api.v1.schemas.auth import LoginRequest, LoginResponse
from group_chat.api.v1.schemas.group import MemberResponse
from group_chat.api.v1.schemas.message import (
    MarkReadRequest,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from group_chat.application.dto.message import SentMessage
from group_chat.application.dto.session import LoginResult
from group_chat.application.exceptions import MalformedResponse, NetworkFailure, ServerError
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message
from group_chat.infrastructure.http import mappers

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_messages_adapter = TypeAdapter(list[MessageResponse])
_members_adapter = TypeAdapter(list[MemberResponse])


class HttpChatApi:
    """Talks to the chat server REST API under ``base_url`` (e.g. ``http://host/api``)."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: str | None) -> None:
        if token:
            self._http.headers["Authorization"] = f"Bearer {token}"
        else:
            self._http.headers.pop("Authorization", None)

    async def login(self, name: str) -> LoginResult:
        data = await self._request("POST", "/auth/login", json=LoginRequest(name=name).model_dump())
        parsed = self._parse(LoginResponse, data)
        self.set_token(parsed.token)
        return LoginResult(
            user=mappers.user_to_entity(parsed.user),
            token=parsed.token,
            message=parsed.message,
        )

    async def heartbeat(self, user_id: int) -> None:
        await self._request("POST", f"/auth/user/{user_id}/online")

    async def fetch_messages(
        self,
        group_id: int,
        *,
        since: datetime | None = None,
    ) -> list[Message]:
        params = {"since": since.isoformat()} if since is not None else None
        data = await self._request("GET", f"/groups/{group_id}/messages", params=params)
        rows = self._parse_list(_messages_adapter, data)
        return [mappers.message_to_entity(r) for r in rows]

    async def send_message(
        self,
        group_id: int,
        *,
        text: str,
        is_anonymous: bool,
        user_id: int,
        temp_id: str,
    ) -> SentMessage:
        body = SendMessageRequest(
            text=text, is_anonymous=is_anonymous, user_id=user_id, temp_id=temp_id,
        )
        data = await self._request(
            "POST", f"/groups/{group_id}/messages", json=body.model_dump(by_alias=True),
        )
        parsed = self._parse(SendMessageResponse, data)
        return SentMessage(message=mappers.message_to_entity(parsed.message), temp_id=parsed.temp_id)

    async def mark_read(self, group_id: int, message_ids: Sequence[int]) -> None:
        body = MarkReadRequest(message_ids=list(message_ids))
        await self._request("POST", f"/groups/{group_id}/read", json=body.model_dump(by_alias=True))

    async def list_members(self, group_id: int) -> list[Member]:
        data = await self._request("GET", f"/groups/{group_id}/members")
        rows = self._parse_list(_members_adapter, data)
        return [mappers.member_to_entity(r) for r in rows]

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        request_id = uuid.uuid4().hex
        try:
            response = await self._http.request(
                method, path, headers={REQUEST_ID_HEADER: request_id}, **kwargs,
            )
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"{method} {path} failed: {exc!r}") from exc

        if not response.is_success:
            logger.debug("%s %s -> %d [%s]", method, path, response.status_code, request_id)
            raise ServerError(response.status_code, response.text[:200])

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise MalformedResponse(str(exc)) from exc

    @staticmethod
    def _parse_list(adapter: TypeAdapter[Any], data: Any) -> Any:
        try:
            return adapter.validate_python(data)
        except PydanticValidationError as exc:
            raise MalformedResponse(str(exc)) from exc
