from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query

from group_chat.api.deps import ClockDep, CurrentPrincipal, UoWDep
from group_chat.api.v1.schemas.common import OkResponse
from group_chat.api.v1.schemas.group import MemberResponse
from group_chat.api.v1.schemas.message import (
    MarkReadRequest,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from group_chat.application.exceptions import ForbiddenError
from group_chat.services import group_service

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.get("/{group_id}/members", response_model=list[MemberResponse])
async def list_members(
    group_id: int,
    uow: UoWDep,
    clock: ClockDep,
) -> list[MemberResponse]:
    members = await group_service.list_members(group_id, uow, clock)
    return [MemberResponse.model_validate(m, from_attributes=True) for m in members]


@router.get("/{group_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    group_id: int,
    uow: UoWDep,
    since: datetime | None = Query(None),
) -> list[MessageResponse]:
    messages = await group_service.list_messages(group_id, since, uow)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{group_id}/messages", response_model=SendMessageResponse)
async def send_message(
    group_id: int,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> SendMessageResponse:
    if body.user_id is not None and body.user_id != principal.user_id:
        raise ForbiddenError("Cannot post as another user")
    msg = await group_service.send_message(
        group_id, principal.user_id, body.text, body.is_anonymous, uow,
    )
    return SendMessageResponse(
        message=MessageResponse.model_validate(msg, from_attributes=True),
        temp_id=body.temp_id,
    )


@router.post("/{group_id}/read", response_model=OkResponse)
async def mark_read(
    group_id: int,
    body: MarkReadRequest,
    _principal: CurrentPrincipal,
    uow: UoWDep,
) -> OkResponse:
    await group_service.mark_read(group_id, body.message_ids, uow)
    return OkResponse()
