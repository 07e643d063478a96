from __future__ import annotations

from fastapi import APIRouter

from group_chat.api.deps import ClockDep, CurrentPrincipal, TokensDep, UoWDep
from group_chat.api.v1.schemas.auth import LoginRequest, LoginResponse, UserResponse
from group_chat.api.v1.schemas.common import OkResponse
from group_chat.application.exceptions import ForbiddenError
from group_chat.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    uow: UoWDep,
    tokens: TokensDep,
    clock: ClockDep,
) -> LoginResponse:
    result = await auth_service.login(body.name, uow, tokens, clock)
    return LoginResponse(
        user=UserResponse.model_validate(result.user, from_attributes=True),
        token=result.token,
        message=result.message,
    )


@router.post("/user/{user_id}/online", response_model=OkResponse)
async def update_online_status(
    user_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> OkResponse:
    if user_id != principal.user_id:
        raise ForbiddenError("Cannot update another user's status")
    await auth_service.heartbeat(user_id, uow, clock)
    return OkResponse()
