from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from group_chat.domain.value_objects.enums import DeliveryStatus


class MessageResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    text: str
    is_anonymous: bool
    status: DeliveryStatus
    created_at: datetime
    user_name: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class SendMessageRequest(BaseModel):
    text: str = ""
    is_anonymous: bool = False
    user_id: int | None = None
    temp_id: str | None = Field(None, alias="tempId")

    model_config = ConfigDict(populate_by_name=True)


class SendMessageResponse(BaseModel):
    message: MessageResponse
    temp_id: str | None = Field(None, alias="tempId")

    model_config = ConfigDict(populate_by_name=True)


class MarkReadRequest(BaseModel):
    message_ids: list[int] = Field(default_factory=list, alias="messageIds")

    model_config = ConfigDict(populate_by_name=True)
