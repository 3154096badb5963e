"""
WebSocket event envelopes.

Inbound frames are ``{"action": ..., "data": {...}}`` and are decoded into one
of a closed set of event models, discriminated on ``action``. Outbound frames
are ``{"type": ..., "data": {...}}``.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PayloadError

from therian.errors import ValidationError
from therian.schemas.message import RoomMessageResponse, DirectMessageResponse
from therian.schemas.user import PublicUserResponse


# Inbound

class AuthData(BaseModel):
    token: str

class JoinRoomData(BaseModel):
    room_id: str

class JoinDirectData(BaseModel):
    chat_id: str

class SendRoomMessageData(BaseModel):
    room_id: str
    text: str

class SendDirectMessageData(BaseModel):
    chat_id: str
    text: str

class AuthEvent(BaseModel):
    action: Literal["auth"]
    data: AuthData

class JoinRoomEvent(BaseModel):
    action: Literal["join_room"]
    data: JoinRoomData

class JoinDirectEvent(BaseModel):
    action: Literal["join_dm"]
    data: JoinDirectData

class SendRoomMessageEvent(BaseModel):
    action: Literal["send_message"]
    data: SendRoomMessageData

class SendDirectMessageEvent(BaseModel):
    action: Literal["send_dm"]
    data: SendDirectMessageData

InboundEvent = Annotated[
    Union[AuthEvent, JoinRoomEvent, JoinDirectEvent, SendRoomMessageEvent, SendDirectMessageEvent],
    Field(discriminator="action"),
]

_inbound_adapter = TypeAdapter(InboundEvent)


def decode_inbound(raw: str) -> InboundEvent:
    try:
        return _inbound_adapter.validate_json(raw)
    except PayloadError as e:
        raise ValidationError(f"Malformed event: {e.error_count()} error(s)") from e


# Outbound

class ReasonData(BaseModel):
    reason: str

class RetractionData(BaseModel):
    message_id: int
    room_id: str

class AuthOk(BaseModel):
    type: Literal["auth_ok"] = "auth_ok"
    data: PublicUserResponse

class AuthFailed(BaseModel):
    type: Literal["auth_error"] = "auth_error"
    data: ReasonData

class BannedNotice(BaseModel):
    type: Literal["banned"] = "banned"
    data: dict = Field(default_factory=dict)

class NewRoomMessage(BaseModel):
    type: Literal["new_message"] = "new_message"
    data: RoomMessageResponse

class NewDirectMessage(BaseModel):
    type: Literal["new_dm"] = "new_dm"
    data: DirectMessageResponse

class MessageRetracted(BaseModel):
    type: Literal["message_deleted"] = "message_deleted"
    data: RetractionData

class SendFailed(BaseModel):
    type: Literal["message_error"] = "message_error"
    data: ReasonData

OutboundEvent = Union[AuthOk, AuthFailed, BannedNotice, NewRoomMessage, NewDirectMessage, MessageRetracted, SendFailed]
