import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends

from therian.connection import WebSocketConnection
from therian.errors import AuthError, AuthorizationError, StorageError, ValidationError
from therian.schemas.events import (
    AuthEvent,
    AuthFailed,
    AuthOk,
    JoinDirectEvent,
    JoinRoomEvent,
    ReasonData,
    SendDirectMessageEvent,
    SendRoomMessageEvent,
    decode_inbound,
)
from therian.websocket_manager import ChatHub, get_hub

logger = logging.getLogger(__name__)

router = APIRouter()

@router.websocket("/chat")
async def websocket_chat(websocket: WebSocket, hub: ChatHub = Depends(get_hub)):
    connection = await hub.connect(websocket)
    try:
        while not connection.closed:
            data = await websocket.receive_text()
            await handle_websocket_message(hub, connection, data)
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(connection)

async def handle_websocket_message(hub: ChatHub, connection: WebSocketConnection, data: str):
    try:
        event = decode_inbound(data)
    except ValidationError as e:
        logger.debug(f"Dropped frame on {connection.id}: {e}")
        return

    if isinstance(event, AuthEvent):
        await handle_auth(hub, connection, event.data.token)
        return

    session = hub.registry.lookup(connection)
    if session is None:
        logger.debug(f"Dropped {event.action} on unauthenticated connection {connection.id}")
        return

    try:
        if isinstance(event, JoinRoomEvent):
            await hub.membership.join_room(session, event.data.room_id)

        elif isinstance(event, JoinDirectEvent):
            await hub.membership.join_direct(session, event.data.chat_id)

        elif isinstance(event, SendRoomMessageEvent):
            await hub.dispatcher.send_room_message(session, event.data.room_id, event.data.text)

        elif isinstance(event, SendDirectMessageEvent):
            await hub.dispatcher.send_direct_message(session, event.data.chat_id, event.data.text)

    except (ValidationError, AuthorizationError) as e:
        logger.debug(f"Dropped {event.action} from {session.user_id}: {e}")
    except StorageError as e:
        # the sender has already been sent a message_error
        logger.debug(f"{event.action} from {session.user_id} not delivered: {e}")

async def handle_auth(hub: ChatHub, connection: WebSocketConnection, token: str):
    try:
        session = await hub.registry.authenticate(connection, token)
    except AuthError as e:
        logger.info(f"Connection {connection.id} failed authentication: {e.reason.value}")
        await connection.send_event(AuthFailed(data=ReasonData(reason=e.reason.value)))
        return
    except StorageError as e:
        logger.warning(f"Connection {connection.id} could not be authenticated: {e}")
        await connection.send_event(AuthFailed(data=ReasonData(reason="unavailable")))
        return

    await connection.send_event(AuthOk(data=session.profile()))

@router.get("/online-users")
async def get_online_users(hub: ChatHub = Depends(get_hub)):
    connected_users = hub.get_connected_users()
    return {"online_users": connected_users, "count": len(connected_users)}
