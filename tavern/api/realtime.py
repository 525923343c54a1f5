"""WebSocket channel for live notifications."""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tavern.core.errors import AuthenticationError
from tavern.core.logging import get_logger
from tavern.core.security import decode_access_token
from tavern.services.notification_hub import NotificationHub, room_for

logger = get_logger(__name__)

router = APIRouter(tags=["realtime"])

CLOSE_UNAUTHORIZED = 4401


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket) -> None:
    """Authenticate with ``?token=<jwt>`` then receive pushes for that user.

    The first server message is ``connected``, sent once the socket has
    joined its room. Client messages are ignored; the socket stays open
    until the client disconnects.
    """
    await websocket.accept()

    token = websocket.query_params.get("token")
    try:
        if not token:
            raise AuthenticationError("Missing token")
        identity = decode_access_token(token)
    except AuthenticationError as exc:
        await websocket.send_json({"event": "error", "data": {"message": exc.message}})
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return

    hub: NotificationHub = websocket.app.state.notification_hub
    hub.join(identity.user_id, websocket)
    await websocket.send_json({"event": "connected", "data": {"room": room_for(identity.user_id)}})
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Socket for user %s disconnected", identity.user_id)
    finally:
        hub.leave(identity.user_id, websocket)
