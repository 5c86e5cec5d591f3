from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from carenotify.core.connection_registry import WebSocketChannel
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket):
    """
    Live notification channel.

    Server greets with connection_established; the client binds itself with
    {"type": "auth", "userId": <id>} and gets auth_success back. Pushes arrive
    as {"type": "notification", ...}.
    """
    registry = websocket.app.state.connection_registry
    await websocket.accept()
    channel = WebSocketChannel(websocket)
    user_id = None

    await websocket.send_text(json.dumps({
        "type": "connection_established",
        "message": "Connected to notification service"
    }))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Invalid WebSocket message")
                continue

            if not isinstance(data, dict):
                logger.warning("Invalid WebSocket message")
                continue

            if data.get("type") == "auth" and data.get("userId") is not None:
                try:
                    new_user_id = int(data["userId"])
                except (TypeError, ValueError):
                    logger.warning(f"Invalid userId in auth message: {data.get('userId')!r}")
                    continue

                if user_id is not None and user_id != new_user_id:
                    await registry.unregister(user_id, channel)
                user_id = new_user_id
                await registry.register(user_id, channel)
                await websocket.send_text(json.dumps({
                    "type": "auth_success",
                    "message": "Authentication successful"
                }))
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        if user_id is not None:
            await registry.unregister(user_id, channel)
