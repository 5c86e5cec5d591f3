import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)


class LiveChannel(Protocol):
    """An open duplex connection to one client session."""

    @property
    def is_open(self) -> bool: ...

    async def send(self, text: str) -> None: ...


class WebSocketChannel:
    """LiveChannel backed by a Starlette/FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, text: str) -> None:
        await self.websocket.send_text(text)


class ConnectionRegistry:
    """
    Maps a user id to at most one live channel.

    Built once per process (see main.lifespan) and handed to whoever needs
    to push. Pushing is best-effort: no queue, no retry.
    """

    def __init__(self):
        self._channels: Dict[int, LiveChannel] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: int, channel: LiveChannel) -> None:
        async with self._lock:
            replaced = self._channels.get(user_id)
            self._channels[user_id] = channel
        if replaced is not None and replaced is not channel:
            logger.info(f"🔁 Replaced live channel for user {user_id}")
        else:
            logger.info(f"🔌 Live channel registered for user {user_id}")

    async def unregister(self, user_id: int, channel: Optional[LiveChannel] = None) -> None:
        """
        Drop the binding for user_id. When channel is given, the binding is only
        dropped if it still points at that channel.
        """
        async with self._lock:
            current = self._channels.get(user_id)
            if current is None:
                return
            if channel is not None and current is not channel:
                return
            del self._channels[user_id]
        logger.info(f"🔌 Live channel removed for user {user_id}")

    async def push(self, user_id: int, message: Dict[str, Any]) -> bool:
        """Send message to the user's channel if one is bound and open. Returns True if sent."""
        async with self._lock:
            channel = self._channels.get(user_id)

        if channel is None or not channel.is_open:
            return False

        try:
            await channel.send(json.dumps(message, default=str))
            return True
        except Exception as e:
            logger.warning(f"⚠️ Push to user {user_id} dropped: {e}")
            return False

    async def is_connected(self, user_id: int) -> bool:
        async with self._lock:
            channel = self._channels.get(user_id)
        return channel is not None and channel.is_open

    async def connected_users(self) -> List[int]:
        async with self._lock:
            return [uid for uid, ch in self._channels.items() if ch.is_open]
