"""Starlette WebSocket adapter for the bridge's ConsolePeer interface."""

from __future__ import annotations

import logging

from starlette.websockets import WebSocket, WebSocketDisconnect

from consolegate.bridge.base import ConsolePeer, PeerClosedError

logger = logging.getLogger(__name__)


class WebSocketPeer(ConsolePeer):
    """Presents an accepted WebSocket as a ConsolePeer.

    Binary and text frames are both handed to the bridge as bytes; text is
    UTF-8 encoded. Upstream data always goes out as binary frames.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def send(self, data: bytes) -> None:
        if self._closed:
            raise PeerClosedError("WebSocket already closed")
        try:
            await self._websocket.send_bytes(data)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            self._closed = True
            raise PeerClosedError(f"WebSocket send failed: {e}") from e

    async def receive(self) -> bytes | None:
        if self._closed:
            return None
        try:
            message = await self._websocket.receive()
        except (WebSocketDisconnect, RuntimeError):
            self._closed = True
            return None
        if message["type"] == "websocket.disconnect":
            self._closed = True
            return None
        if message.get("bytes") is not None:
            return message["bytes"]
        text = message.get("text")
        return text.encode() if text is not None else b""

    async def close(self, code: int, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._websocket.close(code=int(code), reason=reason or None)
        except (RuntimeError, OSError) as e:
            logger.debug("WebSocket close ignored: %s", e)
