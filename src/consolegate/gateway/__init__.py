"""HTTP/WebSocket gateway for consolegate.

Public API:
    create_app -- FastAPI application factory
    WebSocketPeer -- Starlette WebSocket as a ConsolePeer
"""

from consolegate.gateway.peer import WebSocketPeer
from consolegate.gateway.server import create_app, serve

__all__ = ["WebSocketPeer", "create_app", "serve"]
