"""FastAPI HTTP/WebSocket server for the console gateway.

Clients register a console with ``/add`` and get back a token plus a
base64 ``code`` telling a web console where to connect. Opening the
``/console`` WebSocket with that token bridges the client to the console
host over TLS.

    GET  /                      -> welcome text
    GET  /add?host=&port=&path= -> {"uuid": ..., "code": ...}
    GET  /list                  -> registered consoles
    GET  /clear                 -> drops every console, returns []
    WS   /console?uuid=         -> console byte stream
"""

from __future__ import annotations

import base64
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

import uvicorn
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from consolegate.bridge.base import ConsoleTransport, TransportError
from consolegate.bridge.session import TRANSPORT_ERROR_REASON, ConsoleBridge
from consolegate.bridge.transport import TlsTransport
from consolegate.config.settings import PublicConfig, Settings
from consolegate.domain.models import AddConsoleResponse, CloseCode, ConnectCode
from consolegate.gateway.peer import WebSocketPeer
from consolegate.registry import TokenRegistry

logger = logging.getLogger(__name__)

CONSOLE_ROUTE = "/console"
INVALID_TOKEN_REASON = "invalid console uuid"

Connector = Callable[[str, int], Awaitable[ConsoleTransport]]


def build_connect_code(public: PublicConfig, token: str) -> str:
    """base64 JSON payload pointing a web console at this gateway."""
    payload = ConnectCode(host=public.host, port=public.port, path=CONSOLE_ROUTE, uuid=token)
    return base64.b64encode(payload.model_dump_json().encode()).decode("ascii")


def create_app(
    settings: Settings | None = None,
    registry: TokenRegistry | None = None,
    connector: Connector | None = None,
) -> FastAPI:
    """Create the gateway application.

    Args:
        settings: Effective configuration. Defaults to ``Settings()``.
        registry: Token registry (for testing). A fresh one by default.
        connector: Coroutine function opening the upstream transport
            for ``(hostname, port)`` (for testing). Defaults to TLS.
    """
    settings = settings or Settings()
    upstream = settings.upstream

    async def open_tls(hostname: str, port: int) -> ConsoleTransport:
        return await TlsTransport.connect(
            hostname,
            port,
            verify=upstream.verify_tls,
            timeout=upstream.connect_timeout,
            chunk_size=upstream.read_chunk_size,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Gateway started (upstream port %d, handshake timeout %s)",
            upstream.port,
            upstream.handshake_timeout,
        )
        yield
        logger.info("Gateway stopped with %d registered console(s)", len(app.state.registry))

    app = FastAPI(
        title="consolegate",
        description="WebSocket gateway for remote VM consoles",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.registry = registry if registry is not None else TokenRegistry()
    app.state.connector = connector or open_tls

    @app.get("/", response_class=PlainTextResponse)
    async def welcome() -> str:
        return settings.server.welcome_message

    @app.get("/list")
    async def list_consoles() -> list[dict[str, Any]]:
        reg: TokenRegistry = app.state.registry
        return [d.to_wire() for d in reg.list()]

    @app.get("/clear")
    async def clear_consoles() -> list[dict[str, Any]]:
        reg: TokenRegistry = app.state.registry
        reg.clear()
        return [d.to_wire() for d in reg.list()]

    @app.get("/add", response_model=None)
    async def add_console(
        host: str | None = None,
        port: str | None = None,
        path: str | None = None,
    ) -> AddConsoleResponse | PlainTextResponse:
        if not host or not port or not path:
            return PlainTextResponse("error: host, port, path is required.", status_code=400)
        try:
            port_number = int(port)
        except ValueError:
            return PlainTextResponse("error: port must be an integer.", status_code=400)

        reg: TokenRegistry = app.state.registry
        token = reg.register(host, port_number, path)
        return AddConsoleResponse(uuid=token, code=build_connect_code(settings.public, token))

    @app.websocket(CONSOLE_ROUTE)
    async def console(websocket: WebSocket) -> None:
        await websocket.accept()
        peer = WebSocketPeer(websocket)

        reg: TokenRegistry = app.state.registry
        descriptor = reg.lookup(websocket.query_params.get("uuid"))
        if descriptor is None:
            logger.warning("Rejected console connection with unknown token")
            await peer.close(CloseCode.UNSUPPORTED_DATA, INVALID_TOKEN_REASON)
            return

        try:
            transport = await app.state.connector(descriptor.hostname, upstream.port)
        except TransportError as e:
            logger.error("Console %s: %s", descriptor.id[:8], e)
            await peer.close(CloseCode.GOING_AWAY, TRANSPORT_ERROR_REASON)
            return

        bridge = ConsoleBridge(
            descriptor,
            transport,
            peer,
            handshake_timeout=upstream.handshake_timeout,
        )
        await bridge.run()
        logger.debug("Console %s: session finished", descriptor.id[:8])

    return app


def serve(settings: Settings) -> None:
    """Run the gateway with uvicorn; exit with status 1 if it cannot start.

    uvicorn reports a bind failure itself and raises SystemExit with its
    own startup-failure code, which is normalised to 1 here. Logging is
    left to ``setup_logging`` (``log_config=None``).
    """
    app = create_app(settings=settings)
    host, port = settings.server.host, settings.server.port
    logger.info("Listening on %s:%d", host, port)
    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_config=None,
            log_level=settings.logging.level.lower(),
        )
    except SystemExit as e:
        if not e.code:
            raise
        logger.error("Gateway failed to start on %s:%d (uvicorn exit %s)", host, port, e.code)
        sys.exit(1)


def main() -> None:
    """Entry point for running the gateway standalone."""
    serve(Settings())


if __name__ == "__main__":
    main()
