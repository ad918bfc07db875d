"""Per-session console bridge.

A ConsoleBridge glues one ConsolePeer (the WebSocket client) to one
ConsoleTransport (the TLS stream to the console host). It first sends a
CONNECT request for the console path, swallows the upstream's HTTP
acceptance, then relays raw bytes in both directions.

State machine::

    HANDSHAKING --(200 OK + blank line seen)--> RELAYING
         |                                        |
         +--(eof / error / peer close / timeout)--+--> CLOSED

The chunk that completes the acceptance response is forwarded whole,
header bytes included, so a payload arriving in the same chunk is never
split or dropped.
"""

from __future__ import annotations

import asyncio
import logging

from consolegate.bridge.base import (
    ConsolePeer,
    ConsoleTransport,
    PeerClosedError,
    TransportError,
)
from consolegate.domain.models import BridgeState, CloseCode, ConsoleDescriptor

logger = logging.getLogger(__name__)

HANDSHAKE_PROTOCOL = "HTTP/1.0"
SUCCESS_MARKER = b"HTTP/1.1 200 OK"
HEADER_TERMINATOR = b"\r\n\r\n"

TRANSPORT_ERROR_REASON = "console transport error"
HANDSHAKE_TIMEOUT_REASON = "console handshake timeout"


def build_handshake(console_path: str, hostname: str) -> bytes:
    """CONNECT request asking the upstream for raw console access."""
    lines = [
        f"CONNECT {console_path} {HANDSHAKE_PROTOCOL}",
        f"Host: {hostname}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode()


def is_handshake_complete(buffer: bytes) -> bool:
    """True once ``buffer`` holds the success status and a header terminator."""
    return SUCCESS_MARKER in buffer and HEADER_TERMINATOR in buffer


class ConsoleBridge:
    """Handshake-then-relay state machine for a single console session.

    The ``on_*`` methods are the state machine's events and may be driven
    directly; ``run()`` drives them from the transport and the peer until
    the session closes.

    Args:
        descriptor: The console being bridged. Its ``transport`` and
            ``is_connected`` fields mirror this bridge while it is open.
        transport: Connected upstream stream, owned by the bridge.
        peer: The client connection.
        handshake_timeout: Seconds to wait for the acceptance response
            once ``run()`` starts. None waits forever.
    """

    def __init__(
        self,
        descriptor: ConsoleDescriptor,
        transport: ConsoleTransport,
        peer: ConsolePeer,
        handshake_timeout: float | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._transport = transport
        self._peer = peer
        self._handshake_timeout = handshake_timeout
        self._state = BridgeState.HANDSHAKING
        self._buffer = bytearray()
        self._transport_destroyed = False
        self._timeout_task: asyncio.Task[None] | None = None
        self._closed = asyncio.Event()

        descriptor.transport = transport
        descriptor.is_connected = True

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def descriptor(self) -> ConsoleDescriptor:
        return self._descriptor

    @property
    def handshake_buffer(self) -> bytes:
        """Everything received while handshaking."""
        return bytes(self._buffer)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def on_transport_ready(self) -> None:
        """Send the CONNECT request. The bridge stays HANDSHAKING."""
        if self._state is not BridgeState.HANDSHAKING:
            return
        await self._transport.write(
            build_handshake(self._descriptor.console_path, self._descriptor.hostname)
        )
        logger.debug(
            "Sent CONNECT %s to %s", self._descriptor.console_path, self._descriptor.hostname
        )

    async def on_transport_data(self, chunk: bytes) -> None:
        """Handle one chunk from the upstream."""
        if self._state is BridgeState.CLOSED:
            return
        if self._state is BridgeState.HANDSHAKING:
            self._buffer += chunk
            if not is_handshake_complete(self._buffer):
                return
            self._enter_relaying()
        await self._send_to_peer(chunk)

    async def on_peer_message(self, data: bytes) -> None:
        """Forward a client message upstream, in any open state."""
        if self._state is BridgeState.CLOSED:
            return
        try:
            await self._transport.write(data)
        except TransportError as e:
            await self.on_transport_error(e)

    async def on_transport_eof(self) -> None:
        if self._state is BridgeState.CLOSED:
            return
        logger.info("Console %s: upstream ended", self._token)
        await self._close(CloseCode.NORMAL)

    async def on_transport_error(self, exc: BaseException) -> None:
        if self._state is BridgeState.CLOSED:
            return
        logger.error("Console %s: transport error: %s", self._token, exc)
        await self._close(CloseCode.GOING_AWAY, TRANSPORT_ERROR_REASON)

    async def on_peer_closed(self) -> None:
        if self._state is BridgeState.CLOSED:
            return
        logger.info("Console %s: client disconnected", self._token)
        await self._close()

    async def on_handshake_timeout(self) -> None:
        if self._state is not BridgeState.HANDSHAKING:
            return
        logger.warning(
            "Console %s: no acceptance from %s within %ss (%d bytes buffered)",
            self._token,
            self._descriptor.hostname,
            self._handshake_timeout,
            len(self._buffer),
        )
        await self._close(CloseCode.GOING_AWAY, HANDSHAKE_TIMEOUT_REASON)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Handshake and relay until either side closes."""
        try:
            await self.on_transport_ready()
        except TransportError as e:
            await self.on_transport_error(e)
            return

        if self._handshake_timeout is not None and self._state is BridgeState.HANDSHAKING:
            self._timeout_task = asyncio.create_task(self._expire_handshake())

        upstream = asyncio.create_task(self._pump_transport())
        downstream = asyncio.create_task(self._pump_peer())
        closed = asyncio.create_task(self._closed.wait())
        tasks = (upstream, downstream, closed)
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is closed or task.cancelled() or task.exception() is None:
                    continue
                logger.error(
                    "Console %s: relay task failed", self._token, exc_info=task.exception()
                )
                await self.on_transport_error(task.exception())
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if self._state is not BridgeState.CLOSED:
                await self.on_peer_closed()

    async def _pump_transport(self) -> None:
        while self._state is not BridgeState.CLOSED:
            try:
                chunk = await self._transport.read()
            except TransportError as e:
                await self.on_transport_error(e)
                return
            if not chunk:
                await self.on_transport_eof()
                return
            await self.on_transport_data(chunk)

    async def _pump_peer(self) -> None:
        while self._state is not BridgeState.CLOSED:
            data = await self._peer.receive()
            if data is None:
                await self.on_peer_closed()
                return
            await self.on_peer_message(data)

    async def _expire_handshake(self) -> None:
        await asyncio.sleep(self._handshake_timeout)
        await self.on_handshake_timeout()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _token(self) -> str:
        return self._descriptor.id[:8]

    def _enter_relaying(self) -> None:
        self._state = BridgeState.RELAYING
        self._cancel_timer()
        logger.info(
            "Console %s: handshake with %s complete, relaying",
            self._token,
            self._descriptor.hostname,
        )

    async def _send_to_peer(self, chunk: bytes) -> None:
        try:
            await self._peer.send(chunk)
        except PeerClosedError:
            await self.on_peer_closed()

    def _cancel_timer(self) -> None:
        task = self._timeout_task
        self._timeout_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _close(self, code: int | None = None, reason: str = "") -> None:
        """Enter CLOSED, destroy the transport once and optionally close the peer."""
        self._state = BridgeState.CLOSED
        self._cancel_timer()
        if not self._transport_destroyed:
            self._transport_destroyed = True
            self._transport.destroy()
        # another bridge may have taken over the descriptor meanwhile
        if self._descriptor.transport is self._transport:
            self._descriptor.transport = None
            self._descriptor.is_connected = False
        try:
            if code is not None:
                await self._peer.close(code, reason)
        finally:
            self._closed.set()
