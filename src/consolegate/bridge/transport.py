"""TLS transport to an upstream console host.

Wraps an asyncio stream pair opened with ``asyncio.open_connection``.
Certificate validation is off by default because console hosts commonly
present self-signed certificates.
"""

from __future__ import annotations

import asyncio
import logging
import ssl

from consolegate.bridge.base import ConsoleTransport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65536


def build_ssl_context(verify: bool = False) -> ssl.SSLContext:
    """Client-side SSL context, optionally without certificate checks."""
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class TlsTransport(ConsoleTransport):
    """ConsoleTransport backed by an asyncio TLS stream."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        hostname: str = "",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._hostname = hostname
        self._chunk_size = chunk_size
        self._destroyed = False

    @classmethod
    async def connect(
        cls,
        hostname: str,
        port: int,
        *,
        verify: bool = False,
        timeout: float = 10.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> TlsTransport:
        """Open a TLS connection to ``hostname:port``.

        Raises:
            TransportError: On DNS, TCP, TLS failure or timeout.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    hostname,
                    port,
                    ssl=build_ssl_context(verify),
                    server_hostname=hostname,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out connecting to {hostname}:{port}", hostname=hostname
            ) from e
        except (OSError, ssl.SSLError) as e:
            raise TransportError(
                f"Cannot connect to {hostname}:{port}: {e}", hostname=hostname
            ) from e
        logger.info("TLS connection established to %s:%d", hostname, port)
        return cls(reader, writer, hostname=hostname, chunk_size=chunk_size)

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    async def read(self) -> bytes:
        if self._destroyed:
            return b""
        try:
            return await self._reader.read(self._chunk_size)
        except (OSError, ssl.SSLError) as e:
            raise TransportError(f"Read from {self._hostname} failed: {e}", hostname=self._hostname) from e

    async def write(self, data: bytes) -> None:
        if self._destroyed:
            raise TransportError("Transport is destroyed", hostname=self._hostname)
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (OSError, ssl.SSLError) as e:
            raise TransportError(f"Write to {self._hostname} failed: {e}", hostname=self._hostname) from e

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._writer.close()
        logger.debug("TLS transport to %s destroyed", self._hostname)

    def describe(self) -> str:
        peer = self._writer.get_extra_info("peername")
        if peer:
            return f"tls://{self._hostname} ({peer[0]}:{peer[1]})"
        return f"tls://{self._hostname}"
