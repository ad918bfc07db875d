"""In-memory registry of pending console descriptors.

Tokens are 128 random bits rendered as lowercase hex. Descriptors live
until the registry is cleared or the process exits; there is no expiry
and a token may be used any number of times.
"""

from __future__ import annotations

import logging
import secrets
import threading

from consolegate.domain.models import ConsoleDescriptor

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


def generate_token() -> str:
    """Return a fresh 32-character lowercase hex token."""
    return secrets.token_hex(TOKEN_BYTES)


class TokenRegistry:
    """Ordered collection of ConsoleDescriptors keyed by token.

    All mutation goes through a lock so a single writer is guaranteed
    even when sync route handlers run in a threadpool.
    """

    def __init__(self) -> None:
        self._consoles: list[ConsoleDescriptor] = []
        self._lock = threading.Lock()

    def register(self, hostname: str, port: int, path: str) -> str:
        """Store a new descriptor and return its token."""
        descriptor = ConsoleDescriptor(
            id=generate_token(),
            hostname=hostname,
            port=port,
            console_path=path,
        )
        with self._lock:
            self._consoles.append(descriptor)
        logger.info("Registered console %s -> %s%s", descriptor.id[:8], hostname, path)
        return descriptor.id

    def lookup(self, token: str | None) -> ConsoleDescriptor | None:
        """Find the descriptor for ``token``; None if empty or unknown."""
        if not token:
            return None
        with self._lock:
            for descriptor in self._consoles:
                if descriptor.id == token:
                    return descriptor
        return None

    def list(self) -> list[ConsoleDescriptor]:
        """All descriptors in insertion order."""
        with self._lock:
            return list(self._consoles)

    def clear(self) -> None:
        """Drop every descriptor. Active bridges keep the one they hold."""
        with self._lock:
            count = len(self._consoles)
            self._consoles.clear()
        logger.info("Cleared %d console(s)", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._consoles)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self.lookup(token) is not None
