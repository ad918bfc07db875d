"""Core domain models for consolegate.

These models describe a registered console (where the upstream lives and
which path to request), the lifecycle states of a bridge, and the
payloads returned to HTTP clients.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class BridgeState(str, enum.Enum):
    """Lifecycle of a console bridge. States are never re-entered."""

    HANDSHAKING = "handshaking"  # CONNECT sent, waiting for 200 OK
    RELAYING = "relaying"  # Raw bytes flow both ways
    CLOSED = "closed"


class CloseCode(enum.IntEnum):
    """WebSocket close codes used by the gateway."""

    NORMAL = 1000
    GOING_AWAY = 1001
    UNSUPPORTED_DATA = 1003


# ---------------------------------------------------------------------------
# Console models
# ---------------------------------------------------------------------------


class ConsoleDescriptor(BaseModel):
    """A registered console endpoint, referenced by an opaque token.

    ``port`` is kept for listing only; bridges connect on the configured
    upstream port. ``transport`` is set by the active bridge and is never
    serialized directly; listings show its summary as ``socket``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(serialization_alias="uuid", description="32 lowercase hex characters")
    hostname: str = Field(description="Upstream host to TLS-connect to")
    port: int = Field(description="Port supplied at registration")
    console_path: str = Field(
        serialization_alias="consolePath", description="Request-target of the CONNECT handshake"
    )
    transport: Any = Field(default=None, exclude=True)
    is_connected: bool | None = Field(default=None, serialization_alias="isConnected")

    @computed_field(alias="socket")  # type: ignore[misc]
    @property
    def transport_handle(self) -> str | None:
        if self.transport is None:
            return None
        return self.transport.describe()

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


class AddConsoleResponse(BaseModel):
    uuid: str
    code: str = Field(description="base64 JSON telling a client where to connect")


class ConnectCode(BaseModel):
    """Decoded form of AddConsoleResponse.code."""

    host: str | None = None
    port: int | None = None
    path: str = "/console"
    uuid: str
