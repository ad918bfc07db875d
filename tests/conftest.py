"""Shared test fixtures for the consolegate test suite.

Provides descriptors, a populated registry, and mock transports/peers
used across the bridge and gateway tests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from consolegate.bridge.base import ConsolePeer, ConsoleTransport
from consolegate.domain.models import ConsoleDescriptor
from consolegate.registry import TokenRegistry


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def descriptor() -> ConsoleDescriptor:
    """A console on vm1 behind a XAPI-style CONNECT path."""
    return ConsoleDescriptor(
        id="0123456789abcdef0123456789abcdef",
        hostname="vm1.example.net",
        port=443,
        console_path="/console?ref=OpaqueRef:1234",
    )


@pytest.fixture
def registry() -> TokenRegistry:
    return TokenRegistry()


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_transport() -> AsyncMock:
    """A mock ConsoleTransport; destroy() is a plain sync mock."""
    transport = AsyncMock(spec=ConsoleTransport)
    transport.describe.return_value = "tls://vm1.example.net"
    return transport


@pytest.fixture
def mock_peer() -> AsyncMock:
    """A mock ConsolePeer with all async methods stubbed."""
    return AsyncMock(spec=ConsolePeer)
