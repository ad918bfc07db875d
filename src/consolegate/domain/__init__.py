from consolegate.domain.models import (
    AddConsoleResponse,
    BridgeState,
    CloseCode,
    ConnectCode,
    ConsoleDescriptor,
)

__all__ = [
    "AddConsoleResponse",
    "BridgeState",
    "CloseCode",
    "ConnectCode",
    "ConsoleDescriptor",
]
