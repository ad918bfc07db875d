"""consolegate -- WebSocket gateway for remote VM consoles.

Hands out opaque tokens that point at a console endpoint behind a
CONNECT-style tunnel, and bridges a WebSocket client to that endpoint
over TLS once it presents a token.
"""

__version__ = "0.1.0"
