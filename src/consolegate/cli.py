"""Command-line interface for consolegate.

Provides the main entry point for running the gateway server and for
inspecting the configuration it would run with.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="consolegate",
        description="WebSocket gateway for remote VM consoles",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/consolegate.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the gateway server")
    serve_parser.add_argument("--host", type=str, default=None, help="Override the listen host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override the listen port")

    subparsers.add_parser("show-config", help="Print the effective configuration as JSON")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the consolegate CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from consolegate.config.settings import load_settings
    from consolegate.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    if args.command == "show-config":
        print(settings.model_dump_json(indent=2))
        return

    setup_logging(settings.logging)

    if args.command == "serve":
        if args.host:
            settings.server.host = args.host
        if args.port:
            settings.server.port = args.port
        logger.info("Starting console gateway")
        from consolegate.gateway.server import serve
        serve(settings)


if __name__ == "__main__":
    main()
