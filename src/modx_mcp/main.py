"""Entry point for the MODX MCP proxy server."""

from __future__ import annotations

import argparse
import logging
import sys

from modx_mcp.fastmcp_adapter import build_fastmcp_app
from modx_mcp.session_client import ModxSessionClient
from modx_mcp.settings import load_settings

logger = logging.getLogger(__name__)

NETWORK_TRANSPORTS = ("http", "sse", "streamable-http")


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries the stdio transport."""
    logging.basicConfig(
        level=level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(name)s - [%(levelname)s] - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the server."""
    parser = argparse.ArgumentParser(description="MODX MCP proxy server")
    parser.add_argument(
        "--transport",
        choices=("stdio", *NETWORK_TRANSPORTS),
        default="stdio",
        help="MCP transport to serve (default: stdio).",
    )
    parser.add_argument("--host", help="Bind address for network transports.")
    parser.add_argument("--port", type=int, help="Port for network transports.")
    parser.add_argument("--path", help="URL path for network transports.")
    parser.add_argument("--base-url", help="MODX site URL (overrides MODX_BASE_URL).")
    parser.add_argument(
        "--connector-path",
        help="Manager connector path (overrides MODX_CONNECTOR_PATH).",
    )
    parser.add_argument(
        "--admin-path", help="Manager path (overrides MODX_ADMIN_PATH)."
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the FastMCP server until the transport closes."""
    args = build_parser().parse_args(argv)
    settings = load_settings(
        base_url=args.base_url,
        connector_path=args.connector_path,
        admin_path=args.admin_path,
    )
    configure_logging(settings.log_level)

    client = ModxSessionClient(settings)
    app, _ = build_fastmcp_app(client, settings)

    run_kwargs: dict[str, object] = {}
    if args.transport in NETWORK_TRANSPORTS:
        for key in ("host", "port", "path"):
            value = getattr(args, key)
            if value is not None:
                run_kwargs[key] = value

    logger.info(f"MODX Proxy MCP Server running on {args.transport}")
    app.run(transport=args.transport, **run_kwargs)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
