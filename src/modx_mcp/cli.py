"""Command-line interface for inspecting a MODX installation's tool catalog."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx

from modx_mcp.server import ToolDispatcher
from modx_mcp.session_client import ModxSessionClient
from modx_mcp.settings import Settings, load_settings


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description="Log into MODX and inspect the generated MCP tools."
    )
    parser.add_argument(
        "--catalog",
        action="store_true",
        help="Print the available tool catalog as JSON.",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Force a fresh processor discovery before printing the catalog.",
    )
    parser.add_argument(
        "--call", metavar="TOOL", help="Call one tool and print the result."
    )
    parser.add_argument(
        "--arguments",
        default="{}",
        help="JSON object of arguments for --call (default: {}).",
    )
    parser.add_argument("--base-url", help="MODX site URL (overrides MODX_BASE_URL).")
    return parser


async def run(
    args: argparse.Namespace,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Log in, perform the requested action and log out."""
    if not settings.has_credentials:
        print("MODX_USERNAME and MODX_PASSWORD must be set", file=sys.stderr)
        return 1

    async with ModxSessionClient(settings, transport=transport) as client:
        login = await client.authenticate(
            settings.username or "", settings.password or ""
        )
        if not login.success:
            print(login.message, file=sys.stderr)
            return 1
        try:
            return await _run_action(args, ToolDispatcher(client))
        finally:
            await client.logout()


async def _run_action(args: argparse.Namespace, dispatcher: ToolDispatcher) -> int:
    client = dispatcher.client
    if args.refresh:
        await client.list_processors(refresh=True)

    if args.call:
        arguments: dict[str, Any] = json.loads(args.arguments)
        # Resolution needs the catalog in the cache.
        await dispatcher.available_tools()
        response = await dispatcher.call_tool(args.call, arguments)
        print(json.dumps(response.to_dict(), indent=2))
        return 1 if response.is_error else 0

    if args.catalog:
        print(json.dumps(await dispatcher.to_catalog(), indent=2))
        return 0

    print(json.dumps(client.get_session_info().to_payload(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        arguments = json.loads(args.arguments)
    except json.JSONDecodeError:
        parser.error("--arguments must be a JSON object")
    if not isinstance(arguments, dict):
        parser.error("--arguments must be a JSON object")

    settings = load_settings(base_url=args.base_url)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
