"""Adapters for exposing MODX processor tools via FastMCP."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import anyio
import mcp.types as mt
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult

from modx_mcp.server import ToolCallResponse, ToolDispatcher
from modx_mcp.session_client import ModxSessionClient
from modx_mcp.settings import Settings
from modx_mcp.tools import ToolDescriptor

logger = logging.getLogger(__name__)


def to_tool_result(response: ToolCallResponse) -> ToolResult:
    """Convert a dispatcher response into a FastMCP result.

    Raises:
        ToolError: If the response is an error; the message is the JSON
            failure payload so the host receives it verbatim.

    """
    if response.is_error:
        raise ToolError(response.text)
    return ToolResult(content=[mt.TextContent(type="text", text=response.text)])


class ToolDescriptorAdapter(Tool):
    """Expose a :class:`ToolDescriptor` as a FastMCP tool."""

    def __init__(self, descriptor: ToolDescriptor, dispatcher: ToolDispatcher) -> None:
        """Create a FastMCP tool wrapper for the provided descriptor."""
        super().__init__(
            name=descriptor.name,
            description=descriptor.description,
            parameters=descriptor.input_schema,
            tags=set(),
        )
        self._dispatcher = dispatcher

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        """Delegate to the dispatcher."""
        response = await self._dispatcher.call_tool(self.name, arguments)
        return to_tool_result(response)


class ProcessorToolsMiddleware(Middleware):
    """Serve ``tools/list`` and ``tools/call`` from a :class:`ToolDispatcher`.

    The processor catalog is only known once a session exists, so tools are
    not registered with the app; every listing is computed from the
    dispatcher and every call is routed to it.
    """

    def __init__(self, dispatcher: ToolDispatcher) -> None:
        self._dispatcher = dispatcher

    async def on_list_tools(
        self,
        context: MiddlewareContext[mt.ListToolsRequest],
        call_next: CallNext[mt.ListToolsRequest, Sequence[Tool]],
    ) -> Sequence[Tool]:
        descriptors = await self._dispatcher.available_tools()
        return [
            ToolDescriptorAdapter(descriptor, self._dispatcher)
            for descriptor in descriptors
        ]

    async def on_call_tool(
        self,
        context: MiddlewareContext[mt.CallToolRequestParams],
        call_next: CallNext[mt.CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        params = context.message
        response = await self._dispatcher.call_tool(params.name, params.arguments or {})
        return to_tool_result(response)


async def auto_login(client: ModxSessionClient, settings: Settings) -> bool:
    """Log in with configured credentials, if any.

    Returns:
        Whether a session is active afterwards.

    """
    if client.is_authenticated:
        return True
    if not settings.has_credentials:
        logger.warning("No MODX credentials provided - only session info is available")
        return False

    logger.info("Attempting auto-login with provided credentials...")
    result = await client.authenticate(settings.username or "", settings.password or "")
    if result.success:
        logger.info("Auto-login successful")
    else:
        logger.error(f"Auto-login failed: {result.message}")
    return result.success


def build_fastmcp_app(
    client: ModxSessionClient, settings: Settings | None = None
) -> tuple[FastMCP, ToolDispatcher]:
    """Create a FastMCP server instance bridging to the MODX session.

    On shutdown the session is logged out and the HTTP client closed.

    Args:
        client: Session client shared by every request.
        settings: When given, its credentials are used for auto-login on
            startup.

    """
    dispatcher = ToolDispatcher(client)

    @asynccontextmanager
    async def lifespan(_app: FastMCP) -> AsyncIterator[None]:
        if settings is not None:
            await auto_login(client, settings)
        try:
            yield
        finally:
            with anyio.CancelScope(shield=True):
                if client.is_authenticated:
                    await client.logout()
                await client.aclose()

    app = FastMCP(
        name="modx-proxy",
        instructions="MODX manager processors exposed over the Model Context Protocol.",
        lifespan=lifespan,
    )
    app.add_middleware(ProcessorToolsMiddleware(dispatcher))
    return app, dispatcher
