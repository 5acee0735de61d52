"""Tool registry and dispatcher for MODX processors.

The dispatcher answers the two requests an MCP host sends: listing tools and
calling one. Listing always offers the session-info tool and, once a session
is established, one generated tool per cached processor. Calls are resolved
back to a processor and forwarded to the :class:`ModxSessionClient`. The
dispatcher is free of transport details; see
:mod:`modx_mcp.fastmcp_adapter` for the MCP binding.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from modx_mcp.errors import ModxError, UnknownToolError
from modx_mcp.session_client import ModxSessionClient
from modx_mcp.tools import (
    SESSION_INFO_TOOL,
    ToolDescriptor,
    resolve_tool_name,
    session_info_tool,
    to_tool_descriptor,
)

logger = logging.getLogger(__name__)


@dataclass
class ToolCallResponse:
    """Result returned by a tool call.

    Attributes:
        name: Name of the tool that was called.
        payload: Structured payload, serialized as the text content.
        is_error: Whether the transport should flag the response as an error.

    """

    name: str
    payload: dict[str, Any]
    is_error: bool = False

    @property
    def text(self) -> str:
        """Payload rendered as indented JSON."""
        return json.dumps(self.payload, indent=2, default=str)

    def to_dict(self) -> dict[str, Any]:
        """Serialize as a ``tools/call`` result.

        Returns:
            Mapping with a single text content block, plus ``isError`` when
            the call failed.

        """
        response: dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            response["isError"] = True
        return response


class ToolDispatcher:
    """In-memory registry and dispatcher for processor tools.

    Tools are computed on every listing from the client's processor cache
    rather than registered up front, so the catalog follows the session
    state.
    """

    def __init__(self, client: ModxSessionClient) -> None:
        """Bind the dispatcher to a session client."""
        self._client = client

    @property
    def client(self) -> ModxSessionClient:
        return self._client

    async def available_tools(self) -> list[ToolDescriptor]:
        """List the tools currently on offer.

        Without a session only the session-info tool is returned and no
        remote call is made. A failed discovery degrades to the same list.

        Returns:
            Session-info tool followed by one tool per cached processor, in
            catalog order.

        """
        tools = [session_info_tool()]
        if not self._client.is_authenticated:
            logger.info("Not authenticated - returning only session info tool")
            return tools

        try:
            listing = await self._client.list_processors()
        except ModxError as exc:
            logger.warning(f"Error loading processors: {exc}")
            return tools
        except Exception:
            logger.exception("Unexpected error loading processors")
            return tools

        tools.extend(to_tool_descriptor(processor) for processor in listing.processors)
        logger.debug(f"Created {len(tools) - 1} dynamic tools")
        return tools

    async def list_tools(self) -> dict[str, list[dict[str, Any]]]:
        """Answer a ``tools/list`` request."""
        return {"tools": [tool.metadata() for tool in await self.available_tools()]}

    async def to_catalog(self) -> dict[str, dict[str, Any]]:
        """Produce a catalog for discovery.

        Returns:
            Mapping of tool names to their metadata.

        """
        return {tool.name: tool.metadata() for tool in await self.available_tools()}

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolCallResponse:
        """Execute a tool and wrap its outcome.

        Never raises: every failure is converted into an error response that
        carries the message, the tool name and the original arguments.

        Args:
            name: Name of the tool to execute.
            arguments: Arguments supplied by the host.

        Returns:
            ToolCallResponse with the structured payload.

        """
        try:
            payload = await self._dispatch(name, arguments or {})
        except ModxError as exc:
            logger.warning(f"Tool '{name}' failed: {exc}")
            return self._failure(name, arguments, exc.error_type, str(exc))
        except Exception as exc:
            logger.exception(f"Unexpected error while running tool '{name}'")
            return self._failure(name, arguments, "InternalError", str(exc))
        return ToolCallResponse(name=name, payload=payload)

    async def _dispatch(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        if name == SESSION_INFO_TOOL:
            return self._client.get_session_info().to_payload()

        cached = self._client.cached_processors
        target = resolve_tool_name(name, cached.processors if cached else None)
        if target is None:
            raise UnknownToolError(name)

        namespace, path = target
        result = await self._client.call_processor(namespace, path, arguments)
        return result.to_payload()

    @staticmethod
    def _failure(
        name: str, arguments: dict[str, Any] | None, error_type: str, message: str
    ) -> ToolCallResponse:
        return ToolCallResponse(
            name=name,
            payload={
                "success": False,
                "error": message,
                "type": error_type,
                "tool": name,
                "arguments": arguments,
            },
            is_error=True,
        )
