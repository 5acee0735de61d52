"""Model Context Protocol bridge for MODX manager processors."""

from modx_mcp.errors import ModxError
from modx_mcp.server import ToolCallResponse, ToolDispatcher
from modx_mcp.session_client import ModxSessionClient
from modx_mcp.settings import Settings
from modx_mcp.tools import ToolDescriptor, to_tool_descriptor, to_tool_name

__all__ = [
    "ModxError",
    "ModxSessionClient",
    "Settings",
    "ToolCallResponse",
    "ToolDescriptor",
    "ToolDispatcher",
    "to_tool_descriptor",
    "to_tool_name",
]
