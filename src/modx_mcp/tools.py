"""Tool descriptors generated from MODX processors."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from modx_mcp.models import Processor, ProcessorParameter

TOOL_PREFIX = "modx_"
SESSION_INFO_TOOL = "modx_get_session_info"
RESERVED_PARAMETERS = frozenset({"_permission_check"})

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class ToolDescriptor:
    """Description of a tool exposed to the MCP host.

    Attributes:
        name: Unique name of the tool.
        description: Human-readable description of the tool purpose.
        input_schema: JSON Schema describing accepted arguments.
    """

    name: str
    description: str
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def metadata(self) -> dict[str, Any]:
        """Return a discovery-friendly description of the tool."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def _sanitize(value: str) -> str:
    return _UNSAFE_CHARS.sub("_", value.lower())


def to_tool_name(namespace: str, path: str) -> str:
    """Derive the tool name for a processor.

    The transform is lossy: ``resource/getlist`` and ``resource_getlist``
    produce the same name.

    Example:
        >>> to_tool_name("core", "resource/getlist")
        'modx_core_resource_getlist'

    """
    return f"{TOOL_PREFIX}{_sanitize(namespace)}_{_sanitize(path)}"


def resolve_tool_name(
    name: str, processors: Iterable[Processor] | None
) -> tuple[str, str] | None:
    """Find the ``(namespace, path)`` of the cached processor behind a tool.

    Returns ``None`` when the name lacks the tool prefix or when no processor
    in ``processors`` maps to it. The first match wins on collisions.
    """
    if not name.startswith(TOOL_PREFIX) or processors is None:
        return None
    for processor in processors:
        if to_tool_name(processor.namespace, processor.path) == name:
            return processor.namespace, processor.path
    return None


def is_exposed_parameter(parameter: ProcessorParameter) -> bool:
    """Whether a parameter belongs in the generated schema."""
    name = parameter.name
    return bool(name) and name not in RESERVED_PARAMETERS and not name.startswith("_")


def parameter_schema(parameter: ProcessorParameter) -> dict[str, Any]:
    """Build the JSON Schema property for one parameter."""
    schema: dict[str, Any] = {
        "type": parameter.kind.json_schema_type,
        "description": parameter.description or f"Parameter: {parameter.name}",
    }
    if parameter.default is not None and parameter.default != "":
        schema["default"] = parameter.default
    return schema


def to_tool_descriptor(processor: Processor) -> ToolDescriptor:
    """Translate a processor descriptor into a tool descriptor."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for parameter in processor.parameters:
        if not is_exposed_parameter(parameter):
            continue
        properties[parameter.name] = parameter_schema(parameter)
        if parameter.required is True:
            required.append(parameter.name)

    return ToolDescriptor(
        name=to_tool_name(processor.namespace, processor.path),
        description=(
            f"{processor.description} ({processor.namespace}/{processor.path})"
        ),
        input_schema={
            "type": "object",
            "properties": properties,
            "required": required,
            # Remote parameter metadata is not guaranteed to be complete.
            "additionalProperties": True,
        },
    )


def session_info_tool() -> ToolDescriptor:
    """Create the fixed tool reporting the current session."""
    return ToolDescriptor(
        name=SESSION_INFO_TOOL,
        description="Get information about current MODX session",
    )
