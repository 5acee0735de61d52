"""Tests for tool name mapping and schema generation."""

from __future__ import annotations

from typing import Any

import pytest

from modx_mcp.models import ParameterType, Processor, ProcessorList
from modx_mcp.tools import (
    SESSION_INFO_TOOL,
    resolve_tool_name,
    session_info_tool,
    to_tool_descriptor,
    to_tool_name,
)


@pytest.fixture()
def processors(sample_processors: dict[str, Any]) -> list[Processor]:
    return ProcessorList.model_validate(sample_processors).processors


class TestToolNames:
    """Behavioral coverage for the name mapping."""

    def test_joins_namespace_and_path(self) -> None:
        assert to_tool_name("core", "resource/getlist") == "modx_core_resource_getlist"

    def test_sanitizes_namespace(self) -> None:
        assert to_tool_name("modx-mcp", "data/index") == "modx_modx_mcp_data_index"

    def test_case_and_separator_variants_collide(self) -> None:
        """Distinct processors can map onto one tool name."""
        assert to_tool_name("Core", "Resource/GetList") == to_tool_name(
            "core", "resource_getlist"
        )

    def test_resolves_cached_processor(self, processors: list[Processor]) -> None:
        for processor in processors:
            name = to_tool_name(processor.namespace, processor.path)
            assert resolve_tool_name(name, processors) == (
                processor.namespace,
                processor.path,
            )

    def test_resolution_requires_cache(self) -> None:
        assert resolve_tool_name("modx_core_resource_getlist", None) is None
        assert resolve_tool_name("modx_core_resource_getlist", []) is None

    def test_resolution_rejects_unknown_names(
        self, processors: list[Processor]
    ) -> None:
        assert resolve_tool_name("modx_core_resource_delete", processors) is None
        assert resolve_tool_name("core_resource_getlist", processors) is None

    def test_collision_resolves_to_first_cached(self) -> None:
        processors = [
            Processor(namespace="core", path="resource/getlist"),
            Processor(namespace="core", path="resource_getlist"),
        ]
        assert resolve_tool_name("modx_core_resource_getlist", processors) == (
            "core",
            "resource/getlist",
        )


class TestToolDescriptor:
    """Schema generation from processor metadata."""

    def test_name_and_description(self, processors: list[Processor]) -> None:
        descriptor = to_tool_descriptor(processors[0])

        assert descriptor.name == "modx_core_resource_getlist"
        assert descriptor.description == (
            "Get a list of resources (core/resource/getlist)"
        )

    def test_schema_properties(self, processors: list[Processor]) -> None:
        schema = to_tool_descriptor(processors[0]).input_schema

        assert schema["type"] == "object"
        assert schema["additionalProperties"] is True
        assert set(schema["properties"]) == {"limit", "start", "query"}
        assert schema["properties"]["limit"] == {
            "type": "integer",
            "description": "Page size",
            "default": 20,
        }
        assert schema["properties"]["start"]["type"] == "integer"
        assert schema["properties"]["start"]["default"] == 0
        assert schema["properties"]["start"]["description"] == "Parameter: start"
        assert schema["properties"]["query"]["type"] == "string"
        assert "default" not in schema["properties"]["query"]
        assert schema["required"] == []

    def test_required_only_when_exactly_true(self) -> None:
        processor = Processor.model_validate(
            {
                "namespace": "core",
                "path": "resource/update",
                "description": "Update a resource",
                "parameters": [
                    {"name": "id", "type": "integer", "required": True},
                    {"name": "pagetitle", "type": "string", "required": "1"},
                    {"name": "alias", "type": "string"},
                ],
            }
        )

        schema = to_tool_descriptor(processor).input_schema

        assert schema["required"] == ["id"]

    def test_internal_parameters_are_hidden(self) -> None:
        processor = Processor.model_validate(
            {
                "namespace": "core",
                "path": "system/clearcache",
                "description": "Clear cache",
                "parameters": [
                    {"name": "_permission_check"},
                    {"name": "_internal", "required": True},
                    {"name": ""},
                    {"name": "partitions", "type": "array"},
                ],
            }
        )

        schema = to_tool_descriptor(processor).input_schema

        assert list(schema["properties"]) == ["partitions"]
        assert schema["required"] == []

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("integer", "integer"),
            ("int", "integer"),
            ("boolean", "boolean"),
            ("BOOL", "boolean"),
            ("string", "string"),
            ("text", "string"),
            ("array", "array"),
            ("object", "object"),
            ("mixed", "string"),
            ("float", "string"),
            (None, "string"),
        ],
    )
    def test_type_mapping(self, raw: str | None, expected: str) -> None:
        processor = Processor.model_validate(
            {
                "namespace": "core",
                "path": "x",
                "parameters": [{"name": "value", "type": raw}],
            }
        )

        schema = to_tool_descriptor(processor).input_schema

        assert schema["properties"]["value"]["type"] == expected

    def test_unrecognized_types_are_mixed(self) -> None:
        assert ParameterType.from_remote("float") is ParameterType.MIXED
        assert ParameterType.from_remote("Int") is ParameterType.INTEGER


def test_session_info_tool_has_no_parameters() -> None:
    tool = session_info_tool()

    assert tool.name == SESSION_INFO_TOOL
    assert tool.metadata()["inputSchema"] == {"type": "object", "properties": {}}
