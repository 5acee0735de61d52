"""Typed shapes exchanged with the MODX connectors.

Every payload the remote side produces is parsed into one of a small set of
models: the processor catalog returned by discovery, and the results of
login, processor calls and logout. Fields the models do not name are kept as
extras so callers still see everything the remote sent.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ParameterType(str, Enum):
    """Closed set of parameter types understood by the tool generator."""

    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    MIXED = "mixed"

    @classmethod
    def from_remote(cls, raw: str | None) -> ParameterType:
        """Map a remote type label onto the closed enumeration."""
        return _TYPE_ALIASES.get((raw or "string").strip().lower(), cls.MIXED)

    @property
    def json_schema_type(self) -> str:
        """JSON Schema type used for properties of this kind."""
        if self is ParameterType.MIXED:
            return "string"
        return self.value


_TYPE_ALIASES = {
    "integer": ParameterType.INTEGER,
    "int": ParameterType.INTEGER,
    "boolean": ParameterType.BOOLEAN,
    "bool": ParameterType.BOOLEAN,
    "string": ParameterType.STRING,
    "text": ParameterType.STRING,
    "array": ParameterType.ARRAY,
    "object": ParameterType.OBJECT,
}


class RemoteModel(BaseModel):
    """Lenient base for payloads produced by the remote component."""

    model_config = ConfigDict(
        extra="allow", populate_by_name=True, coerce_numbers_to_str=True
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # Missing and null fields both fall back to the declared defaults.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ProcessorParameter(RemoteModel):
    """One parameter accepted by a remote processor."""

    name: str = ""
    type: str = "string"
    required: Any = False
    description: str = ""
    default: Any = None
    value: Any = None

    @property
    def kind(self) -> ParameterType:
        """Parameter type mapped onto :class:`ParameterType`."""
        return ParameterType.from_remote(self.type)


class Processor(RemoteModel):
    """Descriptor of one remote-invokable processor."""

    namespace: str = ""
    path: str = ""
    description: str = ""
    class_name: str = Field(default="", alias="class")
    file: str = ""
    parameters: list[ProcessorParameter] = Field(default_factory=list)

    @field_validator("parameters", mode="before")
    @classmethod
    def keep_parameter_objects(cls, value: Any) -> Any:
        # PHP encodes associative arrays as objects; those carry no usable list.
        return _dict_entries(value)


class ProcessorList(RemoteModel):
    """Snapshot of the processor catalog returned by discovery."""

    processors: list[Processor] = Field(default_factory=list)
    total: int = 0
    generated_at: str = "unknown"

    @field_validator("processors", mode="before")
    @classmethod
    def keep_processor_objects(cls, value: Any) -> Any:
        return _dict_entries(value)


def _dict_entries(value: Any) -> list[dict[str, Any]]:
    """Keep the mapping entries of a remote list, or nothing if not a list."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


class CamelModel(BaseModel):
    """Result model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-ready mapping without unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SessionInfo(CamelModel):
    """Read-only snapshot of the session state."""

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    base_url: str | None = None
    connector_url: str | None = None
    user: Any = None
    login_time: datetime | None = None
    last_activity: datetime | None = None


class LoginResult(CamelModel):
    """Outcome of an authentication attempt."""

    success: bool
    message: str
    user: Any = None
    session_info: SessionInfo | None = None


class LogoutResult(CamelModel):
    """Outcome of ending the session; always successful."""

    success: bool = True
    message: str


class ProcessorResult(BaseModel):
    """Normalized result of a processor call.

    Fields absent from the remote envelope are left out of the payload;
    every field it did send, ``null`` included, is carried along.
    """

    model_config = ConfigDict(extra="allow")

    success: bool
    message: Any = None
    data: Any = None
    errors: Any = None
    object: Any = None
    results: Any = None

    @classmethod
    def from_envelope(cls, envelope: dict[str, Any]) -> ProcessorResult:
        """Normalize a parsed remote JSON envelope."""
        payload = dict(envelope)
        # Only an explicit ``success: false`` marks a failure.
        payload["success"] = envelope.get("success") is not False
        for key in ("data", "object", "results"):
            if envelope.get(key) not in (None, ""):
                payload["data"] = envelope[key]
                break
        return cls.model_validate(payload)

    @classmethod
    def from_text(cls, text: str) -> ProcessorResult:
        """Wrap a non-JSON body as a raw successful payload."""
        return cls(success=True, data=text, raw=True)

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the fields that were actually received.

        Explicit ``null`` values sent by the remote side are kept.
        """
        return self.model_dump(mode="json", exclude_unset=True)
