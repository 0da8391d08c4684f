"""Pydantic models of the persisted graph blob.

    { "nodes":       [ { "typeTag": str, "payload": {...} } ],
      "connections": [ { "outNode", "outPort", "inNode", "inPort" } ],
      "variables":   [ { "name", "type", "value": str } ] }

Only the container shape is validated here. Node payloads stay plain dicts;
each node class interprets its own payload.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeEntry(BaseModel):
    """One persisted node: type tag plus its payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type_tag: str = Field(default="", alias="typeTag")
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type_tag", mode="before")
    @classmethod
    def coerce_missing_tag(cls, v: Any) -> Any:
        """A null tag is treated like an empty one (entry skipped on load)."""
        return "" if v is None else v

    @field_validator("payload", mode="before")
    @classmethod
    def coerce_missing_payload(cls, v: Any) -> Any:
        return {} if v is None else v


class ConnectionEntry(BaseModel):
    """One persisted connection between an output port and an input port."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    out_node: str = Field(alias="outNode")
    out_port: str = Field(alias="outPort")
    in_node: str = Field(alias="inNode")
    in_port: str = Field(alias="inPort")


class VariableEntry(BaseModel):
    """One persisted graph variable; the value is always text."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: Literal["Bool", "Int", "Float", "String"] = "Bool"
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> Any:
        """Accept hand-written non-text values, store their canonical text."""
        if v is None:
            return ""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, int | float):
            return str(v)
        return v


class GraphDocument(BaseModel):
    """The whole persisted container."""

    model_config = ConfigDict(extra="ignore")

    nodes: list[NodeEntry] = Field(default_factory=list)
    connections: list[ConnectionEntry] = Field(default_factory=list)
    variables: list[VariableEntry] = Field(default_factory=list)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


class RawDocument(BaseModel):
    """Container shape only: three lists of unvalidated entries.

    Loading validates each entry separately against NodeEntry,
    ConnectionEntry or VariableEntry so one bad entry is skipped on its own.
    """

    model_config = ConfigDict(extra="ignore")

    nodes: list[Any] = Field(default_factory=list)
    connections: list[Any] = Field(default_factory=list)
    variables: list[Any] = Field(default_factory=list)

    @field_validator("nodes", "connections", "variables", mode="before")
    @classmethod
    def coerce_missing_list(cls, v: Any) -> Any:
        return [] if v is None else v
