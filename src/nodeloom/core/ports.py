"""Port and Connection - the topology primitives of a graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nodeloom.core.types import PortCapacity, PortDirection


@dataclass
class Port:
    """An attachment point declared by a node variant.

    Ports are derived from a node's configuration on every query and are
    never stored. When no capacity is given, output ports allow many
    connections (fan-out) and input ports allow one.

    Attributes:
        id: Identifier, unique within its node and direction.
        name: Display name.
        direction: INPUT or OUTPUT.
        capacity: SINGLE or MULTI. None selects the direction default.
    """

    id: str
    name: str
    direction: PortDirection
    capacity: PortCapacity | None = None

    def __post_init__(self) -> None:
        if self.capacity is None:
            self.capacity = (
                PortCapacity.MULTI
                if self.direction == PortDirection.OUTPUT
                else PortCapacity.SINGLE
            )

    @classmethod
    def input(cls, id: str, name: str, capacity: PortCapacity | None = None) -> Port:
        """Declare an input port."""
        return cls(id, name, PortDirection.INPUT, capacity)

    @classmethod
    def output(cls, id: str, name: str, capacity: PortCapacity | None = None) -> Port:
        """Declare an output port."""
        return cls(id, name, PortDirection.OUTPUT, capacity)


@dataclass(frozen=True)
class Connection:
    """A directed edge from an output port to an input port.

    Endpoints are referenced by node id, never by object, so a graph can be
    serialized without reference cycles and connections can be validated
    independently of which nodes happen to be loaded.

    Equality and hashing are structural over all four fields.
    """

    out_node: str
    out_port: str
    in_node: str
    in_port: str

    def touches(self, node_id: str) -> bool:
        """Whether either endpoint is the given node."""
        return self.out_node == node_id or self.in_node == node_id

    def to_entry(self) -> dict[str, Any]:
        """Convert to the persisted connection record."""
        return {
            "outNode": self.out_node,
            "outPort": self.out_port,
            "inNode": self.in_node,
            "inPort": self.in_port,
        }

    @classmethod
    def from_entry(cls, data: dict[str, Any]) -> Connection:
        """Create from a persisted connection record."""
        return cls(
            out_node=data.get("outNode", ""),
            out_port=data.get("outPort", ""),
            in_node=data.get("inNode", ""),
            in_port=data.get("inPort", ""),
        )

    def __str__(self) -> str:
        return f"{self.out_node}:{self.out_port} -> {self.in_node}:{self.in_port}"
