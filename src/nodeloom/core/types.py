"""Pure data types shared across the engine.

These enums carry no behavior. Persisted enums use their string value in
the serialized graph blob.
"""

from __future__ import annotations

from enum import Enum, auto


class NodeState(Enum):
    """Transient execution state of a node.

    State transitions:
        IDLE -> RUNNING -> COMPLETED | FAILED
        any -> IDLE (reset)

    State is never persisted; every node starts IDLE after a load.
    """

    IDLE = auto()  # Not executed in this run
    RUNNING = auto()  # execute() called, complete() not yet called
    COMPLETED = auto()  # Finished normally
    FAILED = auto()  # Finished with a failure/branch signal


class PortDirection(Enum):
    """Direction of a port."""

    INPUT = "input"
    OUTPUT = "output"


class PortCapacity(Enum):
    """How many connections a port accepts."""

    SINGLE = "single"
    MULTI = "multi"


class VariableType(Enum):
    """Declared type of a graph variable.

    Values match the persisted "type" field.
    """

    BOOL = "Bool"
    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
