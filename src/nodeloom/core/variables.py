"""GraphVariable - named, typed values stored on a graph.

A variable keeps a single canonical text value. Typed accessors parse on
read and fall back to the type's zero value when the text does not parse;
typed mutators format on write.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nodeloom.core.types import VariableType


def parse_bool(text: str | None) -> bool:
    """Parse boolean text: "true" (any case) or "1" is True."""
    if text is None:
        return False
    return text.lower() == "true" or text == "1"


def parse_int(text: str | None) -> int:
    """Parse integer text, 0 on failure."""
    try:
        return int(text)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


def parse_float(text: str | None) -> float:
    """Parse float text, 0.0 on failure."""
    try:
        return float(text)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0


@dataclass
class GraphVariable:
    """A variable stored in a NodeGraph.

    Attributes:
        name: Case-sensitive name, unique within its graph.
        type: Declared type.
        value: Canonical text representation.

    Example:
        >>> score = GraphVariable.create_int("score", 10)
        >>> score.get_int()
        10
        >>> score.value = "oops"
        >>> score.get_int()
        0
    """

    name: str = ""
    type: VariableType = VariableType.BOOL
    value: str = ""

    # Typed getters

    def get_bool(self) -> bool:
        return parse_bool(self.value)

    def get_int(self) -> int:
        return parse_int(self.value)

    def get_float(self) -> float:
        return parse_float(self.value)

    def get_string(self) -> str:
        return self.value or ""

    def get(self) -> Any:
        """Read the value using the declared type's accessor."""
        if self.type == VariableType.BOOL:
            return self.get_bool()
        if self.type == VariableType.INT:
            return self.get_int()
        if self.type == VariableType.FLOAT:
            return self.get_float()
        return self.get_string()

    # Typed setters

    def set_bool(self, value: bool) -> None:
        self.value = "true" if value else "false"

    def set_int(self, value: int) -> None:
        self.value = str(value)

    def set_float(self, value: float) -> None:
        self.value = str(value)

    def set_string(self, value: str | None) -> None:
        self.value = value or ""

    # Factories

    @classmethod
    def create_bool(cls, name: str, default: bool = False) -> GraphVariable:
        variable = cls(name=name, type=VariableType.BOOL)
        variable.set_bool(default)
        return variable

    @classmethod
    def create_int(cls, name: str, default: int = 0) -> GraphVariable:
        variable = cls(name=name, type=VariableType.INT)
        variable.set_int(default)
        return variable

    @classmethod
    def create_float(cls, name: str, default: float = 0.0) -> GraphVariable:
        variable = cls(name=name, type=VariableType.FLOAT)
        variable.set_float(default)
        return variable

    @classmethod
    def create_string(cls, name: str, default: str = "") -> GraphVariable:
        variable = cls(name=name, type=VariableType.STRING)
        variable.set_string(default)
        return variable

    @classmethod
    def create(cls, name: str, type: VariableType, default_text: str = "") -> GraphVariable:
        """Create a variable from default text parsed per type.

        Text that does not parse yields the type's zero value.
        """
        if type == VariableType.BOOL:
            return cls.create_bool(name, parse_bool(default_text))
        if type == VariableType.INT:
            return cls.create_int(name, parse_int(default_text))
        if type == VariableType.FLOAT:
            return cls.create_float(name, parse_float(default_text))
        return cls.create_string(name, default_text)

    # Persistence

    def to_entry(self) -> dict[str, Any]:
        """Convert to the persisted variable record."""
        return {"name": self.name, "type": self.type.value, "value": self.value}

    @classmethod
    def from_entry(cls, data: dict[str, Any]) -> GraphVariable:
        """Create from a persisted variable record (verbatim, no parsing)."""
        return cls(
            name=data.get("name", ""),
            type=VariableType(data.get("type", VariableType.BOOL.value)),
            value=data.get("value", "") or "",
        )
