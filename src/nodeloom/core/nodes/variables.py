"""SetVariable - write a typed value into a graph variable."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from nodeloom.core.nodes.base import Node
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port
from nodeloom.core.types import VariableType
from nodeloom.core.variables import parse_bool

logger = logging.getLogger(__name__)


@register_node("SetVariable")
@dataclass(repr=False)
class SetVariableNode(Node):
    """Set a graph variable, creating it if missing.

    The value is given as text and converted per `variable_type`. Text that
    is not a valid int/float leaves the variable unchanged and logs a
    warning; the node still completes.
    """

    name = "Set Variable"
    category = "Variables"

    variable_name: str = ""
    variable_type: VariableType = VariableType.BOOL
    value: str = ""

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("output", "Next")]

    def on_execute(self) -> None:
        if self.graph is None:
            logger.error("set_variable_failed: id=%s, no graph", self.id)
            self.complete()
            return

        if not self.variable_name:
            logger.warning("set_variable_skipped: id=%s, no variable name", self.id)
            self.complete()
            return

        variable = self.graph.get_or_create_variable(
            self.variable_name, self.variable_type, self.value
        )

        if self.variable_type == VariableType.BOOL:
            variable.set_bool(parse_bool(self.value))
        elif self.variable_type == VariableType.INT:
            try:
                variable.set_int(int(self.value.strip()))
            except ValueError:
                logger.warning(
                    "set_variable_invalid: id=%s, name=%s, int=%r",
                    self.id,
                    self.variable_name,
                    self.value,
                )
        elif self.variable_type == VariableType.FLOAT:
            try:
                variable.set_float(float(self.value.strip()))
            except ValueError:
                logger.warning(
                    "set_variable_invalid: id=%s, name=%s, float=%r",
                    self.id,
                    self.variable_name,
                    self.value,
                )
        else:
            variable.set_string(self.value)

        logger.debug(
            "variable_set: id=%s, name=%s, value=%s", self.id, self.variable_name, variable.value
        )
        self.graph.mark_dirty()
        self.complete()
