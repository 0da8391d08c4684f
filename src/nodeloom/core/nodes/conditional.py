"""Conditional - two-way branch on a graph variable.

The node reports its result through its state: COMPLETED selects the
`true` port, FAILED selects `false`. select_output_port() reads the state
and normalizes it back to COMPLETED, so a false condition never looks like
a hard failure downstream.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from nodeloom.core.nodes.base import Node
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port
from nodeloom.core.types import NodeState
from nodeloom.core.variables import parse_bool

logger = logging.getLogger(__name__)


class ConditionType(Enum):
    BOOL_VARIABLE = "bool"
    INT_COMPARISON = "int"
    FLOAT_COMPARISON = "float"
    STRING_EQUALS = "string"


class Comparison(Enum):
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_OR_EQUAL = ">="
    LESS_OR_EQUAL = "<="


def compare(left: float, op: Comparison, right: float, approximate: bool = False) -> bool:
    """Apply a comparison operator to two numbers."""
    if op == Comparison.EQUALS:
        return math.isclose(left, right, rel_tol=1e-6, abs_tol=1e-6) if approximate else left == right
    if op == Comparison.NOT_EQUALS:
        return not compare(left, Comparison.EQUALS, right, approximate)
    if op == Comparison.GREATER_THAN:
        return left > right
    if op == Comparison.LESS_THAN:
        return left < right
    if op == Comparison.GREATER_OR_EQUAL:
        return left >= right
    return left <= right


@register_node("Conditional")
@dataclass(repr=False)
class ConditionalNode(Node):
    """Branch on a comparison against a graph variable.

    Attributes:
        condition_type: How to read the variable and interpret `compare_value`.
        variable_name: Graph variable to test. A missing variable is false.
        comparison: Operator. Bool and string conditions only honor
            EQUALS / NOT_EQUALS (anything else acts as NOT_EQUALS).
        compare_value: Right-hand side as text. Unparseable numbers are false.
    """

    name = "Conditional"
    category = "Flow"

    condition_type: ConditionType = ConditionType.BOOL_VARIABLE
    variable_name: str = ""
    comparison: Comparison = Comparison.EQUALS
    compare_value: str = ""

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("true", "True"), Port.output("false", "False")]

    def on_execute(self) -> None:
        result = self.evaluate()
        logger.debug("condition_evaluated: id=%s, result=%s", self.id, result)
        if not result:
            self.state = NodeState.FAILED
        self.complete()

    def select_output_port(self) -> str:
        port = "false" if self.state == NodeState.FAILED else "true"
        self.state = NodeState.COMPLETED
        return port

    def evaluate(self) -> bool:
        variable = self.get_variable(self.variable_name)
        if variable is None:
            logger.warning(
                "condition_variable_missing: id=%s, variable=%s", self.id, self.variable_name
            )
            return False

        if self.condition_type == ConditionType.BOOL_VARIABLE:
            matches = variable.get_bool() == parse_bool(self.compare_value)
            return matches if self.comparison == Comparison.EQUALS else not matches

        if self.condition_type == ConditionType.INT_COMPARISON:
            try:
                right = int(self.compare_value.strip())
            except ValueError:
                return False
            return compare(variable.get_int(), self.comparison, right)

        if self.condition_type == ConditionType.FLOAT_COMPARISON:
            try:
                right_f = float(self.compare_value.strip())
            except ValueError:
                return False
            return compare(variable.get_float(), self.comparison, right_f, approximate=True)

        matches = variable.get_string().casefold() == self.compare_value.casefold()
        return matches if self.comparison == Comparison.EQUALS else not matches
