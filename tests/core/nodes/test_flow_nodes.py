"""Tests for the flow, variable and conditional variants."""

from __future__ import annotations

import logging

import pytest

from nodeloom.core.nodes import (
    CommentNode,
    Comparison,
    ConditionalNode,
    ConditionType,
    DebugLogNode,
    EndNode,
    LogLevel,
    SetVariableNode,
    StartNode,
)
from nodeloom.core.runner import GraphRunner
from nodeloom.core.types import NodeState, VariableType
from nodeloom.core.variables import GraphVariable


class TestFlowNodes:
    """Start, End, Comment and DebugLog."""

    def test_start_is_entry(self):
        assert StartNode.is_entry
        assert not EndNode.is_entry
        assert StartNode().input_ports() == []

    def test_end_has_no_outputs(self):
        assert EndNode().output_ports() == []

    def test_end_logs_message(self, caplog):
        with caplog.at_level(logging.INFO):
            EndNode(message="all done").execute()
        assert "flow_end" in caplog.text
        assert "all done" in caplog.text

    def test_comment_has_no_ports_and_completes(self):
        node = CommentNode()
        assert node.input_ports() == []
        assert node.output_ports() == []
        node.execute()
        assert node.state == NodeState.COMPLETED

    def test_debug_log_level(self, caplog):
        """DebugLog writes at its configured level."""
        with caplog.at_level(logging.INFO):
            DebugLogNode(message="careful", level=LogLevel.WARNING).execute()
        record = next(r for r in caplog.records if "careful" in r.getMessage())
        assert record.levelno == logging.WARNING


class TestSetVariableNode:
    """Writing typed values into graph variables."""

    def run_node(self, graph, node: SetVariableNode) -> SetVariableNode:
        graph.add_node(node)
        graph.mark_clean()
        node.execute()
        return node

    def test_creates_missing_variable(self, graph):
        node = self.run_node(
            graph, SetVariableNode(variable_name="score", variable_type=VariableType.INT, value="7")
        )
        variable = graph.get_variable("score")
        assert variable is not None
        assert variable.type == VariableType.INT
        assert variable.get_int() == 7
        assert node.state == NodeState.COMPLETED
        assert graph.dirty

    def test_updates_existing_variable(self, graph):
        graph.add_variable(GraphVariable.create_bool("armed", False))
        self.run_node(
            graph,
            SetVariableNode(variable_name="armed", variable_type=VariableType.BOOL, value="TRUE"),
        )
        assert graph.get_variable("armed").get_bool() is True
        assert graph.variable_count == 1

    def test_value_persisted_to_blob(self, graph):
        self.run_node(
            graph,
            SetVariableNode(variable_name="ratio", variable_type=VariableType.FLOAT, value="2.5"),
        )
        assert '"value": "2.5"' in graph.blob

    def test_invalid_int_keeps_value(self, graph, caplog):
        """Unparseable text leaves the variable unchanged but still completes."""
        graph.add_variable(GraphVariable.create_int("score", 5))
        with caplog.at_level(logging.WARNING):
            node = self.run_node(
                graph,
                SetVariableNode(
                    variable_name="score", variable_type=VariableType.INT, value="lots"
                ),
            )
        assert graph.get_variable("score").get_int() == 5
        assert node.state == NodeState.COMPLETED
        assert "set_variable_invalid" in caplog.text

    def test_string_value(self, graph):
        self.run_node(
            graph,
            SetVariableNode(
                variable_name="greeting", variable_type=VariableType.STRING, value="Hi there"
            ),
        )
        assert graph.get_variable("greeting").get_string() == "Hi there"

    def test_missing_name_skips(self, graph):
        node = self.run_node(graph, SetVariableNode(value="true"))
        assert graph.variable_count == 0
        assert node.state == NodeState.COMPLETED

    def test_without_graph_completes(self):
        node = SetVariableNode(variable_name="x", value="true")
        node.execute()
        assert node.state == NodeState.COMPLETED


class TestConditionalNode:
    """Evaluating conditions against graph variables."""

    def make(self, graph, variable: GraphVariable, **kwargs) -> ConditionalNode:
        graph.add_variable(variable)
        return graph.add_node(ConditionalNode(variable_name=variable.name, **kwargs))

    @pytest.mark.parametrize(
        ("op", "expected"),
        [
            (Comparison.EQUALS, False),
            (Comparison.NOT_EQUALS, True),
            (Comparison.GREATER_THAN, True),
            (Comparison.LESS_THAN, False),
            (Comparison.GREATER_OR_EQUAL, True),
            (Comparison.LESS_OR_EQUAL, False),
        ],
    )
    def test_int_comparisons(self, graph, op, expected):
        node = self.make(
            graph,
            GraphVariable.create_int("score", 5),
            condition_type=ConditionType.INT_COMPARISON,
            comparison=op,
            compare_value="3",
        )
        assert node.evaluate() is expected

    def test_int_unparseable_is_false(self, graph):
        node = self.make(
            graph,
            GraphVariable.create_int("score", 5),
            condition_type=ConditionType.INT_COMPARISON,
            comparison=Comparison.NOT_EQUALS,
            compare_value="five",
        )
        assert node.evaluate() is False

    def test_float_equality_is_approximate(self, graph):
        node = self.make(
            graph,
            GraphVariable.create_float("ratio", 0.1 + 0.2),
            condition_type=ConditionType.FLOAT_COMPARISON,
            compare_value="0.3",
        )
        assert node.evaluate() is True

    def test_string_equals_ignores_case(self, graph):
        node = self.make(
            graph,
            GraphVariable.create_string("mood", "Happy"),
            condition_type=ConditionType.STRING_EQUALS,
            compare_value="happy",
        )
        assert node.evaluate() is True
        node.comparison = Comparison.NOT_EQUALS
        assert node.evaluate() is False

    def test_bool_not_equals(self, graph):
        node = self.make(
            graph,
            GraphVariable.create_bool("armed", True),
            comparison=Comparison.NOT_EQUALS,
            compare_value="false",
        )
        assert node.evaluate() is True

    def test_missing_variable_is_false(self, graph, caplog):
        node = graph.add_node(ConditionalNode(variable_name="ghost", compare_value="true"))
        with caplog.at_level(logging.WARNING):
            assert node.evaluate() is False
        assert "condition_variable_missing" in caplog.text

    def test_false_result_selects_false_port(self, graph):
        """FAILED selects `false`; reading the port restores COMPLETED."""
        node = self.make(graph, GraphVariable.create_bool("armed", False), compare_value="true")
        node.execute()
        assert node.state == NodeState.FAILED
        assert node.select_output_port() == "false"
        assert node.state == NodeState.COMPLETED

    def test_true_result_selects_true_port(self, graph):
        node = self.make(graph, GraphVariable.create_bool("armed", True), compare_value="true")
        node.execute()
        assert node.select_output_port() == "true"


class TestRunnerIntegration:
    def test_set_then_branch(self, graph):
        """A variable written earlier in the run steers a later Conditional."""
        start = StartNode(id="start")
        setter = SetVariableNode(
            id="set", variable_name="go", variable_type=VariableType.BOOL, value="true"
        )
        cond = ConditionalNode(id="cond", variable_name="go", compare_value="true")
        yes = EndNode(id="yes")
        no = EndNode(id="no")
        for node in (start, setter, cond, yes, no):
            graph.add_node(node)
        graph.connect(start, "output", setter, "input")
        graph.connect(setter, "output", cond, "input")
        graph.connect(cond, "true", yes, "input")
        graph.connect(cond, "false", no, "input")

        runner = GraphRunner(graph)
        runner.run()
        assert runner.execution_path == ("start", "set", "cond", "yes")
