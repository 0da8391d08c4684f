"""Tests for NodeGraph."""

from __future__ import annotations

import json
import logging

from nodeloom.core.graph import NodeGraph
from nodeloom.core.nodes import DebugLogNode, EndNode, LogLevel, StartNode
from nodeloom.core.ports import Connection
from nodeloom.core.types import VariableType
from nodeloom.core.variables import GraphVariable


def blob_of(nodes=(), connections=(), variables=()) -> str:
    return json.dumps(
        {"nodes": list(nodes), "connections": list(connections), "variables": list(variables)}
    )


class TestMutations:
    """Adding and removing nodes, connections and variables."""

    def test_add_node_sets_owner(self, graph):
        node = StartNode()
        assert graph.add_node(node) is node
        assert node.graph is graph
        assert graph.get_node(node.id) is node
        assert graph.dirty

    def test_add_node_duplicate_id_ignored(self, graph):
        first = graph.add_node(DebugLogNode(id="n", message="first"))
        assert graph.add_node(DebugLogNode(id="n", message="second")) is first
        assert graph.node_count == 1
        assert graph.get_node("n").message == "first"

    def test_remove_node_cascades(self, linear_graph):
        """Removing a node drops every connection touching it."""
        log = linear_graph.get_node("log")
        linear_graph.remove_node(log)
        assert linear_graph.get_node("log") is None
        assert linear_graph.connection_count == 0
        assert log.graph is None

    def test_remove_node_by_id(self, linear_graph):
        linear_graph.remove_node("end")
        assert linear_graph.node_count == 2
        assert linear_graph.connection_count == 1

    def test_connection_dedup(self, graph):
        a, b = graph.add_node(StartNode()), graph.add_node(EndNode())
        graph.connect(a, "output", b, "input")
        graph.connect(a.id, "output", b.id, "input")
        assert graph.connection_count == 1

    def test_remove_connection(self, linear_graph):
        conn = Connection("start", "output", "log", "input")
        linear_graph.remove_connection(conn)
        assert conn not in linear_graph.connections
        assert linear_graph.connection_count == 1

    def test_duplicate_variable_ignored(self, graph, caplog):
        graph.add_variable(GraphVariable.create_int("score", 1))
        with caplog.at_level(logging.WARNING):
            graph.add_variable(GraphVariable.create_int("score", 2))
        assert graph.variable_count == 1
        assert graph.get_variable("score").get_int() == 1
        assert "variable_exists" in caplog.text

    def test_remove_variable(self, graph):
        keep = GraphVariable.create_bool("keep")
        graph.add_variable(keep)
        graph.add_variable(GraphVariable.create_bool("drop"))

        assert graph.remove_variable("drop") is True
        assert graph.remove_variable("drop") is False
        assert graph.remove_variable(keep) is True
        assert graph.variable_count == 0

    def test_variable_names_case_sensitive(self, graph):
        graph.add_variable(GraphVariable.create_bool("Flag"))
        assert graph.get_variable("flag") is None

    def test_get_or_create_variable(self, graph):
        created = graph.get_or_create_variable("speed", VariableType.FLOAT, "1.5")
        assert created.get_float() == 1.5
        assert graph.get_or_create_variable("speed", VariableType.FLOAT, "9") is created

    def test_clean_orphaned_connections(self, graph):
        graph.add_node(StartNode(id="start"))
        graph.add_connection(Connection("start", "output", "ghost", "input"))
        graph.add_connection(Connection("ghost", "output", "start", "input"))
        assert graph.clean_orphaned_connections() == 2
        assert graph.clean_orphaned_connections() == 0

    def test_clear(self, linear_graph):
        node = linear_graph.get_node("start")
        linear_graph.clear()
        assert linear_graph.node_count == 0
        assert linear_graph.connection_count == 0
        assert node.graph is None


class TestQueries:
    """Lookups and validation."""

    def test_get_connected_nodes_in_order(self, graph):
        start = graph.add_node(StartNode(id="start"))
        a = graph.add_node(DebugLogNode(id="a"))
        b = graph.add_node(DebugLogNode(id="b"))
        graph.connect(start, "output", b, "input")
        graph.connect(start, "output", a, "input")
        assert graph.get_connected_nodes("start", "output") == [b, a]
        assert graph.get_connected_nodes("start", "other") == []

    def test_get_connected_nodes_skips_missing(self, graph):
        start = graph.add_node(StartNode(id="start"))
        end = graph.add_node(EndNode(id="end"))
        graph.add_connection(Connection("start", "output", "ghost", "input"))
        graph.connect(start, "output", end, "input")
        assert graph.get_connected_nodes("start", "output") == [end]

    def test_incoming_and_outgoing(self, linear_graph):
        assert [c.out_node for c in linear_graph.get_incoming_connections("log")] == ["start"]
        assert [c.in_node for c in linear_graph.get_outgoing_connections("log")] == ["end"]

    def test_entry_node(self, linear_graph):
        assert linear_graph.get_entry_node().id == "start"
        assert NodeGraph().get_entry_node() is None

    def test_validate_ok(self, linear_graph):
        assert linear_graph.validate() == []

    def test_validate_empty(self, graph):
        assert graph.validate() == ["Graph has no nodes"]

    def test_validate_reports_all_problems(self, graph):
        graph.add_node(EndNode(id="end"))
        graph.add_connection(Connection("ghost", "output", "end", "input"))
        errors = graph.validate()
        assert "Graph has no Start node" in errors
        assert "Connection references missing node: ghost" in errors

    def test_reset_all_nodes(self, linear_graph):
        for node in linear_graph.nodes:
            node.execute()
        linear_graph.reset_all_nodes()
        assert {node.state.name for node in linear_graph.nodes} == {"IDLE"}

    def test_to_dict(self, linear_graph):
        data = linear_graph.to_dict()
        assert data["name"] == "test"
        assert [n["type"] for n in data["nodes"]] == ["Start", "DebugLog", "End"]
        assert data["connections"][0] == {
            "outNode": "start",
            "outPort": "output",
            "inNode": "log",
            "inPort": "input",
        }


class TestSerialization:
    """Blob write-through and lazy loading."""

    def test_blob_shape(self, linear_graph):
        linear_graph.add_variable(GraphVariable.create_bool("armed", True))
        document = json.loads(linear_graph.blob)
        assert document["nodes"][0] == {
            "typeTag": "Start",
            "payload": {"id": "start", "has_breakpoint": False, "display_label": ""},
        }
        assert document["connections"][0]["outNode"] == "start"
        assert document["variables"] == [{"name": "armed", "type": "Bool", "value": "true"}]

    def test_round_trip(self, linear_graph):
        log = linear_graph.get_node("log")
        log.level = LogLevel.ERROR
        log.has_breakpoint = True
        linear_graph.add_variable(GraphVariable.create_float("ratio", 0.5))

        restored = NodeGraph(name="copy", blob=linear_graph.save())
        restored_log = restored.get_node("log")
        assert restored_log == log
        assert restored_log.graph is restored
        assert restored.connections == linear_graph.connections
        assert restored.get_variable("ratio").get_float() == 0.5

    def test_lazy_load(self, linear_graph):
        """A graph built from a blob parses it on first access."""
        restored = NodeGraph(blob=linear_graph.blob)
        assert not restored.loaded
        assert restored.node_count == 3
        assert restored.loaded

    def test_dirty_tracking(self, graph):
        assert not graph.dirty
        graph.add_node(StartNode())
        assert graph.dirty
        graph.mark_clean()
        assert not graph.dirty
        graph.mark_dirty()
        assert graph.dirty

    def test_loading_is_clean(self, linear_graph):
        assert not NodeGraph(blob=linear_graph.blob).dirty

    def test_force_reload_discards_object_edits(self, linear_graph):
        """In-place edits not written through are lost on reload."""
        linear_graph.get_node("log").message = "edited"
        linear_graph.force_reload()
        assert linear_graph.get_node("log").message == "hi"

    def test_mark_dirty_keeps_object_edits(self, linear_graph):
        linear_graph.get_node("log").message = "edited"
        linear_graph.mark_dirty()
        linear_graph.force_reload()
        assert linear_graph.get_node("log").message == "edited"

    def test_load_replaces_contents(self, linear_graph):
        old = linear_graph.get_node("start")
        linear_graph.load(blob_of([{"typeTag": "End", "payload": {"id": "only"}}]))
        assert [n.id for n in linear_graph.nodes] == ["only"]
        assert old.graph is None


class TestLoadRecovery:
    """Loading skips what it cannot use and never raises."""

    def test_duplicate_node_id_first_wins(self, caplog):
        blob = blob_of(
            [
                {"typeTag": "DebugLog", "payload": {"id": "n", "message": "first"}},
                {"typeTag": "DebugLog", "payload": {"id": "n", "message": "second"}},
            ]
        )
        with caplog.at_level(logging.WARNING):
            graph = NodeGraph(blob=blob)
            assert graph.node_count == 1
        assert graph.get_node("n").message == "first"
        assert "duplicate_node_id" in caplog.text

    def test_unknown_and_empty_tags_skipped(self, caplog):
        blob = blob_of(
            [
                {"typeTag": "Teleport", "payload": {"id": "t"}},
                {"typeTag": "", "payload": {"id": "e"}},
                {"typeTag": None, "payload": {"id": "n"}},
                {"typeTag": "Start", "payload": {"id": "s"}},
            ]
        )
        with caplog.at_level(logging.WARNING):
            graph = NodeGraph(blob=blob)
            assert [n.id for n in graph.nodes] == ["s"]
        assert "node_type_not_found" in caplog.text

    def test_malformed_blob_gives_empty_graph(self, caplog):
        with caplog.at_level(logging.ERROR):
            graph = NodeGraph(name="broken", blob="{not json")
            assert graph.node_count == 0
        assert "graph_load_failed: name=broken" in caplog.text
        assert graph.validate() == ["Graph has no nodes"]

    def test_bad_variable_entry_skipped(self, caplog):
        blob = blob_of(
            [
                {"typeTag": "Start", "payload": {"id": "s"}},
                {"typeTag": "End", "payload": {"id": "e"}},
            ],
            [{"outNode": "s", "outPort": "output", "inNode": "e", "inPort": "input"}],
            [
                {"name": "pos", "type": "Vector3", "value": "1,2,3"},
                {"name": "count", "type": "Int", "value": "2"},
            ],
        )
        with caplog.at_level(logging.WARNING):
            graph = NodeGraph(blob=blob)
            assert graph.node_count == 2
        assert graph.connection_count == 1
        assert [v.name for v in graph.variables] == ["count"]
        assert "graph_entry_invalid" in caplog.text
        assert "kind=variable, index=0" in caplog.text

    def test_bad_connection_entry_skipped(self, caplog):
        blob = blob_of(
            [
                {"typeTag": "Start", "payload": {"id": "s"}},
                {"typeTag": "End", "payload": {"id": "e"}},
            ],
            [
                {"outNode": "s", "outPort": "output", "inNode": None, "inPort": "input"},
                {"outNode": "s", "outPort": "output", "inNode": "e", "inPort": "input"},
            ],
        )
        with caplog.at_level(logging.WARNING):
            graph = NodeGraph(blob=blob)
            assert graph.node_count == 2
        assert graph.connections == [Connection("s", "output", "e", "input")]
        assert "kind=connection, index=0" in caplog.text

    def test_non_object_node_entry_skipped(self):
        blob = blob_of(["Start", {"typeTag": "Start", "payload": {"id": "s"}}])
        graph = NodeGraph(blob=blob)
        assert [n.id for n in graph.nodes] == ["s"]

    def test_non_object_root_gives_empty_graph(self, caplog):
        with caplog.at_level(logging.ERROR):
            graph = NodeGraph(name="listed", blob="[]")
            assert graph.node_count == 0
        assert "graph_load_failed: name=listed" in caplog.text

    def test_empty_blob_warns(self, graph, caplog):
        with caplog.at_level(logging.WARNING):
            graph.load("")
        assert graph.node_count == 0
        assert "graph_blob_empty" in caplog.text

    def test_missing_sections_default_empty(self):
        graph = NodeGraph(blob=json.dumps({"nodes": [{"typeTag": "Start", "payload": {}}]}))
        assert graph.node_count == 1
        assert graph.connection_count == 0
        assert graph.variable_count == 0

    def test_missing_payload_gets_fresh_id(self):
        graph = NodeGraph(blob=json.dumps({"nodes": [{"typeTag": "Start"}]}))
        assert graph.nodes[0].id

    def test_non_text_variable_values(self):
        graph = NodeGraph(
            blob=blob_of(
                variables=[
                    {"name": "count", "type": "Int", "value": 4},
                    {"name": "on", "type": "Bool", "value": True},
                ]
            )
        )
        assert graph.get_variable("count").value == "4"
        assert graph.get_variable("on").value == "true"

    def test_dangling_connections_kept(self):
        """Connections load as-is; validate() reports the missing endpoint."""
        graph = NodeGraph(
            blob=blob_of(
                [{"typeTag": "Start", "payload": {"id": "s"}}],
                [{"outNode": "s", "outPort": "output", "inNode": "gone", "inPort": "input"}],
            )
        )
        assert graph.connection_count == 1
        assert graph.validate() == ["Connection references missing node: gone"]
