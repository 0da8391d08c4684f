"""NodeGraph - the graph store.

A NodeGraph owns the nodes of one graph (keyed by id), the connections
between their ports and the graph variables. Its durable form is a single
serialized JSON blob holding all three collections.

Write-through:
    Every mutation re-serializes the collections into the in-memory blob
    and marks the graph dirty. Flushing the blob to durable storage is a
    separate step (see persistence.write_graph).

Lazy load:
    A graph constructed from a blob parses it on first access. Loading
    never raises; bad entries are logged and skipped, and a blob that cannot
    be parsed at all leaves an empty but valid graph.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from nodeloom.core.graph.document import (
    ConnectionEntry,
    GraphDocument,
    NodeEntry,
    RawDocument,
    VariableEntry,
)
from nodeloom.core.nodes.base import Node
from nodeloom.core.nodes.registry import NodeRegistry, default_registry
from nodeloom.core.ports import Connection
from nodeloom.core.types import VariableType
from nodeloom.core.variables import GraphVariable

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT", bound=BaseModel)


class NodeGraph:
    """Store of nodes, connections and variables for one graph.

    Args:
        name: Graph name (logs, listings).
        description: Free text.
        registry: Type tag registry used to build nodes on load.
            Defaults to the registry holding the built-in variants.
        blob: Serialized graph to load lazily on first access.

    Example:
        >>> graph = NodeGraph(name="intro")
        >>> start, end = StartNode(), EndNode()
        >>> graph.add_node(start)
        >>> graph.add_node(end)
        >>> graph.connect(start, "output", end, "input")
        >>> graph.validate()
        []
        >>> restored = NodeGraph(blob=graph.save())
        >>> restored.node_count
        2
    """

    def __init__(
        self,
        name: str = "New Graph",
        description: str = "",
        registry: NodeRegistry | None = None,
        blob: str = "",
    ) -> None:
        self.name = name
        self.description = description
        self._registry = registry or _builtin_registry()

        self._blob = blob
        self._nodes: dict[str, Node] = {}
        self._connections: list[Connection] = []
        self._variables: list[GraphVariable] = []
        self._loaded = not blob
        self._dirty = False

    # -- Load / save -------------------------------------------------------

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def blob(self) -> str:
        """The in-memory serialized form of the graph."""
        return self._blob

    @property
    def dirty(self) -> bool:
        """True when the blob changed since the last durable flush."""
        return self._dirty

    @property
    def loaded(self) -> bool:
        return self._loaded

    def mark_clean(self) -> None:
        self._dirty = False

    def load(self, blob: str) -> None:
        """Replace the graph contents with the given serialized blob."""
        self._blob = blob
        self._loaded = False
        self._ensure_loaded()

    def force_reload(self) -> None:
        """Re-parse the in-memory blob, discarding unsaved object edits."""
        self._loaded = False
        self._ensure_loaded()

    def save(self) -> str:
        """Serialize the current collections into the in-memory blob."""
        self._ensure_loaded()
        document = GraphDocument.model_validate(
            {
                "nodes": [
                    {"typeTag": self._registry.tag_for(node), "payload": node.to_payload()}
                    for node in self._nodes.values()
                ],
                "connections": [conn.to_entry() for conn in self._connections],
                "variables": [variable.to_entry() for variable in self._variables],
            }
        )
        self._blob = document.to_json()
        logger.debug(
            "graph_saved: name=%s, nodes=%d, connections=%d, variables=%d",
            self.name,
            len(self._nodes),
            len(self._connections),
            len(self._variables),
        )
        return self._blob

    def mark_dirty(self) -> None:
        """Re-serialize after an in-place edit (e.g. a variable value) and mark dirty."""
        self.save()
        self._dirty = True

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return

        for node in self._nodes.values():
            node.graph = None
        self._nodes = {}
        self._connections = []
        self._variables = []
        self._loaded = True

        if not self._blob:
            logger.warning("graph_blob_empty: name=%s, graph will be empty", self.name)
            return

        try:
            document = RawDocument.model_validate_json(self._blob)
        except ValidationError as e:
            logger.error(
                "graph_load_failed: name=%s, errors=%d, first=%s",
                self.name,
                e.error_count(),
                e.errors()[0].get("msg") if e.errors() else "",
            )
            return

        nodes: dict[str, Node] = {}
        for entry in self._validate_entries(NodeEntry, document.nodes, "node"):
            node = self._build_node(entry)
            if node is None:
                continue
            if node.id in nodes:
                logger.warning(
                    "duplicate_node_id: graph=%s, id=%s, name=%s, skipping duplicate",
                    self.name,
                    node.id,
                    node.name,
                )
                continue
            node.graph = self
            nodes[node.id] = node

        self._nodes = nodes
        self._connections = [
            Connection(c.out_node, c.out_port, c.in_node, c.in_port)
            for c in self._validate_entries(ConnectionEntry, document.connections, "connection")
        ]
        self._variables = [
            GraphVariable.from_entry(v.model_dump())
            for v in self._validate_entries(VariableEntry, document.variables, "variable")
        ]

        logger.debug(
            "graph_loaded: name=%s, nodes=%d, connections=%d, variables=%d",
            self.name,
            len(self._nodes),
            len(self._connections),
            len(self._variables),
        )

    def _validate_entries(
        self, model: type[EntryT], raw: list[Any], kind: str
    ) -> list[EntryT]:
        entries: list[EntryT] = []
        for index, item in enumerate(raw):
            try:
                entries.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "graph_entry_invalid: graph=%s, kind=%s, index=%d, first=%s, skipping",
                    self.name,
                    kind,
                    index,
                    e.errors()[0].get("msg") if e.errors() else "",
                )
        return entries

    def _build_node(self, entry: NodeEntry) -> Node | None:
        if not entry.type_tag:
            return None

        node_cls = self._registry.resolve(entry.type_tag)
        if node_cls is None:
            logger.warning("node_type_not_found: graph=%s, tag=%s", self.name, entry.type_tag)
            return None

        try:
            return node_cls.from_payload(entry.payload)
        except (TypeError, ValueError) as e:
            logger.warning(
                "node_payload_invalid: graph=%s, tag=%s, error=%s", self.name, entry.type_tag, e
            )
            return None

    # -- Queries -----------------------------------------------------------

    @property
    def nodes(self) -> list[Node]:
        self._ensure_loaded()
        return list(self._nodes.values())

    @property
    def connections(self) -> list[Connection]:
        self._ensure_loaded()
        return list(self._connections)

    @property
    def variables(self) -> list[GraphVariable]:
        self._ensure_loaded()
        return list(self._variables)

    @property
    def node_count(self) -> int:
        self._ensure_loaded()
        return len(self._nodes)

    @property
    def connection_count(self) -> int:
        self._ensure_loaded()
        return len(self._connections)

    @property
    def variable_count(self) -> int:
        self._ensure_loaded()
        return len(self._variables)

    def get_node(self, node_id: str) -> Node | None:
        self._ensure_loaded()
        return self._nodes.get(node_id)

    def get_entry_node(self) -> Node | None:
        """First node whose variant is an entry variant (Start)."""
        self._ensure_loaded()
        for node in self._nodes.values():
            if node.is_entry:
                return node
        return None

    def get_connected_nodes(self, node_id: str, output_port_id: str) -> list[Node]:
        """Nodes wired to an output port, in connection order.

        Connections whose target node does not exist are skipped.
        """
        self._ensure_loaded()
        result: list[Node] = []
        for conn in self._connections:
            if conn.out_node == node_id and conn.out_port == output_port_id:
                target = self._nodes.get(conn.in_node)
                if target is not None:
                    result.append(target)
        return result

    def get_incoming_connections(self, node_id: str) -> list[Connection]:
        self._ensure_loaded()
        return [conn for conn in self._connections if conn.in_node == node_id]

    def get_outgoing_connections(self, node_id: str) -> list[Connection]:
        self._ensure_loaded()
        return [conn for conn in self._connections if conn.out_node == node_id]

    def get_variable(self, name: str) -> GraphVariable | None:
        self._ensure_loaded()
        for variable in self._variables:
            if variable.name == name:
                return variable
        return None

    def validate(self) -> list[str]:
        """Check the graph can run.

        Returns:
            Human-readable error messages (empty if valid).
        """
        self._ensure_loaded()
        errors: list[str] = []

        if not self._nodes:
            errors.append("Graph has no nodes")
            return errors

        if self.get_entry_node() is None:
            errors.append("Graph has no Start node")

        for conn in self._connections:
            if conn.out_node not in self._nodes:
                errors.append(f"Connection references missing node: {conn.out_node}")
            if conn.in_node not in self._nodes:
                errors.append(f"Connection references missing node: {conn.in_node}")

        return errors

    def reset_all_nodes(self) -> None:
        self._ensure_loaded()
        for node in self._nodes.values():
            node.reset()

    # -- Mutations ---------------------------------------------------------

    def add_node(self, node: Node) -> Node:
        """Add a node. A node whose id is already present is ignored."""
        self._ensure_loaded()
        if node.id in self._nodes:
            return self._nodes[node.id]

        node.graph = self
        self._nodes[node.id] = node
        self.mark_dirty()
        logger.debug("node_added: graph=%s, id=%s, name=%s", self.name, node.id, node.name)
        return node

    def remove_node(self, node: Node | str) -> None:
        """Remove a node and every connection touching it."""
        self._ensure_loaded()
        node_id = node if isinstance(node, str) else node.id

        self._connections = [conn for conn in self._connections if not conn.touches(node_id)]
        removed = self._nodes.pop(node_id, None)
        if removed is not None:
            removed.graph = None

        self.mark_dirty()
        logger.debug("node_removed: graph=%s, id=%s", self.name, node_id)

    def add_connection(self, connection: Connection) -> None:
        """Add a connection. An equal connection already present is ignored."""
        self._ensure_loaded()
        if connection in self._connections:
            return

        self._connections.append(connection)
        self.mark_dirty()
        logger.debug("connection_added: graph=%s, %s", self.name, connection)

    def connect(
        self,
        out_node: Node | str,
        out_port: str,
        in_node: Node | str,
        in_port: str,
    ) -> Connection:
        """Wire an output port to an input port."""
        connection = Connection(
            out_node=out_node if isinstance(out_node, str) else out_node.id,
            out_port=out_port,
            in_node=in_node if isinstance(in_node, str) else in_node.id,
            in_port=in_port,
        )
        self.add_connection(connection)
        return connection

    def remove_connection(self, connection: Connection) -> None:
        self._ensure_loaded()
        self._connections = [conn for conn in self._connections if conn != connection]
        self.mark_dirty()

    def clean_orphaned_connections(self) -> int:
        """Drop connections whose endpoints are missing.

        Returns:
            Number of connections removed.
        """
        self._ensure_loaded()
        kept = [
            conn
            for conn in self._connections
            if conn.out_node in self._nodes and conn.in_node in self._nodes
        ]
        removed = len(self._connections) - len(kept)
        if removed:
            self._connections = kept
            self.mark_dirty()
            logger.info("orphaned_connections_cleaned: graph=%s, removed=%d", self.name, removed)
        return removed

    def add_variable(self, variable: GraphVariable) -> None:
        """Add a variable. A name already in use is a warning and a no-op."""
        self._ensure_loaded()
        if self.get_variable(variable.name) is not None:
            logger.warning("variable_exists: graph=%s, name=%s", self.name, variable.name)
            return

        self._variables.append(variable)
        self.mark_dirty()
        logger.debug("variable_added: graph=%s, name=%s", self.name, variable.name)

    def remove_variable(self, variable: GraphVariable | str) -> bool:
        """Remove a variable by name or instance.

        Returns:
            True if a variable was removed.
        """
        self._ensure_loaded()
        if isinstance(variable, str):
            kept = [v for v in self._variables if v.name != variable]
            name = variable
        else:
            kept = [v for v in self._variables if v is not variable]
            name = variable.name

        if len(kept) == len(self._variables):
            return False

        self._variables = kept
        self.mark_dirty()
        logger.debug("variable_removed: graph=%s, name=%s", self.name, name)
        return True

    def get_or_create_variable(
        self, name: str, type: VariableType, default_text: str = ""
    ) -> GraphVariable:
        """Get a variable, creating it from default text if missing."""
        self._ensure_loaded()
        variable = self.get_variable(name)
        if variable is None:
            variable = GraphVariable.create(name, type, default_text)
            self._variables.append(variable)
            self.mark_dirty()
            logger.debug("variable_created: graph=%s, name=%s, type=%s", self.name, name, type.value)
        return variable

    def clear(self) -> None:
        """Remove all nodes, connections and variables."""
        for node in self._nodes.values():
            node.graph = None
        self._nodes = {}
        self._connections = []
        self._variables = []
        self._loaded = True
        self.mark_dirty()
        logger.info("graph_cleared: name=%s", self.name)

    # -- Info --------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Summary for listings (not the persisted form)."""
        self._ensure_loaded()
        return {
            "name": self.name,
            "description": self.description,
            "nodes": [
                {
                    "id": node.id,
                    "type": self._registry.tag_for(node),
                    "name": node.display_name,
                    "breakpoint": node.has_breakpoint,
                }
                for node in self._nodes.values()
            ],
            "connections": [conn.to_entry() for conn in self._connections],
            "variables": [variable.to_entry() for variable in self._variables],
        }

    def __repr__(self) -> str:
        return f"NodeGraph(name={self.name!r}, nodes={len(self._nodes)})"


def _builtin_registry() -> NodeRegistry:
    # Importing the nodes package registers the built-in variants.
    import nodeloom.core.nodes  # noqa: F401

    return default_registry
