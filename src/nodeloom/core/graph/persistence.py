"""Durable storage of graphs as JSON files.

The graph store keeps its serialized blob in memory; these helpers move it
to and from disk. Writing is the separate "flush" step: a graph stays dirty
after an edit until write_graph() succeeds.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from nodeloom.core.errors import GraphLoadError
from nodeloom.core.graph.document import RawDocument
from nodeloom.core.graph.graph import NodeGraph
from nodeloom.core.nodes.registry import NodeRegistry

logger = logging.getLogger(__name__)


def read_graph(
    path: str | Path,
    registry: NodeRegistry | None = None,
    strict: bool = False,
    name: str | None = None,
) -> NodeGraph:
    """Load a graph from a JSON file.

    Args:
        path: File to read.
        registry: Registry for node type tags (built-ins by default).
        strict: Raise GraphLoadError when the container does not parse,
            instead of returning an empty graph. Bad entries inside a
            well-formed container are still skipped.
        name: Graph name. Defaults to the file stem.

    Raises:
        GraphLoadError: If the file cannot be read or is not UTF-8, or
            (strict) the container cannot be parsed.
    """
    path = Path(path)
    try:
        blob = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GraphLoadError(str(path), e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise GraphLoadError(str(path), f"not UTF-8 text ({e.reason} at byte {e.start})") from e

    if strict and blob.strip():
        try:
            RawDocument.model_validate_json(blob)
        except ValidationError as e:
            raise GraphLoadError(str(path), f"{e.error_count()} validation error(s)") from e

    graph = NodeGraph(name=name or path.stem, registry=registry)
    graph.load(blob)
    logger.info("graph_read: path=%s, nodes=%d", path, graph.node_count)
    return graph


def write_graph(graph: NodeGraph, path: str | Path) -> Path:
    """Serialize the graph and flush it to a JSON file.

    The graph is marked clean once the file is written.
    """
    path = Path(path)
    blob = graph.save()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(blob, encoding="utf-8")
    graph.mark_clean()
    logger.info("graph_written: path=%s, nodes=%d", path, graph.node_count)
    return path
