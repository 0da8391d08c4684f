"""NodeRegistry - maps persisted type tags to node classes.

The registry is the host's extension point: the persisted graph stores a
type tag per node and the graph store resolves it here. Built-in variants
register themselves into `default_registry` when `nodeloom.core.nodes` is
imported; hosts add their own with `register_node`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from nodeloom.core.errors import UnknownNodeTypeError

if TYPE_CHECKING:
    from nodeloom.core.nodes.base import Node

logger = logging.getLogger(__name__)

N = TypeVar("N", bound="type[Node]")


class NodeRegistry:
    """Type tag -> node class lookup.

    Example:
        >>> registry = NodeRegistry()
        >>> registry.register("Start", StartNode)
        >>> registry.resolve("Start") is StartNode
        True
        >>> node = registry.create("Start", {"id": "n1"})
    """

    def __init__(self) -> None:
        self._types: dict[str, type[Node]] = {}

    def register(self, tag: str, node_cls: type[Node]) -> None:
        """Register a node class under a type tag.

        Re-registering a tag replaces the previous class.
        """
        if not tag:
            raise ValueError("Node type tag is required")
        previous = self._types.get(tag)
        if previous is not None and previous is not node_cls:
            logger.warning(
                "node_type_replaced: tag=%s, old=%s, new=%s",
                tag,
                previous.__name__,
                node_cls.__name__,
            )
        self._types[tag] = node_cls

    def unregister(self, tag: str) -> None:
        self._types.pop(tag, None)

    def resolve(self, tag: str) -> type[Node] | None:
        """Get the class registered for a tag, or None."""
        return self._types.get(tag)

    def create(self, tag: str, payload: dict[str, Any] | None = None) -> Node:
        """Build a node of the given type from a payload.

        Raises:
            UnknownNodeTypeError: If the tag is not registered.
        """
        node_cls = self.resolve(tag)
        if node_cls is None:
            raise UnknownNodeTypeError(tag)
        return node_cls.from_payload(payload or {})

    def tag_for(self, node: Node) -> str:
        """Get the type tag to persist for a node instance."""
        for tag, node_cls in self._types.items():
            if type(node) is node_cls:
                return tag
        return type(node).type_tag or type(node).__name__

    def tags(self) -> list[str]:
        """List registered tags in registration order."""
        return list(self._types)

    def __contains__(self, tag: object) -> bool:
        return tag in self._types

    def __len__(self) -> int:
        return len(self._types)


default_registry = NodeRegistry()


def register_node(tag: str, registry: NodeRegistry | None = None) -> Callable[[N], N]:
    """Class decorator registering a node variant under a type tag.

    Example:
        >>> @register_node("Beep")
        ... @dataclass
        ... class BeepNode(Node):
        ...     name = "Beep"
        ...     ...
    """

    def decorator(node_cls: N) -> N:
        node_cls.type_tag = tag
        (registry or default_registry).register(tag, node_cls)
        return node_cls

    return decorator
