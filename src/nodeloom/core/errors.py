"""Exceptions raised by nodeloom.

The engine itself degrades gracefully (logs and skips) for load and runtime
anomalies. These exceptions are raised only on explicit, caller-facing
paths: strict file reads and direct registry construction.
"""

from __future__ import annotations


class NodeloomError(Exception):
    """Base class for nodeloom errors."""

    pass


class GraphLoadError(NodeloomError):
    """A graph file could not be read or parsed in strict mode."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load graph from {source}: {reason}")


class UnknownNodeTypeError(NodeloomError):
    """No node class is registered under the requested type tag."""

    def __init__(self, type_tag: str) -> None:
        self.type_tag = type_tag
        super().__init__(f"Unknown node type: {type_tag!r}")
