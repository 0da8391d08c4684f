"""Tests for Port and Connection."""

from __future__ import annotations

import pytest

from nodeloom.core.ports import Connection, Port
from nodeloom.core.types import PortCapacity, PortDirection


class TestPort:
    """Tests for port capacity defaults."""

    def test_output_defaults_to_multi(self):
        """Output ports allow fan-out unless told otherwise."""
        port = Port.output("output", "Next")
        assert port.direction == PortDirection.OUTPUT
        assert port.capacity == PortCapacity.MULTI

    def test_input_defaults_to_single(self):
        """Input ports accept one connection by default."""
        port = Port.input("input", "Execute")
        assert port.direction == PortDirection.INPUT
        assert port.capacity == PortCapacity.SINGLE

    def test_explicit_capacity_kept(self):
        """An explicit capacity overrides the direction default."""
        assert Port.output("step", "Step", PortCapacity.SINGLE).capacity == PortCapacity.SINGLE
        assert Port.input("join", "Join", PortCapacity.MULTI).capacity == PortCapacity.MULTI


class TestConnection:
    """Tests for Connection equality and persistence records."""

    def test_structural_equality(self):
        """Connections with the same four fields are equal and hash alike."""
        a = Connection("n1", "output", "n2", "input")
        b = Connection("n1", "output", "n2", "input")
        assert a == b
        assert len({a, b}) == 1

    def test_any_field_differs(self):
        """Changing any field gives a different connection."""
        base = Connection("n1", "output", "n2", "input")
        assert base != Connection("n1", "true", "n2", "input")
        assert base != Connection("n1", "output", "n3", "input")

    def test_frozen(self):
        """Connections are immutable."""
        conn = Connection("n1", "output", "n2", "input")
        with pytest.raises(AttributeError):
            conn.out_node = "other"  # type: ignore[misc]

    def test_entry_keys(self):
        """Persisted record uses outNode/outPort/inNode/inPort."""
        conn = Connection("n1", "output", "n2", "input")
        assert conn.to_entry() == {
            "outNode": "n1",
            "outPort": "output",
            "inNode": "n2",
            "inPort": "input",
        }
        assert Connection.from_entry(conn.to_entry()) == conn

    def test_touches(self):
        """touches() is true for either endpoint only."""
        conn = Connection("n1", "output", "n2", "input")
        assert conn.touches("n1")
        assert conn.touches("n2")
        assert not conn.touches("n3")
