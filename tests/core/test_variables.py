"""Tests for GraphVariable."""

from __future__ import annotations

import pytest

from nodeloom.core.types import VariableType
from nodeloom.core.variables import GraphVariable


class TestTypedAccessors:
    """Parse-on-read with zero-value fallback."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("true", True), ("TRUE", True), ("True", True), ("1", True), ("false", False),
         ("0", False), ("yes", False), ("", False)],
    )
    def test_bool_parse(self, text, expected):
        """Only "true" (any case) and "1" read as True."""
        assert GraphVariable(name="b", type=VariableType.BOOL, value=text).get_bool() is expected

    def test_int_parse_failure_is_zero(self):
        """Unparseable int text reads as 0."""
        variable = GraphVariable(name="i", type=VariableType.INT, value="abc")
        assert variable.get_int() == 0

    def test_int_rejects_float_text(self):
        """Int parsing is base-10 integer only."""
        assert GraphVariable(name="i", type=VariableType.INT, value="1.5").get_int() == 0

    def test_float_parse_failure_is_zero(self):
        """Unparseable float text reads as 0.0."""
        assert GraphVariable(name="f", type=VariableType.FLOAT, value="x").get_float() == 0.0

    def test_string_is_raw_text(self):
        """String accessor returns the text unchanged."""
        assert GraphVariable(name="s", type=VariableType.STRING, value=" a b ").get_string() == " a b "

    def test_get_uses_declared_type(self):
        """get() dispatches on the declared type."""
        assert GraphVariable(name="i", type=VariableType.INT, value="7").get() == 7
        assert GraphVariable(name="b", type=VariableType.BOOL, value="1").get() is True


class TestTypedMutators:
    """Format-on-write."""

    def test_set_bool_canonical(self):
        """Bools are stored as "true"/"false"."""
        variable = GraphVariable.create_bool("flag")
        variable.set_bool(True)
        assert variable.value == "true"
        variable.set_bool(False)
        assert variable.value == "false"

    def test_set_int_and_float(self):
        """Numbers are stored as their text form."""
        variable = GraphVariable.create_int("n")
        variable.set_int(-12)
        assert variable.value == "-12"
        variable.set_float(2.5)
        assert variable.value == "2.5"

    def test_set_string_none(self):
        """None is stored as empty text."""
        variable = GraphVariable.create_string("s", "x")
        variable.set_string(None)
        assert variable.value == ""

    def test_invalid_text_recovers(self):
        """A bad value reads as zero, then a typed write fixes it."""
        variable = GraphVariable.create_int("score", 10)
        variable.value = "abc"
        assert variable.get_int() == 0
        variable.set_int(5)
        assert variable.get_int() == 5


class TestFactories:
    """Factory classmethods and persistence records."""

    def test_create_parses_default_text(self):
        """create() parses text per type; failures give zero values."""
        assert GraphVariable.create("b", VariableType.BOOL, "1").value == "true"
        assert GraphVariable.create("i", VariableType.INT, "42").get_int() == 42
        assert GraphVariable.create("i", VariableType.INT, "nope").value == "0"
        assert GraphVariable.create("f", VariableType.FLOAT, "0.5").get_float() == 0.5
        assert GraphVariable.create("s", VariableType.STRING, "hi").value == "hi"

    def test_entry(self):
        """Persisted record uses the type name."""
        variable = GraphVariable.create_float("speed", 1.5)
        entry = variable.to_entry()
        assert entry == {"name": "speed", "type": "Float", "value": "1.5"}
        assert GraphVariable.from_entry(entry) == variable

    def test_from_entry_is_verbatim(self):
        """Loading keeps invalid text as is."""
        variable = GraphVariable.from_entry({"name": "i", "type": "Int", "value": "abc"})
        assert variable.value == "abc"
        assert variable.get_int() == 0
