"""
Tests for expression tree nodes, FunctionSpec and FunctionTable.
"""

import dataclasses

import pytest

from linspec.ir.nodes import (
    LiteralIR, VariableIR, BinaryOpIR, ArrayLiteralIR, SequenceIR, CallIR,
    RecordIR, ReferenceIR, FunctionSpec, FunctionTable,
)
from linspec.shared.errors import UnsupportedOperationError
from linspec.shared.types import BinaryOp

a, b, c = VariableIR("a"), VariableIR("b"), VariableIR("c")


class TestTreeValues:
    def test_structural_equality_and_hash(self):
        left = BinaryOpIR(BinaryOp.ADD, a, LiteralIR(1))
        right = BinaryOpIR(BinaryOp.ADD, VariableIR("a"), LiteralIR(1))
        assert left == right
        assert hash(left) == hash(right)
        assert left in {right}

    def test_native_flag_is_part_of_identity(self):
        assert BinaryOpIR(BinaryOp.ADD, a, b) != BinaryOpIR(BinaryOp.ADD, a, b, native=True)

    def test_nodes_are_frozen(self):
        node = VariableIR("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.name = "b"

    def test_nested_sequence_flattens(self):
        seq = SequenceIR((SequenceIR((a, b)), c))
        assert seq.elements == (a, b, c)

    def test_sequence_spliced_into_array(self):
        array = ArrayLiteralIR((SequenceIR((a, b)),))
        assert array.elements == (a, b)
        assert array == ArrayLiteralIR((a, b))

    def test_sequence_spliced_into_call_arguments(self):
        call = CallIR(VariableIR("f"), (SequenceIR((a, b)), c))
        assert call.arguments == (a, b, c)

    def test_lists_become_tuples(self):
        assert isinstance(ArrayLiteralIR([a, b]).elements, tuple)
        assert RecordIR([("r", a), ("i", b)]).entries == (("r", a), ("i", b))

    def test_reference_name_follows_target(self):
        spec = FunctionSpec("vdot", ("a", "b"), a)
        assert ReferenceIR(spec).name == "vdot"


class TestFunctionSpec:
    def test_formals_normalized_to_tuple(self):
        spec = FunctionSpec("f", ["a", "b"], a)
        assert spec.formals == ("a", "b")
        assert spec.arity == 2

    def test_value_equality(self):
        assert FunctionSpec("f", ("a",), a) == FunctionSpec("f", ["a"], VariableIR("a"))


class TestFunctionTable:
    def _table(self):
        return FunctionTable({"f": FunctionSpec("f", ("a",), a)}, unsupported=["times"])

    def test_mapping_protocol(self):
        table = self._table()
        assert list(table) == ["f"]
        assert len(table) == 1
        assert "f" in table
        assert table["f"].name == "f"

    def test_unknown_name_is_key_error(self):
        with pytest.raises(KeyError):
            self._table()["g"]

    def test_unsupported_name_raises_unsupported(self):
        table = self._table()
        assert "times" not in table
        assert table.unsupported == frozenset({"times"})
        with pytest.raises(UnsupportedOperationError):
            table["times"]

    def test_unsupported_is_also_not_implemented(self):
        with pytest.raises(NotImplementedError):
            self._table()["times"]

    def test_immutable(self):
        table = self._table()
        with pytest.raises(TypeError):
            table["g"] = FunctionSpec("g", (), a)

    def test_equality_and_hash(self):
        assert self._table() == self._table()
        assert hash(self._table()) == hash(self._table())
        assert self._table() == {"f": FunctionSpec("f", ("a",), a)}
