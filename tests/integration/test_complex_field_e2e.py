"""
End-to-end tests for the built-in complex field.

The complex field keeps its published constants, including the known slips in
``-`` and ``*``; these tests pin that behavior so a correction shows up as a
deliberate change.
"""

import logging

import pytest

from linspec import apply_field, complex_field, generate_vector
from linspec.ir.nodes import BinaryOpIR
from linspec.ir.visitor import VariableCollector
from tests.test_utils import as_pairs, assert_close, complex_vector, tree

A = complex_vector([(1, 2), (3, 4)])
B = complex_vector([(5, 6), (7, 8)])


class TestComplexTable:
    def test_warns_about_unresolved_constants(self, caplog):
        with caplog.at_level(logging.WARNING, logger="linspec.compiler.driver"):
            generate_vector(2, "c", complex_field())
        assert any("unresolved" in r.getMessage() and r.levelno == logging.WARNING
                   for r in caplog.records)

    def test_no_sqrt_means_no_norm_or_unit(self):
        table = generate_vector(2, "c", complex_field())
        assert "cnorm" not in table
        assert "cunit" not in table
        assert {"cplus", "cdot", "cproj", "corth"} <= set(table)

    def test_skips_are_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="linspec.passes"):
            generate_vector(2, "c", complex_field())
        messages = [r.getMessage() for r in caplog.records]
        assert any("'norm' is not generated" in m for m in messages)
        assert any("'unit' is not generated" in m for m in messages)


class TestComplexArithmetic:
    def test_plus(self, vector_functions):
        f = vector_functions(2, "c", complex_field())
        assert as_pairs(f["cplus"](A, B)) == [(6, 8), (10, 12)]

    def test_minus_keeps_published_imaginary_part(self, vector_functions):
        f = vector_functions(2, "c", complex_field())
        assert as_pairs(f["cminus"](A, B)) == [(-4, 8), (-4, 12)]

    def test_dot_keeps_published_product(self, vector_functions):
        f = vector_functions(2, "c", complex_field())
        assert f["cdot"](A, B) == {"r": -34, "i": 88}

    def test_division(self, backend):
        body = apply_field(tree("a / b"), complex_field())
        result = backend.evaluate(body, {"a": {"r": 1, "i": 2}, "b": {"r": 3, "i": 4}})
        assert_close([result["r"], result["i"]], [0.44, 0.08])

    def test_division_by_itself(self, backend):
        body = apply_field(tree("a / a"), complex_field())
        result = backend.evaluate(body, {"a": {"r": 2.5, "i": -1.5}})
        assert_close([result["r"], result["i"]], [1.0, 0.0])

    @pytest.mark.parametrize("n", [1, 3, 16])
    def test_only_native_operators_remain(self, n):
        for spec in generate_vector(n, "c", complex_field()).values():
            collector = _OperatorCollector()
            collector.collect(spec.body)
            assert collector.abstract == [], spec.name


class _OperatorCollector(VariableCollector):
    def __init__(self):
        super().__init__()
        self.abstract = []

    def visit_binary_op(self, node: BinaryOpIR) -> None:
        if not node.native:
            self.abstract.append(node.operator.value)
