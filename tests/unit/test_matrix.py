"""
Tests for the componentwise matrix generator.
"""

import pytest

from linspec.passes.base import GenerationContext
from linspec.passes.fields import scalar_field
from linspec.passes.matrix import (
    MATRIX_OPERATIONS, MatrixComponentwisePass, componentwise, select_operations,
)
from linspec.shared.errors import ConfigurationError, UnsupportedOperationError
from tests.test_utils import call_field, tree


class TestComponentwise:
    def test_plus(self):
        body = componentwise(2, ("a", "b"), "a[i][j] + b[i][j]")
        assert body == tree(
            "[[a[0][0] + b[0][0], a[0][1] + b[0][1]], [a[1][0] + b[1][0], a[1][1] + b[1][1]]]"
        )

    def test_transpose(self):
        assert componentwise(2, ("a",), "a[j][i]") == tree("[[a[0][0], a[1][0]], [a[0][1], a[1][1]]]")

    def test_scale(self):
        assert componentwise(1, ("a", "b"), "a[i][j] * b") == tree("[[a[0][0] * b]]")

    def test_square(self):
        body = componentwise(3, ("a",), "a[i][j]")
        assert len(body.elements) == 3
        assert all(len(row.elements) == 3 for row in body.elements)

    def test_dimension_checked(self):
        with pytest.raises(ConfigurationError):
            componentwise(0, ("a",), "a[i][j]")


class TestSelectOperations:
    def test_default_is_everything_generated(self):
        assert select_operations(None) == ("plus", "minus", "scale", "transpose")

    def test_subset_keeps_order_and_drops_duplicates(self):
        assert select_operations(["transpose", "plus", "transpose"]) == ("transpose", "plus")

    def test_single_name(self):
        assert select_operations("plus") == ("plus",)

    @pytest.mark.parametrize("name", ["times", "determinant"])
    def test_unsupported(self, name):
        assert name in MATRIX_OPERATIONS
        with pytest.raises(UnsupportedOperationError, match=name):
            select_operations(["plus", name])

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="'inverse'"):
            select_operations(["inverse"])


class TestMatrixPass:
    def test_generates_selection(self):
        ctx = GenerationContext(2, scalar_field(), operations=("minus",))
        functions = MatrixComponentwisePass().run({}, ctx)
        assert list(functions) == ["minus"]
        assert functions["minus"].formals == ("a", "b")

    def test_field_applied(self):
        ctx = GenerationContext(1, call_field(), operations=("plus", "transpose"))
        functions = MatrixComponentwisePass().run({}, ctx)
        assert functions["plus"].body == tree("[[add(a[0][0], b[0][0])]]")
        assert functions["transpose"].body == tree("[[a[0][0]]]")
