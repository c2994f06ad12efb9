"""
End-to-end tests at dimensions well past the hand-checkable ones.

A left fold over n components nests n operators, and complex field templates
read each operand twice, so these sizes exercise both tree depth and shared
sub-trees.
"""

import time

import numpy as np
import pytest

from linspec import complex_field, generate_matrix, generate_vector
from tests.test_utils import as_pairs, assert_close, complex_vector


class TestLargeScalar:
    @pytest.mark.parametrize("n", [64, 512, 1000])
    def test_dot_and_norm(self, vector_functions, n):
        f = vector_functions(n, "v")
        ones = np.ones(n)
        assert f["vdot"](ones, ones) == n
        assert_close(f["vnorm"](np.full(n, 2.0)), 2.0 * np.sqrt(n))

    @pytest.mark.parametrize("n", [64, 512])
    def test_plus_and_unit(self, vector_functions, n):
        f = vector_functions(n, "v")
        a = np.arange(n, dtype=float)
        np.testing.assert_array_equal(f["vplus"](a, a), 2 * a)
        assert_close(f["vnorm"](f["vunit"](a + 1.0)), 1.0)

    def test_matrix(self, matrix_functions):
        n = 32
        m = np.arange(n * n, dtype=float).reshape(n, n)
        f = matrix_functions(n, "m")
        np.testing.assert_array_equal(f["mtranspose"](m), m.T)
        np.testing.assert_array_equal(f["mplus"](m, m), 2 * m)


class TestLargeComplex:
    @pytest.mark.parametrize("n", [16, 32])
    def test_dot_of_ones(self, vector_functions, n):
        f = vector_functions(n, "c", complex_field())
        ones = complex_vector([(1, 0)] * n)
        assert f["cdot"](ones, ones) == {"r": n, "i": 0}

    @pytest.mark.parametrize("n", [16, 32])
    def test_plus(self, vector_functions, n):
        f = vector_functions(n, "c", complex_field())
        a = complex_vector([(k, -k) for k in range(n)])
        assert as_pairs(f["cplus"](a, a)) == [(2 * k, -2 * k) for k in range(n)]

    def test_generation_time(self):
        start = time.perf_counter()
        table = generate_vector(32, "c", complex_field())
        elapsed = time.perf_counter() - start
        assert "cdot" in table
        assert elapsed < 10.0

    def test_matrix(self):
        table = generate_matrix(16, "m", complex_field())
        assert list(table) == ["mplus", "mminus", "mscale", "mtranspose"]
