"""
Pytest configuration and shared fixtures for all linspec tests.

Generation is pure and the driver keeps no state between calls, so one driver
is shared for the whole session. Backends hold bound names and are created
per test.
"""

import sys
import pytest
from typing import Callable, Dict, Optional
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from linspec.compiler.driver import GeneratorDriver
from linspec.backends.numpy import NumpyBackend
from linspec.passes.fields import Field


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_driver():
    """Stateless driver shared across all tests."""
    return GeneratorDriver()


# =============================================================================
# Function-scoped fixtures
# =============================================================================

@pytest.fixture
def backend():
    """Fresh backend per test (bind() adds names to it)."""
    return NumpyBackend()


@pytest.fixture
def vector_functions(session_driver) -> Callable[..., Dict[str, Callable]]:
    """
    Factory: generate a vector table and return its bound callables.

    Usage: ``f = vector_functions(3, "v"); f["vdot"](a, b)``
    """
    def _vector_functions(n: int, prefix: str = "", field: Optional[Field] = None):
        table = session_driver.generate_vector(n, prefix, field)
        return NumpyBackend().bind(table)
    return _vector_functions


@pytest.fixture
def matrix_functions(session_driver) -> Callable[..., Dict[str, Callable]]:
    """Factory: like vector_functions for the matrix table."""
    def _matrix_functions(n: int, prefix: str = "", field: Optional[Field] = None):
        table = session_driver.generate_matrix(n, prefix, field)
        return NumpyBackend().bind(table)
    return _matrix_functions


@pytest.fixture
def no_color(monkeypatch):
    """Plain diagnostics for string assertions."""
    monkeypatch.setenv("NO_COLOR", "1")
