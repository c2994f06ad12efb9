"""
Generator Driver

Orchestrates one generate call: validate inputs, run the registered passes on
a fresh GenerationContext, apply the prefix and freeze the result into a
FunctionTable. Errors propagate to the caller; no partial table is returned.
"""

import logging
import os
from typing import Iterable, Optional

from ..ir.nodes import FunctionTable
from ..passes.base import GenerationContext, PassManager
from ..passes.composite import CompositeFunctionsPass
from ..passes.fields import Field, resolve_field
from ..passes.matrix import MATRIX_UNSUPPORTED, MatrixComponentwisePass, select_operations
from ..passes.reduction import VectorReductionPass, check_dimension
from ..passes.rename import merge, rename
from ..utils.config import DEFAULT_PREFIX

logger = logging.getLogger("linspec.compiler.driver")


class GeneratorDriver:
    """
    Generator driver.

    Holds one pass manager per table kind:
    - vector: VectorReductionPass -> CompositeFunctionsPass
    - matrix: MatrixComponentwisePass

    The driver keeps no state between calls.
    """

    def __init__(self):
        self.vector_passes = PassManager()
        self.vector_passes.register_pass(VectorReductionPass)
        self.vector_passes.register_pass(CompositeFunctionsPass)

        self.matrix_passes = PassManager()
        self.matrix_passes.register_pass(MatrixComponentwisePass)

    def generate_vector(self, n: int, prefix: Optional[str] = DEFAULT_PREFIX,
                        field: Optional[Field] = None) -> FunctionTable:
        """Vector table: plus minus times scale dot norm unit proj orth."""
        ctx = self._context(n, prefix, field)
        functions = self.vector_passes.run_all({}, ctx, dump_ir=_dump_ir())
        return FunctionTable(rename(functions, ctx.prefix))

    def generate_matrix(self, n: int, prefix: Optional[str] = DEFAULT_PREFIX,
                        field: Optional[Field] = None,
                        operations: Optional[Iterable[str]] = None) -> FunctionTable:
        """
        Componentwise matrix table: plus minus scale transpose.

        ``times`` and ``determinant`` are recorded as unsupported; looking
        them up raises UnsupportedOperationError, and so does requesting them
        through *operations*.
        """
        selected = select_operations(operations)
        ctx = self._context(n, prefix, field, selected)
        functions = self.matrix_passes.run_all({}, ctx, dump_ir=_dump_ir())
        return FunctionTable(rename(functions, ctx.prefix),
                             unsupported=[ctx.prefix + name for name in MATRIX_UNSUPPORTED])

    def _context(self, n: int, prefix: Optional[str], field: Optional[Field],
                 operations=None) -> GenerationContext:
        check_dimension(n)
        if prefix is None:
            prefix = DEFAULT_PREFIX
        if not isinstance(prefix, str):
            raise TypeError(f"prefix must be a string, got {type(prefix).__name__}")
        field = resolve_field(field)
        if field.unresolved:
            logger.warning(
                f"field '{field.name}' uses unresolved operator definitions; "
                f"generated code may not compute what its name suggests"
            )
        logger.debug(f"generating n={n} prefix={prefix!r} field={field.name}")
        return GenerationContext(n, field, prefix, operations)


def _dump_ir() -> bool:
    return bool(os.environ.get("LINSPEC_DUMP_IR_PER_PASS"))


def generate_vector(n: int, prefix: Optional[str] = DEFAULT_PREFIX,
                    field: Optional[Field] = None) -> FunctionTable:
    """
    Generate the unrolled vector functions for dimension *n*.

    Keys are ``prefix + name``; a prefix of None means no prefix. Each call
    returns a fresh table; equal inputs give structurally equal tables.
    """
    return GeneratorDriver().generate_vector(n, prefix, field)


def generate_matrix(n: int, prefix: Optional[str] = DEFAULT_PREFIX, field: Optional[Field] = None,
                    operations: Optional[Iterable[str]] = None) -> FunctionTable:
    """Generate the componentwise n x n matrix functions."""
    return GeneratorDriver().generate_matrix(n, prefix, field, operations)


__all__ = ["GeneratorDriver", "generate_vector", "generate_matrix", "merge"]
