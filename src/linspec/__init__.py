"""
linspec: dimension- and field-parametric generation of unrolled vector and
matrix functions as expression trees.

    >>> table = generate_vector(3, "v")
    >>> NumpyBackend().bind(table)["vdot"]([1, 0, 0], [0, 1, 0])
    0
"""

from .compiler.driver import GeneratorDriver, generate_matrix, generate_vector
from .frontend.parser import parse_template
from .ir.matching import Template, match, substitute
from .ir.nodes import FunctionSpec, FunctionTable
from .ir.serialization import deserialize_ir, serialize_function, serialize_ir, serialize_table
from .backends.numpy import NumpyBackend
from .passes.field_rewrite import apply_field
from .passes.fields import Field, complex_field, scalar_field
from .passes.rename import merge, rename
from .shared.errors import (
    LinspecError, ConfigurationError, UnsupportedOperationError,
    PatternMismatchError, TemplateSyntaxError, EvaluationError,
)

__all__ = [
    "GeneratorDriver", "generate_vector", "generate_matrix", "merge", "rename",
    "parse_template", "Template", "match", "substitute",
    "FunctionSpec", "FunctionTable",
    "serialize_ir", "serialize_function", "serialize_table", "deserialize_ir",
    "NumpyBackend", "apply_field", "Field", "scalar_field", "complex_field",
    "LinspecError", "ConfigurationError", "UnsupportedOperationError",
    "PatternMismatchError", "TemplateSyntaxError", "EvaluationError",
]
