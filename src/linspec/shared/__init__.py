"""
Shared components: locations, operator enums and errors.
"""

from .source_location import SourceLocation
from .types import BinaryOp, UnaryOp
from .errors import (
    Error, LinspecError, ConfigurationError, UnsupportedOperationError,
    PatternMismatchError, EvaluationError, TemplateSyntaxError,
)
