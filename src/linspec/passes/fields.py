"""
Fields

A Field replaces native scalar arithmetic in generated code: each of
``+ - * / sqrt`` maps to a template over the holes ``_x`` (and ``_y`` for
binary operators), and ``zero`` / ``one`` are closed expressions.

Contract for field authors: a downstream optimizer may duplicate, share or
reorder any subexpression of an instantiated template (that is how the
repeated ``y.r*y.r + y.i*y.i`` in complex division gets eliminated). Field
templates must therefore be side-effect-free and idempotent. This is not
checked at generation time.
"""

import functools
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Union

from ..ir.matching import Template, as_tree
from ..ir.nodes import ExpressionIR
from ..shared.errors import ConfigurationError
from ..shared.types import BinaryOp, UnaryOp
from ..utils.config import FIELD_LEFT_HOLE, FIELD_RIGHT_HOLE

BINARY_HOLES = frozenset({FIELD_LEFT_HOLE, FIELD_RIGHT_HOLE})
UNARY_HOLES = frozenset({FIELD_LEFT_HOLE})

# Field slot -> operator symbol, in declaration order
_SLOT_SYMBOLS = {
    "plus": BinaryOp.ADD.value,
    "minus": BinaryOp.SUB.value,
    "times": BinaryOp.MUL.value,
    "divide": BinaryOp.DIV.value,
    "sqrt": UnaryOp.SQRT.value,
}
_REQUIRED_SLOTS = ("plus", "minus", "times", "divide")

_OPERATOR_SLOTS = {
    BinaryOp.ADD: "plus",
    BinaryOp.SUB: "minus",
    BinaryOp.MUL: "times",
    BinaryOp.DIV: "divide",
    UnaryOp.SQRT: "sqrt",
}

TemplateSource = Union[str, Template]
ConstantSource = Union[str, int, float, ExpressionIR]


@dataclass(frozen=True)
class Field:
    """
    Fixed record of operator templates plus the two identities.

    ``plus minus times divide`` and ``zero one`` are required, ``sqrt`` is
    only needed by ``norm`` and ``unit``. Validation happens on construction.

    ``identity`` marks the default scalar field: rewriting with it is a no-op.
    ``unresolved`` marks a built-in whose constants are known to be doubtful.
    """
    plus: Optional[Template]
    minus: Optional[Template]
    times: Optional[Template]
    divide: Optional[Template]
    zero: Optional[ExpressionIR]
    one: Optional[ExpressionIR]
    sqrt: Optional[Template] = None
    name: str = "custom"
    identity: bool = False
    unresolved: bool = False

    def __post_init__(self):
        missing = [f"'{_SLOT_SYMBOLS[slot]}'" for slot in _REQUIRED_SLOTS if getattr(self, slot) is None]
        missing += [f"'{const}'" for const in ("zero", "one") if getattr(self, const) is None]
        if missing:
            raise ConfigurationError(
                f"field '{self.name}' is missing required operation(s) {', '.join(missing)}"
            )
        for slot in _SLOT_SYMBOLS:
            template = getattr(self, slot)
            if template is not None:
                _check_template(self.name, slot, template)

    @property
    def has_sqrt(self) -> bool:
        return self.sqrt is not None

    def template_for(self, operator: Union[BinaryOp, UnaryOp]) -> Optional[Template]:
        """Template substituted for *operator*, or None when the field leaves it alone."""
        slot = _OPERATOR_SLOTS.get(operator)
        return getattr(self, slot) if slot else None

    @classmethod
    def from_templates(cls, plus: Optional[TemplateSource] = None,
                       minus: Optional[TemplateSource] = None,
                       times: Optional[TemplateSource] = None,
                       divide: Optional[TemplateSource] = None,
                       zero: Optional[ConstantSource] = None,
                       one: Optional[ConstantSource] = None,
                       sqrt: Optional[TemplateSource] = None,
                       name: str = "custom", native: bool = True,
                       unresolved: bool = False) -> 'Field':
        """
        Build a field from template text.

        Operators written in the templates are host arithmetic (``native``)
        unless ``native=False``, in which case they are abstract and get
        rewritten by this field again.
        """
        return cls(
            plus=_template(plus, BINARY_HOLES, native, name, "+"),
            minus=_template(minus, BINARY_HOLES, native, name, "-"),
            times=_template(times, BINARY_HOLES, native, name, "*"),
            divide=_template(divide, BINARY_HOLES, native, name, "/"),
            sqrt=_template(sqrt, UNARY_HOLES, native, name, "sqrt"),
            zero=_constant(zero, native, name),
            one=_constant(one, native, name),
            name=name,
            unresolved=unresolved,
        )

    @classmethod
    def from_mapping(cls, operations: Mapping[str, Any], name: str = "custom",
                     native: bool = True) -> 'Field':
        """Build a field from a mapping keyed by ``'+' '-' '*' '/' 'sqrt' 'zero' 'one'``."""
        unknown = set(operations) - set(_SLOT_SYMBOLS.values()) - {"zero", "one"}
        if unknown:
            raise ConfigurationError(
                f"field '{name}' defines unknown operation(s) {', '.join(sorted(map(repr, unknown)))}"
            )
        return cls.from_templates(
            plus=operations.get("+"),
            minus=operations.get("-"),
            times=operations.get("*"),
            divide=operations.get("/"),
            sqrt=operations.get("sqrt"),
            zero=operations.get("zero"),
            one=operations.get("one"),
            name=name,
            native=native,
        )


def _template(source: Optional[TemplateSource], holes, native: bool,
              field_name: str, symbol: str) -> Optional[Template]:
    if source is None or isinstance(source, Template):
        return source
    return Template.parse(source, holes, native=native, name=f"<field {field_name}:{symbol}>")


def _constant(source: Optional[ConstantSource], native: bool, field_name: str) -> Optional[ExpressionIR]:
    if source is None:
        return None
    if isinstance(source, str):
        from ..frontend.parser import parse_template
        return parse_template(source, native=native, name=f"<field {field_name}:constant>")
    return as_tree(source)


def _check_template(field_name: str, slot: str, template: Template) -> None:
    expected = UNARY_HOLES if slot == "sqrt" else BINARY_HOLES
    symbol = _SLOT_SYMBOLS[slot]
    if template.holes != expected:
        raise ConfigurationError(
            f"field '{field_name}': template for '{symbol}' must declare holes "
            f"{', '.join(sorted(expected))}, got {', '.join(sorted(template.holes)) or 'none'}"
        )
    stray = (template.variables & BINARY_HOLES) - expected
    if stray:
        raise ConfigurationError(
            f"field '{field_name}': template for '{symbol}' uses {', '.join(sorted(stray))}, "
            f"which a unary operation does not bind"
        )


@functools.lru_cache(maxsize=None)
def scalar_field() -> Field:
    """The default field: plain scalar arithmetic, applied as a no-op."""
    field = Field.from_templates(
        plus="_x + _y",
        minus="_x - _y",
        times="_x * _y",
        divide="_x / _y",
        sqrt="sqrt(_x)",
        zero=0,
        one=1,
        name="scalar",
    )
    return replace(field, identity=True)


@functools.lru_cache(maxsize=None)
def complex_field() -> Field:
    """
    Complex numbers as ``{r, i}`` records.

    The constants are kept exactly as first published and are unresolved:
    the imaginary part of ``-`` adds instead of subtracting, and ``*``
    computes ``r: x.r*x.r - x.i*y.i, i: 2*x.i*y.i`` rather than
    ``r: x.r*y.r - x.i*y.i, i: x.r*y.i + x.i*y.r``. Only ``+``
    and ``/`` are correct. There is no ``sqrt``.
    """
    return Field.from_templates(
        plus="{r: _x.r + _y.r, i: _x.i + _y.i}",
        minus="{r: _x.r - _y.r, i: _x.i + _y.i}",
        times="{r: _x.r * _x.r - _x.i * _y.i, i: 2 * _x.i * _y.i}",
        divide="{r: (_x.r*_y.r + _x.i*_y.i) / (_y.r*_y.r + _y.i*_y.i),"
               " i: (_x.i*_y.r - _x.r*_y.i) / (_y.r*_y.r + _y.i*_y.i)}",
        zero="{r: 0, i: 0}",
        one="{r: 1, i: 0}",
        name="complex",
        unresolved=True,
    )


BUILTIN_FIELDS = {
    "scalar": scalar_field,
    "complex": complex_field,
}


def resolve_field(field: Optional[Field]) -> Field:
    """None means the default scalar field."""
    return scalar_field() if field is None else field
