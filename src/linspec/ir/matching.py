"""
Pattern Matching and Substitution

A pattern is an ordinary expression tree plus a set of hole names. Matching
compares shapes structurally (no algebraic normalization: ``a + b`` does not
match a pattern for ``b + a``); substitution replaces hole variables with
bound sub-trees and never mutates its input.
"""

import numbers
from dataclasses import dataclass, fields
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from .nodes import ExpressionIR, LiteralIR, VariableIR
from .visitor import IRTransformer, variables_of
from ..shared.errors import PatternMismatchError

Bindings = Dict[str, ExpressionIR]
BindingValue = Union[ExpressionIR, int, float]


def as_tree(value: BindingValue) -> ExpressionIR:
    """Coerce a binding value to a tree; plain numbers become literals."""
    if isinstance(value, ExpressionIR):
        return value
    if isinstance(value, numbers.Number) and not isinstance(value, bool):
        return LiteralIR(value)
    raise TypeError(f"cannot bind {type(value).__name__} into an expression tree")


def match(pattern: ExpressionIR, tree: ExpressionIR,
          holes: Iterable[str]) -> Optional[Bindings]:
    """
    Match *tree* against *pattern*.

    Returns a binding for every hole position encountered, or None when the
    shapes differ. The first occurrence of a hole binds it; any later
    occurrence must match a structurally equal sub-tree.
    """
    bindings: Bindings = {}
    if _match_into(pattern, tree, frozenset(holes), bindings):
        return bindings
    return None


def _match_into(pattern: Any, tree: Any, holes: FrozenSet[str], bindings: Bindings) -> bool:
    if isinstance(pattern, VariableIR) and pattern.name in holes:
        if not isinstance(tree, ExpressionIR):
            return False
        bound = bindings.get(pattern.name)
        if bound is None:
            bindings[pattern.name] = tree
            return True
        return bound == tree

    if isinstance(pattern, ExpressionIR):
        if type(pattern) is not type(tree):
            return False
        return all(
            _match_into(getattr(pattern, f.name), getattr(tree, f.name), holes, bindings)
            for f in fields(pattern)
        )

    if isinstance(pattern, tuple):
        if not isinstance(tree, tuple) or len(pattern) != len(tree):
            return False
        return all(_match_into(p, t, holes, bindings) for p, t in zip(pattern, tree))

    # Leaf attribute: operator enum, field name, literal value, native flag
    return type(pattern) is type(tree) and pattern == tree


class _Substituter(IRTransformer):
    def __init__(self, bindings: Mapping[str, ExpressionIR]):
        super().__init__()
        self.bindings = bindings

    def visit_variable(self, node: VariableIR) -> ExpressionIR:
        return self.bindings.get(node.name, node)


def substitute(tree: ExpressionIR, bindings: Mapping[str, BindingValue]) -> ExpressionIR:
    """
    Replace every variable named in *bindings* with its bound sub-tree.

    Every other part of the tree is left unchanged; untouched sub-trees are
    reused as-is since trees are immutable.
    """
    if not bindings:
        return tree
    coerced = {name: as_tree(value) for name, value in bindings.items()}
    return _Substituter(coerced).transform(tree)


@dataclass(frozen=True)
class Template:
    """
    An expression tree with declared holes.

    ``instantiate`` requires a binding for exactly the declared holes; anything
    else raises PatternMismatchError since it means the template and its call
    site disagree.
    """
    tree: ExpressionIR
    holes: FrozenSet[str]
    source: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'holes', frozenset(self.holes))

    @classmethod
    def parse(cls, text: str, holes: Iterable[str], native: bool = False,
              name: Optional[str] = None) -> 'Template':
        from ..frontend.parser import parse_template
        return cls(parse_template(text, native=native, name=name), frozenset(holes), text)

    @property
    def variables(self) -> FrozenSet[str]:
        return frozenset(variables_of(self.tree))

    def match(self, tree: ExpressionIR) -> Optional[Bindings]:
        return match(self.tree, tree, self.holes)

    def instantiate(self, bindings: Optional[Mapping[str, BindingValue]] = None,
                    **kwargs: BindingValue) -> ExpressionIR:
        merged: Dict[str, BindingValue] = dict(bindings or {})
        merged.update(kwargs)
        missing = sorted(self.holes - merged.keys())
        unexpected = sorted(merged.keys() - self.holes)
        if missing or unexpected:
            shown = self.source or repr(self.tree)
            parts = []
            if missing:
                parts.append(f"unbound hole(s) {', '.join(missing)}")
            if unexpected:
                parts.append(f"unknown hole(s) {', '.join(unexpected)}")
            raise PatternMismatchError(
                f"template `{shown}`: {'; '.join(parts)}",
                missing=missing, unexpected=unexpected,
            )
        return substitute(self.tree, merged)

    def __str__(self) -> str:
        return self.source or repr(self.tree)
