"""
IR Serialization to S-Expressions
====================================

Converts expression trees, FunctionSpecs and tables to a canonical
S-expression format for testing, debugging and the CLI. References print as
``(ref "name")``: the referenced body is serialized once, under its own
function entry, not inlined at every call site.

Uses structured sexpr (nested lists + sexpdata.Symbol), then pretty-prints for
readable output. ``deserialize_ir`` reads the format back.
"""

from typing import Any, Dict, List, Mapping, Optional

import sexpdata

from .nodes import (
    ExpressionIR, LiteralIR, VariableIR, IndexIR, FieldAccessIR, BinaryOpIR,
    UnaryOpIR, ArrayLiteralIR, RecordIR, SequenceIR, CallIR, ReferenceIR,
    FunctionSpec, FunctionTable,
)
from ..shared.types import BinaryOp, UnaryOp

NATIVE_KEY = ":native"


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = "  ", max_line: int = 100) -> str:
    """
    Pretty-print structured sexpr. Keeps short forms on one line; breaks only when needed.
    """
    if sexpr is None:
        return "()"
    if isinstance(sexpr, bool):
        return "true" if sexpr else "false"
    if isinstance(sexpr, (int, float)):
        return repr(sexpr)
    # Check Symbol before str (sexpdata.Symbol subclasses str)
    if isinstance(sexpr, sexpdata.Symbol):
        return sexpr.value()
    if isinstance(sexpr, str):
        escaped = sexpr.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(sexpr, list):
        if not sexpr:
            return "()"
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
        one_line = "(" + " ".join(parts) + ")"
        if len(one_line) + len(indent_str) * indent <= max_line and "\n" not in one_line:
            return one_line
        prefix = indent_str * indent
        next_prefix = indent_str * (indent + 1)
        # First element on same line as ( to avoid orphan (; no space after (
        rest = "\n".join(next_prefix + p for p in parts[1:])
        inner = parts[0] + ("\n" + rest if rest else "")
        return f"({inner}\n{prefix})"
    return str(sexpr)


def _render(sexpr: Any, pretty: bool) -> str:
    return _pretty_dumps(sexpr) if pretty else sexpdata.dumps(sexpr)


def serialize_ir(node: ExpressionIR, pretty: bool = True) -> str:
    """
    Serialize an expression tree to an S-expression string.

    Args:
        node: Tree to serialize
        pretty: Break long forms over several lines (default True). Set False
            for compact single-line output.
    """
    return _render(IRSerializer().serialize_to_sexpr(node), pretty)


def serialize_function(spec: FunctionSpec, pretty: bool = True) -> str:
    """``(function "name" ("a" "b") body)``"""
    return _render(IRSerializer().serialize_function(spec), pretty)


def serialize_table(table: Mapping[str, FunctionSpec], pretty: bool = True) -> str:
    """``(table (function ...) ...)`` in key order; unsupported names as ``(unsupported "name")``."""
    return _render(IRSerializer().serialize_table(table), pretty)


class IRSerializer:
    """
    Expression tree to structured S-expression serializer.

    Returns nested lists; sexpdata.Symbol is used for tags and operators so
    they print unquoted, names print as strings.
    """

    def _sym(self, s: str) -> Any:
        return sexpdata.Symbol(s)

    def serialize_to_sexpr(self, node: Any) -> Any:
        """Serialize any IR node to structured sexpr (list/Symbol/str)."""
        method = getattr(self, f"_serialize_{type(node).__name__}", None)
        if method is None:
            raise TypeError(f"cannot serialize {type(node).__name__}")
        return method(node)

    def serialize_function(self, spec: FunctionSpec) -> list:
        return [self._sym("function"), spec.name, list(spec.formals),
                self.serialize_to_sexpr(spec.body)]

    def serialize_table(self, table: Mapping[str, FunctionSpec]) -> list:
        out: List[Any] = [self._sym("table")]
        for key in table:
            spec = table[key]
            entry = self.serialize_function(spec)
            if key != spec.name:
                entry.extend([self._sym(":key"), key])
            out.append(entry)
        for name in sorted(getattr(table, "unsupported", ())):
            out.append([self._sym("unsupported"), name])
        return out

    def _with_native(self, node: Any, core: list) -> list:
        if node.native:
            core.append(self._sym(NATIVE_KEY))
        return core

    def _serialize_LiteralIR(self, node: LiteralIR) -> list:
        return [self._sym("literal"), node.value]

    def _serialize_VariableIR(self, node: VariableIR) -> list:
        return [self._sym("variable"), node.name]

    def _serialize_IndexIR(self, node: IndexIR) -> list:
        return [self._sym("index"), self.serialize_to_sexpr(node.base),
                self.serialize_to_sexpr(node.index)]

    def _serialize_FieldAccessIR(self, node: FieldAccessIR) -> list:
        return [self._sym("field-access"), self.serialize_to_sexpr(node.base), node.field]

    def _serialize_BinaryOpIR(self, node: BinaryOpIR) -> list:
        """(binary-op OP left right [:native])"""
        core = [self._sym("binary-op"), self._sym(node.operator.value),
                self.serialize_to_sexpr(node.left), self.serialize_to_sexpr(node.right)]
        return self._with_native(node, core)

    def _serialize_UnaryOpIR(self, node: UnaryOpIR) -> list:
        """(unary-op OP operand [:native])"""
        core = [self._sym("unary-op"), self._sym(node.operator.value),
                self.serialize_to_sexpr(node.operand)]
        return self._with_native(node, core)

    def _serialize_ArrayLiteralIR(self, node: ArrayLiteralIR) -> list:
        return [self._sym("array-literal")] + [self.serialize_to_sexpr(e) for e in node.elements]

    def _serialize_RecordIR(self, node: RecordIR) -> list:
        return [self._sym("record")] + [[key, self.serialize_to_sexpr(value)] for key, value in node.entries]

    def _serialize_SequenceIR(self, node: SequenceIR) -> list:
        return [self._sym("sequence")] + [self.serialize_to_sexpr(e) for e in node.elements]

    def _serialize_CallIR(self, node: CallIR) -> list:
        return ([self._sym("call"), self.serialize_to_sexpr(node.callee)]
                + [self.serialize_to_sexpr(arg) for arg in node.arguments])

    def _serialize_ReferenceIR(self, node: ReferenceIR) -> list:
        return [self._sym("ref"), node.name]


# ============================================================================
# Deserialization
# ============================================================================

def _sym_val(x: Any) -> Any:
    return x.value() if isinstance(x, sexpdata.Symbol) else x


def _split_flags(tail: list) -> tuple:
    """Separate trailing keyword flags (``:native``) from positional items."""
    pos = [x for x in tail if not (isinstance(x, sexpdata.Symbol) and x.value().startswith(":"))]
    flags = {x.value() for x in tail if isinstance(x, sexpdata.Symbol) and x.value().startswith(":")}
    return pos, flags


class IRDeserializer:
    """
    S-expression to expression tree.

    ``(ref "name")`` resolves against *functions*; specs deserialized through
    ``deserialize_table`` become available to later entries.
    """

    def __init__(self, functions: Optional[Mapping[str, FunctionSpec]] = None):
        self.functions: Dict[str, FunctionSpec] = dict(functions or {})

    def deserialize(self, sexpr: Any) -> ExpressionIR:
        if not isinstance(sexpr, list) or not sexpr:
            raise ValueError(f"expected a tagged list, got {sexpr!r}")
        tag = _sym_val(sexpr[0])
        method = getattr(self, f"_deserialize_{str(tag).replace('-', '_')}", None)
        if method is None:
            raise ValueError(f"unknown node tag {tag!r}")
        return method(sexpr[1:])

    def deserialize_function(self, sexpr: list) -> FunctionSpec:
        if _sym_val(sexpr[0]) != "function":
            raise ValueError(f"expected (function ...), got {_sym_val(sexpr[0])!r}")
        name, formals, body = sexpr[1], sexpr[2], sexpr[3]
        spec = FunctionSpec(name, tuple(formals), self.deserialize(body))
        self.functions[name] = spec
        return spec

    def deserialize_table(self, sexpr: list) -> FunctionTable:
        if _sym_val(sexpr[0]) != "table":
            raise ValueError(f"expected (table ...), got {_sym_val(sexpr[0])!r}")
        functions: Dict[str, FunctionSpec] = {}
        unsupported = []
        for entry in sexpr[1:]:
            if _sym_val(entry[0]) == "unsupported":
                unsupported.append(entry[1])
                continue
            spec = self.deserialize_function(entry[:4])
            key = entry[5] if len(entry) > 5 and _sym_val(entry[4]) == ":key" else spec.name
            functions[key] = spec
        return FunctionTable(functions, unsupported)

    def _deserialize_literal(self, tail: list) -> LiteralIR:
        return LiteralIR(tail[0])

    def _deserialize_variable(self, tail: list) -> VariableIR:
        return VariableIR(tail[0])

    def _deserialize_index(self, tail: list) -> IndexIR:
        return IndexIR(self.deserialize(tail[0]), self.deserialize(tail[1]))

    def _deserialize_field_access(self, tail: list) -> FieldAccessIR:
        return FieldAccessIR(self.deserialize(tail[0]), tail[1])

    def _deserialize_binary_op(self, tail: list) -> BinaryOpIR:
        pos, flags = _split_flags(tail)
        return BinaryOpIR(BinaryOp(_sym_val(pos[0])), self.deserialize(pos[1]),
                          self.deserialize(pos[2]), NATIVE_KEY in flags)

    def _deserialize_unary_op(self, tail: list) -> UnaryOpIR:
        pos, flags = _split_flags(tail)
        return UnaryOpIR(UnaryOp(_sym_val(pos[0])), self.deserialize(pos[1]), NATIVE_KEY in flags)

    def _deserialize_array_literal(self, tail: list) -> ArrayLiteralIR:
        return ArrayLiteralIR(tuple(self.deserialize(e) for e in tail))

    def _deserialize_record(self, tail: list) -> RecordIR:
        return RecordIR(tuple((key, self.deserialize(value)) for key, value in tail))

    def _deserialize_sequence(self, tail: list) -> SequenceIR:
        return SequenceIR(tuple(self.deserialize(e) for e in tail))

    def _deserialize_call(self, tail: list) -> CallIR:
        return CallIR(self.deserialize(tail[0]), tuple(self.deserialize(a) for a in tail[1:]))

    def _deserialize_ref(self, tail: list) -> ReferenceIR:
        name = tail[0]
        if name not in self.functions:
            raise ValueError(f"reference to unknown function {name!r}")
        return ReferenceIR(self.functions[name])


def deserialize_ir(text: str, functions: Optional[Mapping[str, FunctionSpec]] = None) -> ExpressionIR:
    """Parse an S-expression produced by ``serialize_ir`` back into a tree."""
    return IRDeserializer(functions).deserialize(sexpdata.loads(text, nil=None, true=None))


def deserialize_table(text: str) -> FunctionTable:
    """
    Parse ``serialize_table`` output.

    Referenced functions must appear before the functions referencing them,
    which is the order generated tables use.
    """
    return IRDeserializer().deserialize_table(sexpdata.loads(text, nil=None, true=None))
