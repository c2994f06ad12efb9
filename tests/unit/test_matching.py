"""
Tests for structural matching, substitution and templates.
"""

import pytest

from linspec.ir.matching import Template, as_tree, match, substitute
from linspec.ir.nodes import LiteralIR, VariableIR
from linspec.shared.errors import PatternMismatchError
from tests.test_utils import native_tree, tree


class TestMatch:
    def test_binds_holes(self):
        bindings = match(tree("_x + _y"), tree("a + b * c"), {"_x", "_y"})
        assert bindings == {"_x": tree("a"), "_y": tree("b * c")}

    def test_shape_mismatch(self):
        assert match(tree("_x + _y"), tree("a * b"), {"_x", "_y"}) is None

    def test_non_hole_variables_must_be_equal(self):
        assert match(tree("a[i]"), tree("a[i]"), {"i"}) == {"i": tree("i")}
        assert match(tree("a[i]"), tree("b[0]"), {"i"}) is None

    def test_repeated_hole_needs_equal_subtrees(self):
        assert match(tree("_x * _x"), tree("(a + 1) * (a + 1)"), {"_x"}) == {"_x": tree("a + 1")}
        assert match(tree("_x * _x"), tree("a * b"), {"_x"}) is None

    def test_no_algebraic_normalization(self):
        assert match(tree("a + b"), tree("b + a"), ()) is None

    def test_literals_compare_type_and_value(self):
        assert match(LiteralIR(1), LiteralIR(1), ()) == {}
        assert match(LiteralIR(1), LiteralIR(1.0), ()) is None

    def test_operator_kind_is_compared(self):
        assert match(tree("a + b"), native_tree("a + b"), ()) is None

    def test_element_count_must_agree(self):
        assert match(tree("[_x]"), tree("[a, b]"), {"_x"}) is None


class TestSubstitute:
    def test_replaces_every_occurrence(self):
        result = substitute(tree("x * x + y"), {"x": tree("a[0]")})
        assert result == tree("a[0] * a[0] + y")

    def test_does_not_mutate_input(self):
        original = tree("x + 1")
        substitute(original, {"x": tree("b")})
        assert original == tree("x + 1")

    def test_untouched_tree_is_returned_as_is(self):
        original = tree("a + b")
        assert substitute(original, {"z": LiteralIR(0)}) is original

    def test_numbers_become_literals(self):
        assert substitute(tree("a[i]"), {"i": 2}) == tree("a[2]")

    def test_sequence_splices_into_array(self):
        assert substitute(tree("[x]"), {"x": tree("p, q")}) == tree("[p, q]")

    def test_as_tree_rejects_other_values(self):
        with pytest.raises(TypeError):
            as_tree("a")
        with pytest.raises(TypeError):
            as_tree(True)


class TestTemplate:
    def test_instantiate(self):
        template = Template.parse("a[i] * b[i]", {"i"})
        assert template.instantiate(i=1) == tree("a[1] * b[1]")
        assert template.instantiate({"i": 0}) == tree("a[0] * b[0]")

    def test_missing_hole(self):
        template = Template.parse("x + y", {"x", "y"})
        with pytest.raises(PatternMismatchError) as exc_info:
            template.instantiate(x=VariableIR("a"))
        assert exc_info.value.missing == ["y"]
        assert "x + y" in str(exc_info.value)

    def test_unknown_hole(self):
        template = Template.parse("[x]", {"x"})
        with pytest.raises(PatternMismatchError) as exc_info:
            template.instantiate(x=1, z=2)
        assert exc_info.value.unexpected == ["z"]

    def test_hole_may_be_used_many_times(self):
        template = Template.parse("_x * _x", {"_x"})
        assert template.instantiate(_x=tree("a + b")) == tree("(a + b) * (a + b)")

    def test_match_uses_declared_holes(self):
        template = Template.parse("_x / _y", {"_x", "_y"})
        assert template.match(tree("1 / n")) == {"_x": LiteralIR(1), "_y": VariableIR("n")}

    def test_variables(self):
        assert Template.parse("a[i] * b", {"i"}).variables == frozenset({"a", "b", "i"})
