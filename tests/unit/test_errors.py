"""
Tests for the exception hierarchy and the diagnostic renderer.
"""

import pytest

from linspec.shared.errors import (
    ConfigurationError,
    Error,
    EvaluationError,
    LinspecError,
    PatternMismatchError,
    TemplateSyntaxError,
    UnsupportedOperationError,
    _format_diagnostic,
    _use_color,
)
from linspec.shared.source_location import SourceLocation
from tests.test_utils import strip_ansi


class TestHierarchy:
    @pytest.mark.parametrize("cls", [
        ConfigurationError, UnsupportedOperationError, PatternMismatchError,
        TemplateSyntaxError, EvaluationError,
    ])
    def test_all_derive_from_base(self, cls):
        assert issubclass(cls, LinspecError)

    def test_unsupported_is_not_implemented(self):
        assert issubclass(UnsupportedOperationError, NotImplementedError)

    def test_message(self):
        err = ConfigurationError("dimension must be >= 1, got 0")
        assert err.message == str(err) == "dimension must be >= 1, got 0"

    def test_pattern_mismatch_details(self):
        err = PatternMismatchError("bad", missing=["y"])
        assert err.missing == ["y"]
        assert err.unexpected == []


class TestDiagnosticFormatting:
    def test_location_none(self):
        err = Error(message="something failed", location=None, code="T0001")
        out = _format_diagnostic(err, {}, color=False)
        assert "error[T0001]: something failed" in out
        assert "unknown location" in out

    def test_source_not_available(self):
        loc = SourceLocation(file="<template>", line=1, column=3)
        out = _format_diagnostic(Error(message="oops", location=loc), {}, color=False)
        assert " --> <template>:1:3" in out

    def test_caret_under_token(self):
        loc = SourceLocation(file="<template>", line=1, column=7)
        err = Error(message="unexpected token ')'", location=loc, code="T0001",
                    label="expected an operand", help="expected one of: NAME, NUMBER")
        out = _format_diagnostic(err, {"<template>": "a[i] +)"}, color=False)
        lines = out.splitlines()
        assert lines[0] == "error[T0001]: unexpected token ')'"
        assert "1 | a[i] +)" in out
        assert "      ^ expected an operand" in out
        assert "= help: expected one of: NAME, NUMBER" in out

    def test_explicit_span(self):
        loc = SourceLocation(file="t", line=1, column=1, end_line=1, end_column=4)
        out = _format_diagnostic(Error(message="m", location=loc), {"t": "abc + d"}, color=False)
        assert "| ^^^" in out

    def test_color_toggle(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("LINSPEC_COLOR", "never")
        assert not _use_color()
        monkeypatch.setenv("LINSPEC_COLOR", "")
        assert _use_color()
        monkeypatch.setenv("NO_COLOR", "1")
        assert not _use_color()

    def test_colored_output_strips_to_plain(self):
        loc = SourceLocation(file="<template>", line=1, column=1)
        err = Error(message="m", location=loc)
        colored = _format_diagnostic(err, {"<template>": "x"}, color=True)
        assert "\x1b[" in colored
        assert strip_ansi(colored) == _format_diagnostic(err, {"<template>": "x"}, color=False)

    def test_template_syntax_error_str(self, no_color):
        err = TemplateSyntaxError(
            "unexpected end of template",
            location=SourceLocation(file="<template>", line=1, column=4),
            source_code="a +",
        )
        assert str(err).splitlines()[0] == "error[T0001]: unexpected end of template"
        assert "   ^" in str(err)
