"""
Source Location (Span)

Position of a node or error inside template text. Templates are short,
source-embedded strings, so the "file" is a display name such as
``<template>`` or ``<field:+>``.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Location inside a template.

    - file, line, column are 1-based like Lark's token positions
    - end_column is optional (0 means unknown)
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"
