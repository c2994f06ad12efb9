"""
Template frontend: Lark grammar and transformer for template text.
"""

from .parser import TemplateParser, parse_template

__all__ = ["TemplateParser", "parse_template"]
