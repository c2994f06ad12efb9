"""
Template Parser

Turns template text (``a[i] + b[i]``, ``{r: _x.r + _y.r, i: _x.i + _y.i}``)
into an expression tree. Templates are fixed strings, so each distinct
(text, native) pair is parsed once and the immutable tree is reused.
"""

import functools
import logging
from pathlib import Path
from typing import Optional

from lark import Lark
from lark.exceptions import UnexpectedInput, UnexpectedToken, UnexpectedCharacters

from ..ir.nodes import ExpressionIR
from ..shared.errors import TemplateSyntaxError
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE, TEMPLATE_DISPLAY_NAME
from .transformer import TemplateTransformer

logger = logging.getLogger("linspec.frontend.parser")


class TemplateParser:
    """
    LALR parser for the template expression language.

    - Lark native grammar caching
    - Lark errors are translated to TemplateSyntaxError with a location
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            str(grammar_path),
            start='start',
            parser='lalr',
            cache=cache_file,
            maybe_placeholders=False,
        )

    def parse(self, text: str, native: bool = False,
              name: str = TEMPLATE_DISPLAY_NAME) -> ExpressionIR:
        try:
            tree = self.parser.parse(text)
        except UnexpectedInput as e:
            raise _syntax_error(e, text, name) from e
        return TemplateTransformer(native).transform(tree)


def _syntax_error(e: UnexpectedInput, text: str, name: str) -> TemplateSyntaxError:
    line = getattr(e, 'line', None)
    column = getattr(e, 'column', None)
    if not line or line < 1 or not column or column < 1:
        # End of input: point just past the last character
        lines = text.split("\n")
        line, column = len(lines), len(lines[-1]) + 1

    help_text = None
    if isinstance(e, UnexpectedToken):
        if e.token.type == '$END':
            message = "unexpected end of template"
            lines = text.split("\n")
            line, column = len(lines), len(lines[-1]) + 1
        else:
            message = f"unexpected token {str(e.token)!r}"
        if e.expected:
            help_text = f"expected one of: {', '.join(sorted(e.expected))}"
    elif isinstance(e, UnexpectedCharacters):
        message = f"unexpected character {e.char!r}"
    else:
        message = "unexpected end of template"

    return TemplateSyntaxError(
        message,
        location=SourceLocation(file=name, line=line, column=column),
        source_code=text,
        help=help_text,
    )


@functools.lru_cache(maxsize=None)
def get_parser() -> TemplateParser:
    """Shared parser instance; the Lark parser holds no per-parse state."""
    logger.debug("Building template parser")
    return TemplateParser()


@functools.lru_cache(maxsize=1024)
def parse_template(text: str, native: bool = False, name: Optional[str] = None) -> ExpressionIR:
    """Parse *text* once; repeated calls return the same immutable tree."""
    return get_parser().parse(text, native=native, name=name or TEMPLATE_DISPLAY_NAME)
