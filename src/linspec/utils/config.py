"""
Configuration constants to replace magic numbers and names throughout linspec
"""

import os
import tempfile

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "linspec_template_parser.cache")
TEMPLATE_DISPLAY_NAME = "<template>"

# Naming constants
DEFAULT_PREFIX = ""

# Reduction template holes
ACC_HOLE = "x"        # accumulated value in fold/wrap templates
NEXT_HOLE = "y"       # next component in fold templates
ROW_INDEX_HOLE = "i"
COLUMN_INDEX_HOLE = "j"

# Field template holes
FIELD_LEFT_HOLE = "_x"
FIELD_RIGHT_HOLE = "_y"

# Names bound to Field.zero / Field.one inside composite bodies
ZERO_NAME = "zero"
ONE_NAME = "one"

# Field rewrite limits
MAX_REWRITE_DEPTH = 64        # nested rewrites of a single operator occurrence
MAX_REWRITES = 100_000        # total rewrites per apply_field call

# Minimum supported dimension
MIN_DIMENSION = 1
