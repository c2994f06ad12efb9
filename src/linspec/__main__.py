"""CLI entry point: `linspec vector 3 --prefix v` or `python -m linspec matrix 2`."""

import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    import logging
    from .compiler.driver import generate_matrix, generate_vector
    from .ir.serialization import serialize_function
    from .passes.fields import BUILTIN_FIELDS
    from .passes.matrix import MATRIX_OPERATIONS
    from .shared.errors import LinspecError

    parser = argparse.ArgumentParser(
        prog="linspec",
        description="Print unrolled vector or matrix functions as S-expressions.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log generation progress")
    parser.add_argument("--compact", action="store_true", help="One line per function")
    sub = parser.add_subparsers(dest="kind", required=True)

    for kind in ("vector", "matrix"):
        p = sub.add_parser(kind, help=f"Generate the {kind} table")
        p.add_argument("n", type=int, help="Dimension (>= 1)")
        p.add_argument("--prefix", default="", help="Prefix for every function name")
        p.add_argument("--field", choices=sorted(BUILTIN_FIELDS), default="scalar",
                       help="Field the arithmetic is carried out in (default: scalar)")
        if kind == "matrix":
            p.add_argument("--operations", default=None,
                           help=f"Comma-separated subset of: {', '.join(MATRIX_OPERATIONS)}")

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    field = BUILTIN_FIELDS[args.field]()
    try:
        if args.kind == "vector":
            table = generate_vector(args.n, args.prefix, field)
        else:
            operations = None
            if args.operations is not None:
                operations = [op.strip() for op in args.operations.split(",") if op.strip()]
            table = generate_matrix(args.n, args.prefix, field, operations)
    except LinspecError as e:
        sys.stderr.write(f"linspec: error: {e}\n")
        return 1

    for name in table:
        sys.stdout.write(serialize_function(table[name], pretty=not args.compact) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
