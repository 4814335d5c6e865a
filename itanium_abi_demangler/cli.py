"""
CLI for the demangler.
"""

import argparse
import logging
import sys
from typing import Optional

from itanium_abi_demangler.demangler import demangle, parse
from itanium_abi_demangler.options import DemangleOptions, ExtensionPolicy

parser = argparse.ArgumentParser(
    "itanium-abi-demangler", description="Demangler for Itanium C++ ABI symbols."
)
parser.add_argument(
    "symbols",
    help="Symbols to demangle. Read one per line from stdin if none are given.",
    nargs="*",
    type=str,
)
parser.add_argument(
    "--error-on-failure", "-e", help="Throw an exception if demangling fails", action="store_true"
)
parser.add_argument(
    "--recursion-limit",
    help="Maximum nesting depth accepted before giving up",
    type=int,
    default=DemangleOptions.recursion_limit,
)
parser.add_argument(
    "--render-budget",
    help="Nodes the renderer may visit per input character before giving up",
    type=int,
    default=DemangleOptions.render_budget,
)
parser.add_argument(
    "--no-strip-underscore",
    help="Don't accept symbols with an extra leading underscore (`__Z`)",
    action="store_true",
)
parser.add_argument(
    "--strict-extensions",
    help="Reject vendor extensions instead of rendering them by name",
    action="store_true",
)
parser.add_argument(
    "--adjacent-angles", help="Render `a<b<c>>` instead of `a<b<c> >`", action="store_true"
)
parser.add_argument(
    "--no-params", "-p", help="Don't render function parameter types", action="store_true"
)
parser.add_argument("--verbose", "-v", help="Log debug output to stderr", action="store_true")


def options_from_args(args: argparse.Namespace) -> DemangleOptions:
    policy = ExtensionPolicy.STRICT if args.strict_extensions else ExtensionPolicy.PLACEHOLDER
    return DemangleOptions(
        recursion_limit=args.recursion_limit,
        render_budget=args.render_budget,
        strip_leading_underscore=not args.no_strip_underscore,
        extension_policy=policy,
        separate_closing_angles=not args.adjacent_angles,
        show_params=not args.no_params,
    )


def main(argv: Optional[list[str]] = None):
    args = parser.parse_args(argv)  # noqa
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        options = options_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    symbols = args.symbols or (line.strip() for line in sys.stdin if line.strip())
    for symbol in symbols:
        if args.error_on_failure:
            print(str(parse(symbol, options)))
        else:
            print(demangle(symbol, options))


if __name__ == "__main__":
    main()
