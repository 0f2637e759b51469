"""CLI entry point: run `starlark-resolver file.bzl` or `python -m starlark_resolver file.bzl`."""

import logging
import sys
from pathlib import Path
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .compiler.driver import ValidationDriver
    from .frontend.parser import Parser
    from .runtime.environment import Environment, StarlarkSemantics
    from .utils.config import DEFAULT_PARSER_CACHE_FILE

    parser = argparse.ArgumentParser(
        prog="starlark-resolver",
        description="Resolve names in a Starlark file and report static errors.",
    )
    parser.add_argument("file", type=Path, help="Path to a .bzl or BUILD file")
    parser.add_argument("--build-file", action="store_true",
                        help="Validate as a BUILD file (module-level rebinding allowed)")
    parser.add_argument("--allow-load-after-statement", action="store_true",
                        help="Do not require load() statements to come first")
    parser.add_argument("--restrict-string-escapes", action="store_true",
                        help="Report unknown escape sequences in string literals")
    parser.add_argument("--builtin", action="append", default=[], metavar="NAME",
                        help="Extra predeclared name (repeatable)")
    parser.add_argument("--cache-grammar", action="store_true",
                        help="Cache the compiled grammar in the temp directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log pass progress to stderr")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    path = args.file.resolve()
    if not path.exists():
        sys.stderr.write(f"starlark-resolver: error: file not found: {path}\n")
        return 1
    if not path.is_file():
        sys.stderr.write(f"starlark-resolver: error: not a file: {path}\n")
        return 1

    try:
        from .utils.io_utils import read_source_file
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"starlark-resolver: error: could not read file: {e}\n")
        return 1

    semantics = StarlarkSemantics(
        incompatible_bzl_disallow_load_after_statement=not args.allow_load_after_statement,
        incompatible_restrict_string_escapes=args.restrict_string_escapes,
    )
    env = Environment.default(semantics, extra=args.builtin)
    grammar_cache = DEFAULT_PARSER_CACHE_FILE if args.cache_grammar else None
    driver = ValidationDriver(parser=Parser(grammar_cache), env=env)
    result = driver.validate(source, source_file=str(path), is_build_file=args.build_file)

    if not result.success:
        sys.stderr.write(result.file.reporter.format_all_errors() + "\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
