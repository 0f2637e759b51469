"""
Parser

Source text -> StarlarkFile. Syntax errors never escape: they are recorded
in the file's ErrorReporter and the file comes back with no statements, so
callers always get a file and check file.ok().
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from lark import Lark
from lark.exceptions import (
    UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError,
)
from lark.indenter import DedentError, Indenter

from ..compiler.starlark_file import StarlarkFile
from ..shared.errors import Error, ErrorReporter
from ..shared.nodes import Statement
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_SOURCE_FILE, GRAMMAR_FILE_NAME, INDENT_TAB_LEN
from .transformers.base import StarlarkTransformer

logger = logging.getLogger("starlark_resolver.frontend.parser")

# Token names as users know them
_TOKEN_DISPLAY_NAMES = {
    "_NEWLINE": "newline",
    "_INDENT": "indent",
    "_DEDENT": "outdent",
    "$END": "EOF",
}


class StarlarkIndenter(Indenter):
    """Python-style INDENT/DEDENT tokens; newlines inside brackets are ignored."""
    NL_type = "_NEWLINE"
    OPEN_PAREN_types = ["LPAR", "LSQB", "LBRACE"]
    CLOSE_PAREN_types = ["RPAR", "RSQB", "RBRACE"]
    INDENT_type = "_INDENT"
    DEDENT_type = "_DEDENT"
    tab_len = INDENT_TAB_LEN


class ParseError(Exception):
    """Parse error with source location"""
    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None):
        self.message = message
        self.source_file = source_file
        self.location = location
        super().__init__(f"{message} in {source_file}")

    def to_error(self) -> Error:
        return Error(message=self.message, location=self.location)


def _describe_token(token: Any) -> str:
    kind = getattr(token, "type", None)
    if kind in _TOKEN_DISPLAY_NAMES:
        return _TOKEN_DISPLAY_NAMES[kind]
    return str(token)


class Parser:
    """
    Lark LALR parser for Starlark.

    Grammar caching is off unless cache_file is given.
    """

    def __init__(self, cache_file: Optional[str] = None):
        grammar_path = Path(__file__).parent / GRAMMAR_FILE_NAME
        self.parser = Lark.open(
            str(grammar_path),
            start="start",
            parser="lalr",
            postlex=StarlarkIndenter(),
            cache=cache_file if cache_file is not None else False,
            propagate_positions=True,
            maybe_placeholders=False,
        )
        self.transformer = StarlarkTransformer()

    def parse_statements(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> List[Statement]:
        """
        Parse source to a statement list.

        Raises ParseError on the first syntax error. Errors that do not stop
        the parse are left on self.transformer.syntax_errors.
        """
        self.transformer.reset(source_file)
        if not source.endswith("\n"):
            source += "\n"
        try:
            tree = self.parser.parse(source)
            return self.transformer.transform(tree)
        except UnexpectedInput as e:
            raise self._convert_unexpected(e, source_file) from e
        except DedentError as e:
            raise ParseError("indentation error", source_file, self._location_of(e, source_file)) from e
        except VisitError as e:
            raise ParseError(f"syntax error: {e.orig_exc}", source_file) from e

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> StarlarkFile:
        """Parse source to a StarlarkFile; syntax errors go to the file's reporter."""
        reporter = ErrorReporter({source_file: source})
        try:
            statements = self.parse_statements(source, source_file)
        except ParseError as e:
            logger.debug(f"parse of {source_file} failed: {e.message}")
            reporter.extend(self.transformer.syntax_errors)
            reporter.errors.append(e.to_error())
            return StarlarkFile([], reporter, source_file=source_file)

        reporter.extend(self.transformer.syntax_errors)
        logger.debug(f"parsed {source_file}: {len(statements)} top-level statements")
        return StarlarkFile(
            statements,
            reporter,
            string_escape_events=list(self.transformer.string_escape_events),
            source_file=source_file,
        )

    def parse_file(self, path: str) -> StarlarkFile:
        from ..utils.io_utils import read_source_file
        return self.parse(read_source_file(path), str(path))

    @staticmethod
    def _location_of(e: Any, source_file: str) -> Optional[SourceLocation]:
        line = getattr(e, "line", None)
        column = getattr(e, "column", None)
        if not isinstance(line, int) or line < 1:
            return None
        return SourceLocation(file=source_file, line=line, column=column if isinstance(column, int) else 1)

    def _convert_unexpected(self, e: UnexpectedInput, source_file: str) -> ParseError:
        location = self._location_of(e, source_file)
        if isinstance(e, UnexpectedCharacters):
            return ParseError(f"invalid character: '{e.char}'", source_file, location)
        if isinstance(e, UnexpectedEOF):
            return ParseError("syntax error at 'EOF'", source_file, location)
        if isinstance(e, UnexpectedToken):
            token = e.token
            if location is None and getattr(token, "line", None):
                location = SourceLocation(file=source_file, line=token.line, column=token.column)
            message = f"syntax error at '{_describe_token(token)}'"
            expected = sorted(_TOKEN_DISPLAY_NAMES.get(t, t) for t in (e.expected or ()))
            if expected and len(expected) <= 5:
                message += f": expected {', '.join(expected)}"
            return ParseError(message, source_file, location)
        return ParseError(f"syntax error: {e}", source_file, location)
