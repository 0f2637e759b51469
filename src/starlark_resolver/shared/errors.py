"""
Error Reporting

Diagnostics are plain records appended to an ErrorReporter. The parser and
the validation pass share one reporter per file, so every static error for a
unit of source comes out together, in emission order.

Exceptions are reserved for callers that want to stop (StarlarkSyntaxError)
and for defects in this package itself (StarlarkImplementationError).
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from .source_location import SourceLocation
from ..utils.config import COLOR_ENV_VAR


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set or STARLARK_COLOR=0)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get(COLOR_ENV_VAR, "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color or not codes:
        return text
    return "".join(codes) + text + _RESET


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """One static diagnostic: where, and what went wrong."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.location}: {self.message}"


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _caret_width(code_line: str, col_start: int, loc: SourceLocation) -> int:
    if loc.end_line == loc.line and loc.end_column > loc.column:
        return loc.end_column - loc.column
    # No usable end position: underline up to the next delimiter
    width = 0
    for ch in code_line[col_start:]:
        if ch in " \t,()[]{}:;":
            break
        width += 1
    return max(1, width)


def format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render one diagnostic in rustc style::

        error: name 'lenn' is not defined (did you mean 'len'?)
         --> BUILD:3:5
          |
        3 | x = lenn(srcs)
          |     ^^^^
    """
    code_str = f"[{error.code}]" if error.code else ""
    out: List[str] = [
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    ]

    loc = error.location
    if loc is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    source = source_files.get(loc.file)
    src_lines = source.split("\n") if source is not None else []
    if not 1 <= loc.line <= len(src_lines):
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    gutter = len(str(loc.line))
    code_line = src_lines[loc.line - 1]
    col_start = max(loc.column, 1) - 1
    carets = " " * col_start + "^" * _caret_width(code_line, col_start, loc)
    if error.label:
        carets += f" {error.label}"

    bar = _style(" " * (gutter + 1) + "|", _BOLD, _BLUE, color=color)
    out.append(_style(" " * gutter + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(bar)
    out.append(_style(f"{loc.line} | ", _BOLD, _BLUE, color=color) + code_line)
    out.append(bar + " " + _style(carets, _BOLD, _RED, color=color))
    _append_annotations(out, error, gutter, color)
    return "\n".join(out)


def _append_annotations(out: List[str], error: Error, gutter: int, color: bool) -> None:
    if not (error.help or error.note):
        return
    pad = " " * (gutter + 1)
    out.append(_style(pad + "|", _BOLD, _BLUE, color=color))
    for kind, text in (("help", error.help), ("note", error.note)):
        if text:
            out.append(
                _style(f"{pad}= ", _BOLD, _CYAN, color=color)
                + _style(f"{kind}: ", _BOLD, color=color)
                + text
            )


def _summary(count: int, color: bool) -> str:
    summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
    return _style("error", _BOLD, _RED, color=color) + _style(f": {summary}", _BOLD, color=color)


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """
    Append-only, ordered collection of diagnostics for one source unit.

    source_files maps file name -> text and is only used for snippets.
    """

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = dict(source_files or {})
        self.errors: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
        ))

    def extend(self, errors: Iterable[Error]) -> None:
        self.errors.extend(errors)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def messages(self) -> List[str]:
        return [e.message for e in self.errors]

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        parts = [self.format_error(e, color=use_color) for e in self.errors]
        parts.append(_summary(len(self.errors), use_color))
        return "\n\n".join(parts)

    def print_errors(self, file=None) -> None:
        stream = file if file is not None else sys.stderr
        color = _use_color()
        for error in self.errors:
            print(self.format_error(error, color=color), file=stream)
        if self.errors:
            print(f"\n{_summary(len(self.errors), color)}", file=stream)


# ============================================================================
# Exception Classes
# ============================================================================

class StarlarkError(Exception):
    """Base exception for all errors raised by this package"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class StarlarkSyntaxError(StarlarkError):
    """
    Raised by callers that refuse to go on with an invalid file.

    Carries every scan, parse and validation error of the file, in order;
    the exception message is the first of them.
    """
    def __init__(self, errors: Sequence[Error]):
        self.errors: List[Error] = list(errors)
        first = self.errors[0] if self.errors else None
        super().__init__(
            first.message if first else "syntax error",
            first.location if first else None,
        )

    def __str__(self):
        return "\n".join(str(e) for e in self.errors) or self.message


class StarlarkImplementationError(Exception):
    """
    Error in this package's own logic (never in the user's source).

    Raised for broken internal invariants such as an unbalanced scope chain.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
