"""
StarlarkFile: a parsed file plus everything reported about it.

The reporter is shared by the parser and the validator, so errors()
always lists scan, parse and validation errors in the order they were
found. Scope tags written by the validator live in `scopes`.
"""

from typing import List, Optional, Sequence

from ..shared.errors import Error, ErrorReporter
from ..shared.nodes import Identifier, Statement
from ..shared.scope import Scope, ScopeTable
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_SOURCE_FILE


class StarlarkFile:
    """Syntax tree of one Starlark source file."""

    def __init__(
        self,
        statements: Sequence[Statement],
        reporter: Optional[ErrorReporter] = None,
        string_escape_events: Optional[List[Error]] = None,
        source_file: str = DEFAULT_SOURCE_FILE,
        location: Optional[SourceLocation] = None,
    ):
        self.statements: List[Statement] = list(statements)
        self.reporter = reporter if reporter is not None else ErrorReporter()
        # Shared with sub_tree()/with_prelude() views of the same parse
        self.string_escape_events: List[Error] = (
            string_escape_events if string_escape_events is not None else []
        )
        self.source_file = source_file
        self.location = location or SourceLocation(file=source_file, line=1, column=1)
        self.scopes = ScopeTable()
        self._escape_events_added = False

    def errors(self) -> List[Error]:
        """Scan, parse and validation errors, in order."""
        return list(self.reporter.errors)

    def ok(self) -> bool:
        return not self.reporter.has_errors()

    def add_string_escape_events(self) -> None:
        """Promote deferred invalid-escape events to errors. Has no effect after the first call."""
        if self._escape_events_added:
            return
        self._escape_events_added = True
        self.reporter.extend(self.string_escape_events)

    def sub_tree(self, first: int, last: int) -> 'StarlarkFile':
        """Statements [first, last) as a file sharing this file's errors and escape events."""
        statements = self.statements[first:last]
        location = statements[0].location if statements else self.location
        return StarlarkFile(
            statements,
            self.reporter,
            self.string_escape_events,
            source_file=self.source_file,
            location=location,
        )

    def with_prelude(self, prelude: Sequence[Statement]) -> 'StarlarkFile':
        """This file with prelude statements in front, sharing errors and escape events."""
        return StarlarkFile(
            list(prelude) + self.statements,
            self.reporter,
            self.string_escape_events,
            source_file=self.source_file,
            location=self.location,
        )

    def scope_of(self, identifier: Identifier) -> Optional[Scope]:
        return self.scopes.get(identifier)

    def __str__(self) -> str:
        return f"<StarlarkFile with {len(self.statements)} statements>"

    __repr__ = __str__
