"""
Source Location

A position (and optional end position) in one Starlark source file.
Every AST node and every diagnostic carries one.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Immutable source position.

    - file, line and column are 1-based and always present
    - end_line / end_column are 0 when the parser could not supply them
    - frozen so locations can be shared freely between nodes and errors
    """
    file: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"
