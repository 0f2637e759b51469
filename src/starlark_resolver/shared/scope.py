"""
Scope chain for Starlark name resolution.

Blocks live in an arena (a list) and point at their parent by index. The
universe block sits at index 0 and is never popped; one MODULE block is
pushed for the top level, and one LOCAL block per function body or
comprehension.

Resolution results are kept in a ScopeTable keyed by Identifier.node_id
rather than on the nodes themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from .errors import ErrorReporter, StarlarkImplementationError
from .nodes import Identifier
from .source_location import SourceLocation
from ..utils.config import READ_ONLY_VARIABLE_URL

logger = logging.getLogger("starlark_resolver.shared.scope")


class Scope(Enum):
    """Where a name is bound. The value is the qualifier shown to users."""
    LOCAL = "local"
    MODULE = "global"
    UNIVERSE = "builtin"

    def __str__(self) -> str:
        return self.value


@dataclass
class Block:
    """One lexical block: its names, its scope and the arena index of its parent."""
    scope: Scope
    parent: Optional[int]
    names: Set[str] = field(default_factory=set)


class ScopeChain:
    """
    Stack of blocks for one validation run.

    In legacy mode (BUILD files) module-level rebinding is allowed, so
    declare() never reports there.
    """

    def __init__(self, reporter: ErrorReporter, builtins: Iterable[str] = (), legacy: bool = False):
        self.reporter = reporter
        self.legacy = legacy
        self._blocks: List[Block] = [Block(Scope.UNIVERSE, None, set(builtins))]
        self._current = 0

    @property
    def current(self) -> Block:
        return self._blocks[self._current]

    @property
    def current_scope(self) -> Scope:
        return self.current.scope

    def depth(self) -> int:
        """Number of open blocks, the universe block included."""
        n, index = 0, self._current
        while index is not None:
            n += 1
            index = self._blocks[index].parent
        return n

    def open_block(self, scope: Scope) -> Block:
        block = Block(scope, self._current)
        self._blocks.append(block)
        self._current = len(self._blocks) - 1
        logger.debug(f"open {scope.name} block (depth {self.depth()})")
        return block

    def close_block(self) -> Block:
        block = self.current
        if block.parent is None:
            raise StarlarkImplementationError("cannot close the universe block")
        self._current = block.parent
        logger.debug(f"close {block.scope.name} block ({len(block.names)} names)")
        return block

    def is_balanced(self) -> bool:
        return self._current == 0

    def declare(self, name: str, location: Optional[SourceLocation] = None) -> None:
        block = self.current
        if block.scope is Scope.MODULE and name in block.names and not self.legacy:
            self.reporter.report_error(
                f"Variable {name} is read only (read more at {READ_ONLY_VARIABLE_URL})",
                location,
            )
        block.names.add(name)

    def resolve(self, name: str) -> Optional[Block]:
        index: Optional[int] = self._current
        while index is not None:
            block = self._blocks[index]
            if name in block.names:
                return block
            index = block.parent
        return None

    def all_symbols(self) -> Set[str]:
        symbols: Set[str] = set()
        index: Optional[int] = self._current
        while index is not None:
            symbols |= self._blocks[index].names
            index = self._blocks[index].parent
        return symbols


class ScopeTable:
    """Identifier id -> Scope. A tag, once written, never changes."""

    def __init__(self) -> None:
        self._tags: Dict[int, Scope] = {}

    def record(self, identifier: Identifier, scope: Scope) -> None:
        previous = self._tags.get(identifier.node_id)
        if previous is not None and previous is not scope:
            raise StarlarkImplementationError(
                f"identifier '{identifier.name}' already resolved to {previous.name}, "
                f"cannot re-resolve to {scope.name}"
            )
        self._tags[identifier.node_id] = scope

    def get(self, identifier: Identifier) -> Optional[Scope]:
        return self._tags.get(identifier.node_id)

    def __contains__(self, identifier: Identifier) -> bool:
        return identifier.node_id in self._tags

    def __len__(self) -> int:
        return len(self._tags)
