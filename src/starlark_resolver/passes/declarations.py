"""
Declaration collection (first pass of name resolution).

A Starlark name is visible throughout its whole block, even above its
first assignment, so every binding of a block is declared before any of
the block is visited. Function bodies and comprehensions are their own
blocks and are collected when the validator enters them.
"""

import logging
from typing import Iterable, List

from ..shared.errors import ErrorReporter
from ..shared.nodes import (
    AssignmentStatement, AugmentedAssignmentStatement, DefStatement, Expression,
    ForStatement, Identifier, IfStatement, ListExpression, LoadStatement, NodeType, Statement,
)
from ..shared.scope import ScopeChain

logger = logging.getLogger("starlark_resolver.passes.declarations")


def bound_identifiers(expr: Expression) -> List[Identifier]:
    """
    Names bound by assigning to expr, in source order.

    List and tuple patterns are searched recursively; index expressions and
    anything else bind nothing.
    """
    if isinstance(expr, Identifier):
        return [expr]
    if isinstance(expr, ListExpression):
        result: List[Identifier] = []
        for element in expr.elements:
            result.extend(bound_identifiers(element))
        return result
    return []


class DeclarationCollector:
    """Declares into the chain's current block every name a statement list binds."""

    def __init__(self, chain: ScopeChain, reporter: ErrorReporter):
        self.chain = chain
        self.reporter = reporter

    def collect(self, statements: Iterable[Statement]) -> None:
        for stmt in statements:
            self.collect_statement(stmt)

    def collect_statement(self, stmt: Statement) -> None:
        kind = stmt.node_type
        if kind is NodeType.ASSIGNMENT:
            assert isinstance(stmt, AssignmentStatement)
            self.collect_target(stmt.lhs)
        elif kind is NodeType.AUGMENTED_ASSIGNMENT:
            assert isinstance(stmt, AugmentedAssignmentStatement)
            self.collect_target(stmt.lhs)
        elif kind is NodeType.IF_STMT:
            assert isinstance(stmt, IfStatement)
            self.collect(stmt.then_block)
            if stmt.else_block is not None:
                self.collect(stmt.else_block)
        elif kind is NodeType.FOR_STMT:
            assert isinstance(stmt, ForStatement)
            self.collect_target(stmt.lhs)
            self.collect(stmt.block)
        elif kind is NodeType.DEF_STMT:
            assert isinstance(stmt, DefStatement)
            self.chain.declare(stmt.identifier.name, stmt.identifier.location)
        elif kind is NodeType.LOAD_STMT:
            assert isinstance(stmt, LoadStatement)
            self._collect_load(stmt)
        # Expression, flow and return statements bind nothing

    def collect_target(self, lhs: Expression) -> None:
        for identifier in bound_identifiers(lhs):
            self.chain.declare(identifier.name, identifier.location)

    def _collect_load(self, stmt: LoadStatement) -> None:
        seen = set()
        for binding in stmt.bindings:
            name = binding.local_name.name
            if name in seen:
                self.reporter.report_error(
                    f"load statement defines '{name}' more than once",
                    binding.local_name.location,
                )
            seen.add(name)
        for binding in stmt.bindings:
            self.chain.declare(binding.local_name.name, binding.local_name.location)
        logger.debug(f"load {stmt.module.value!r}: {len(stmt.bindings)} bindings")
