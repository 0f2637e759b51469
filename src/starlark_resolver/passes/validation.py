"""
Static validation and name resolution for Starlark files.

Two passes per block: DeclarationCollector declares every binding of the
block, then ValidationEnvironment visits it, resolving each identifier to
the block that defines it and reporting misplaced statements.

Every problem in user code is appended to the file's ErrorReporter;
nothing raises except a broken internal invariant.
"""

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Set

from ..runtime.environment import Environment
from ..shared.ast_visitor import ASTVisitor
from ..shared.errors import ErrorReporter, StarlarkImplementationError
from ..shared.nodes import (
    AssignmentStatement, AugmentedAssignmentStatement, Comprehension, ComprehensionFor,
    DefStatement, DotExpression, Expression, ExpressionStatement, FlowStatement,
    ForStatement, Identifier, IfStatement, IndexExpression, ListExpression, LoadStatement,
    ReturnStatement, Statement, StringLiteral,
)
from ..shared.scope import Scope, ScopeChain, ScopeTable
from ..shared.source_location import SourceLocation
from ..shared.types import FlowKind
from ..utils.config import ERROR_IDENTIFIER, PACKAGE_NAME_URL, REPOSITORY_NAME_URL
from ..utils.spelling import did_you_mean
from .declarations import DeclarationCollector

if TYPE_CHECKING:
    from ..compiler.starlark_file import StarlarkFile

logger = logging.getLogger("starlark_resolver.passes.validation")


def obsolete_variable_message(name: str) -> Optional[str]:
    """Remediation text for names that used to be predeclared."""
    if name == "PACKAGE_NAME":
        return (
            "The value 'PACKAGE_NAME' has been removed in favor of 'package_name()', "
            f"please use the latter ({PACKAGE_NAME_URL}). "
        )
    if name == "REPOSITORY_NAME":
        return (
            "The value 'REPOSITORY_NAME' has been removed in favor of 'repository_name()', "
            f"please use the latter ({REPOSITORY_NAME_URL})."
        )
    return None


def invalid_identifier_message(name: str, candidates: Iterable[str]) -> str:
    """Message for a name that resolves nowhere; also used by evaluators."""
    if name == ERROR_IDENTIFIER:
        return "contains syntax error(s)"
    obsolete = obsolete_variable_message(name)
    if obsolete is not None:
        return obsolete
    return f"name '{name}' is not defined" + did_you_mean(name, candidates)


def _is_docstring(stmt: Statement) -> bool:
    return isinstance(stmt, ExpressionStatement) and isinstance(stmt.expression, StringLiteral)


def check_load_after_statement(statements: List[Statement], reporter: ErrorReporter) -> None:
    """Report every load() that follows a statement other than a load or a docstring."""
    first_statement: Optional[SourceLocation] = None
    for stmt in statements:
        if _is_docstring(stmt):
            continue
        if isinstance(stmt, LoadStatement):
            if first_statement is None:
                continue
            reporter.report_error(
                "load() statements must be called before any other statement. "
                f"First non-load() statement appears at {first_statement}. "
                "Use --incompatible_bzl_disallow_load_after_statement=false to temporarily "
                "disable this check.",
                stmt.location,
            )
        if first_statement is None:
            first_statement = stmt.location


class ValidationEnvironment(ASTVisitor[None]):
    """
    Resolver/validator for one file.

    Owns the scope chain and the loop counter for a single validate_file()
    call. Scope tags go to `scopes` unless is_build_file is set, in which
    case the tree is left untouched.
    """

    def __init__(
        self,
        reporter: ErrorReporter,
        env: Environment,
        scopes: ScopeTable,
        is_build_file: bool = False,
    ):
        self.reporter = reporter
        self.env = env
        self.scopes = scopes
        self.is_build_file = is_build_file
        self.chain = ScopeChain(reporter, env.variable_names(), legacy=is_build_file)
        self.collector = DeclarationCollector(self.chain, reporter)
        self.loop_count = 0

    # =========================================================================
    # Entry
    # =========================================================================

    def validate_toplevel_statements(self, statements: List[Statement]) -> None:
        if not self.is_build_file and self.env.semantics.incompatible_bzl_disallow_load_after_statement:
            check_load_after_statement(statements, self.reporter)

        self.chain.open_block(Scope.MODULE)
        self.collector.collect(statements)
        self.visit_statements(statements)
        self.chain.close_block()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _in_function(self) -> bool:
        return self.chain.current_scope is Scope.LOCAL

    def _tag(self, identifier: Identifier, scope: Scope) -> None:
        if not self.is_build_file:
            self.scopes.record(identifier, scope)

    def assign(self, lhs: Expression) -> None:
        if isinstance(lhs, Identifier):
            self._tag(lhs, self.chain.current_scope)
        elif isinstance(lhs, IndexExpression):
            lhs.accept(self)
        elif isinstance(lhs, ListExpression):
            for element in lhs.elements:
                self.assign(element)
        else:
            self.reporter.report_error(f"cannot assign to '{lhs}'", lhs.location)

    def all_symbols(self) -> Set[str]:
        return self.chain.all_symbols()

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_identifier(self, node: Identifier) -> None:
        block = self.chain.resolve(node.name)
        if block is None:
            restricted = self.env.restricted_bindings().get(node.name)
            if restricted is not None:
                message = restricted.error_from_attempting_access(self.env.semantics, node.name)
            else:
                message = invalid_identifier_message(node.name, self.all_symbols())
            self.reporter.report_error(message, node.location)
            return
        self._tag(node, block.scope)

    def visit_dot_expression(self, node: DotExpression) -> None:
        node.object.accept(self)

    def visit_comprehension(self, node: Comprehension) -> None:
        self.chain.open_block(Scope.LOCAL)
        for clause in node.clauses:
            if isinstance(clause, ComprehensionFor):
                self.collector.collect_target(clause.vars)
        for clause in node.clauses:
            if isinstance(clause, ComprehensionFor):
                clause.iterable.accept(self)
                self.assign(clause.vars)
            else:
                clause.accept(self)
        node.body.accept(self)
        self.chain.close_block()

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_assignment_statement(self, node: AssignmentStatement) -> None:
        node.rhs.accept(self)
        self.assign(node.lhs)

    def visit_augmented_assignment_statement(self, node: AugmentedAssignmentStatement) -> None:
        if isinstance(node.lhs, ListExpression):
            self.reporter.report_error(
                "cannot perform augmented assignment on a list or tuple expression",
                node.location,
            )
        node.rhs.accept(self)
        self.assign(node.lhs)

    def visit_return_statement(self, node: ReturnStatement) -> None:
        if not self._in_function():
            self.reporter.report_error("return statements must be inside a function", node.location)
        self.visit_optional(node.result)

    def visit_for_statement(self, node: ForStatement) -> None:
        if not self._in_function():
            self.reporter.report_error(
                "for loops are not allowed at the top level. You may move it inside a function "
                "or use a comprehension, [f(x) for x in sequence]",
                node.location,
            )
        self.loop_count += 1
        node.collection.accept(self)
        self.assign(node.lhs)
        self.visit_statements(node.block)
        if self.loop_count <= 0:
            raise StarlarkImplementationError("loop counter underflow")
        self.loop_count -= 1

    def visit_if_statement(self, node: IfStatement) -> None:
        if not self._in_function():
            self.reporter.report_error(
                "if statements are not allowed at the top level. You may move it inside a function "
                "or use an if expression (x if condition else y).",
                node.location,
            )
        super().visit_if_statement(node)

    def visit_load_statement(self, node: LoadStatement) -> None:
        if self._in_function():
            self.reporter.report_error("load statement not at top level", node.location)
        super().visit_load_statement(node)

    def visit_flow_statement(self, node: FlowStatement) -> None:
        if node.kind is not FlowKind.PASS and self.loop_count <= 0:
            self.reporter.report_error(f"{node.kind} statement must be inside a for loop", node.location)

    def visit_def_statement(self, node: DefStatement) -> None:
        if self._in_function():
            self.reporter.report_error(
                "nested functions are not allowed. Move the function to the top level.",
                node.location,
            )
        for param in node.parameters:
            if param.is_optional():
                self.visit_optional(param.default)
        self.chain.open_block(Scope.LOCAL)
        for param in node.parameters:
            if param.identifier is not None:
                self.chain.declare(param.identifier.name, param.location)
        self.collector.collect(node.statements)
        self.visit_statements(node.statements)
        self.chain.close_block()


def validate_file(file: 'StarlarkFile', env: Environment, is_build_file: bool = False) -> bool:
    """
    Resolve and check every name of file against env.

    Errors are appended to file.reporter; scope tags go to file.scopes
    (skipped when is_build_file). Returns file.ok().
    """
    venv = ValidationEnvironment(file.reporter, env, file.scopes, is_build_file)
    if env.semantics.incompatible_restrict_string_escapes:
        file.add_string_escape_events()
    before = len(file.reporter.errors)
    venv.validate_toplevel_statements(file.statements)
    if not venv.chain.is_balanced():
        raise StarlarkImplementationError("scope chain not balanced after validation")
    logger.debug(
        f"validated {len(file.statements)} top-level statements of {file.source_file}: "
        f"{len(file.reporter.errors) - before} new errors"
    )
    return file.ok()
