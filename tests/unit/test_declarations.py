"""
Tests for the declaration collector (the first pass over each block).

Trees are built by hand so each statement kind is exercised in isolation.
"""

from starlark_resolver.passes.declarations import DeclarationCollector, bound_identifiers
from starlark_resolver.shared.errors import ErrorReporter
from starlark_resolver.shared.nodes import (
    AssignmentStatement, AugmentedAssignmentStatement, CallExpression, DefStatement,
    ExpressionStatement, FlowStatement, ForStatement, Identifier, IfStatement, IndexExpression,
    IntegerLiteral, ListExpression, LoadBinding, LoadStatement, ReturnStatement, StringLiteral,
)
from starlark_resolver.shared.scope import Scope, ScopeChain
from starlark_resolver.shared.types import BinaryOp, FlowKind
from tests.test_utils import loc


def _collect(statements, legacy=False):
    reporter = ErrorReporter()
    chain = ScopeChain(reporter, (), legacy=legacy)
    chain.open_block(Scope.MODULE)
    DeclarationCollector(chain, reporter).collect(statements)
    return chain.current.names, reporter


def _load(*aliases):
    bindings = [LoadBinding(Identifier(a, loc(1, 10 + i)), Identifier("sym")) for i, a in enumerate(aliases)]
    return LoadStatement(StringLiteral("//pkg:defs.bzl"), bindings, loc())


class TestBoundIdentifiers:

    def test_name(self):
        x = Identifier("x")
        assert bound_identifiers(x) == [x]

    def test_nested_patterns(self):
        a, b, c = Identifier("a"), Identifier("b"), Identifier("c")
        pattern = ListExpression([a, ListExpression([b, c], is_tuple=True)])
        assert [i.name for i in bound_identifiers(pattern)] == ["a", "b", "c"]

    def test_index_expression_binds_nothing(self):
        target = IndexExpression(Identifier("d"), StringLiteral("k"))
        assert bound_identifiers(target) == []

    def test_other_expressions_bind_nothing(self):
        assert bound_identifiers(IntegerLiteral(1)) == []
        assert bound_identifiers(CallExpression(Identifier("f"), [])) == []


class TestDeclarationCollector:

    def test_assignment(self):
        names, reporter = _collect([
            AssignmentStatement(ListExpression([Identifier("a"), Identifier("b")], is_tuple=True), IntegerLiteral(1)),
        ])
        assert names == {"a", "b"}
        assert not reporter.has_errors()

    def test_augmented_assignment(self):
        names, _ = _collect([AugmentedAssignmentStatement(BinaryOp.ADD, Identifier("n"), IntegerLiteral(1))])
        assert names == {"n"}

    def test_if_collects_both_branches(self):
        stmt = IfStatement(
            Identifier("c"),
            [AssignmentStatement(Identifier("t"), IntegerLiteral(1))],
            [AssignmentStatement(Identifier("e"), IntegerLiteral(2))],
        )
        names, _ = _collect([stmt])
        assert names == {"t", "e"}

    def test_for_collects_vars_and_body(self):
        stmt = ForStatement(
            Identifier("i"), Identifier("items"),
            [AssignmentStatement(Identifier("last"), Identifier("i"))],
        )
        names, _ = _collect([stmt])
        assert names == {"i", "last"}

    def test_def_declares_only_the_function_name(self):
        stmt = DefStatement(
            Identifier("f"), [],
            [AssignmentStatement(Identifier("inner"), IntegerLiteral(1))],
        )
        names, _ = _collect([stmt])
        assert names == {"f"}

    def test_load_declares_local_aliases(self):
        names, reporter = _collect([_load("a", "b")])
        assert names == {"a", "b"}
        assert not reporter.has_errors()

    def test_load_duplicate_alias(self):
        names, reporter = _collect([_load("a", "a")])
        assert "a" in names
        dupes = [e for e in reporter.errors if "more than once" in e.message]
        assert len(dupes) == 1
        assert dupes[0].message == "load statement defines 'a' more than once"
        assert dupes[0].location.column == 11

    def test_load_duplicate_reported_before_declaration(self):
        _, reporter = _collect([_load("a", "a")])
        assert "more than once" in reporter.errors[0].message

    def test_statements_that_bind_nothing(self):
        names, _ = _collect([
            ExpressionStatement(CallExpression(Identifier("f"), [])),
            FlowStatement(FlowKind.PASS),
            ReturnStatement(Identifier("x")),
        ])
        assert names == set()

    def test_module_rebinding_reported_during_collection(self):
        names, reporter = _collect([
            AssignmentStatement(Identifier("x", loc(1)), IntegerLiteral(1)),
            AssignmentStatement(Identifier("x", loc(2)), IntegerLiteral(2)),
        ])
        assert names == {"x"}
        assert len(reporter.errors) == 1
        assert "Variable x is read only" in reporter.errors[0].message

    def test_legacy_mode_allows_module_rebinding(self):
        _, reporter = _collect([
            AssignmentStatement(Identifier("x"), IntegerLiteral(1)),
            AssignmentStatement(Identifier("x"), IntegerLiteral(2)),
        ], legacy=True)
        assert not reporter.has_errors()
