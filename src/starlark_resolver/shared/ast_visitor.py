"""
AST Visitor Pattern

ASTVisitor gives every Starlark node a visit_* method with default
traversal (children in source order), so a pass overrides only the nodes
it cares about. visit_identifier is abstract: every pass must decide what
a name reference means to it.

Helpers visit_statements / visit_optional keep the overrides short.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, Iterable, Optional, TypeVar

if TYPE_CHECKING:
    from .nodes import (
        Argument, ASTNode, AssignmentStatement, AugmentedAssignmentStatement,
        BinaryOperatorExpression, CallExpression, Comprehension, ComprehensionFor,
        ComprehensionIf, ConditionalExpression, DefStatement, DictEntry,
        DictExpression, DotExpression, ExpressionStatement, FlowStatement,
        ForStatement, Identifier, IfStatement, IndexExpression, IntegerLiteral,
        ListExpression, LoadBinding, LoadStatement, Parameter, ReturnStatement,
        SliceExpression, Statement, StringLiteral, UnaryOperatorExpression,
    )

T = TypeVar('T')


class ASTVisitor(ABC, Generic[T]):
    """
    Base AST visitor with default traversal for all nodes.

    Usage:
        class NameCounter(ASTVisitor[None]):
            def __init__(self):
                self.count = 0

            def visit_identifier(self, node) -> None:
                self.count += 1

        counter = NameCounter()
        counter.visit_statements(file.statements)
    """

    # Leaf nodes - NO DEFAULT IMPLEMENTATION
    @abstractmethod
    def visit_identifier(self, node: 'Identifier') -> T:
        raise NotImplementedError(f"{self.__class__.__name__} must implement visit_identifier()")

    # =========================================================================
    # Helpers
    # =========================================================================

    def visit_statements(self, statements: Iterable['Statement']) -> None:
        for stmt in statements:
            stmt.accept(self)

    def visit_optional(self, node: Optional['ASTNode']) -> None:
        if node is not None:
            node.accept(self)

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_integer_literal(self, node: 'IntegerLiteral') -> T:
        return None  # type: ignore[return-value]

    def visit_string_literal(self, node: 'StringLiteral') -> T:
        return None  # type: ignore[return-value]

    def visit_list_expression(self, node: 'ListExpression') -> T:
        for element in node.elements:
            element.accept(self)
        return None  # type: ignore[return-value]

    def visit_dict_entry(self, node: 'DictEntry') -> T:
        node.key.accept(self)
        node.value.accept(self)
        return None  # type: ignore[return-value]

    def visit_dict_expression(self, node: 'DictExpression') -> T:
        for entry in node.entries:
            entry.accept(self)
        return None  # type: ignore[return-value]

    def visit_binary_operator_expression(self, node: 'BinaryOperatorExpression') -> T:
        node.x.accept(self)
        node.y.accept(self)
        return None  # type: ignore[return-value]

    def visit_unary_operator_expression(self, node: 'UnaryOperatorExpression') -> T:
        node.x.accept(self)
        return None  # type: ignore[return-value]

    def visit_conditional_expression(self, node: 'ConditionalExpression') -> T:
        node.condition.accept(self)
        node.then_case.accept(self)
        node.else_case.accept(self)
        return None  # type: ignore[return-value]

    def visit_dot_expression(self, node: 'DotExpression') -> T:
        # The field is an attribute name, not a variable reference
        node.object.accept(self)
        return None  # type: ignore[return-value]

    def visit_index_expression(self, node: 'IndexExpression') -> T:
        node.object.accept(self)
        node.key.accept(self)
        return None  # type: ignore[return-value]

    def visit_slice_expression(self, node: 'SliceExpression') -> T:
        node.object.accept(self)
        self.visit_optional(node.start)
        self.visit_optional(node.end)
        self.visit_optional(node.step)
        return None  # type: ignore[return-value]

    def visit_argument(self, node: 'Argument') -> T:
        # Keyword names bind parameters of the callee, not variables
        node.value.accept(self)
        return None  # type: ignore[return-value]

    def visit_call_expression(self, node: 'CallExpression') -> T:
        node.function.accept(self)
        for arg in node.arguments:
            arg.accept(self)
        return None  # type: ignore[return-value]

    def visit_comprehension_for(self, node: 'ComprehensionFor') -> T:
        node.iterable.accept(self)
        node.vars.accept(self)
        return None  # type: ignore[return-value]

    def visit_comprehension_if(self, node: 'ComprehensionIf') -> T:
        node.condition.accept(self)
        return None  # type: ignore[return-value]

    def visit_comprehension(self, node: 'Comprehension') -> T:
        for clause in node.clauses:
            clause.accept(self)
        node.body.accept(self)
        return None  # type: ignore[return-value]

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_expression_statement(self, node: 'ExpressionStatement') -> T:
        node.expression.accept(self)
        return None  # type: ignore[return-value]

    def visit_assignment_statement(self, node: 'AssignmentStatement') -> T:
        node.rhs.accept(self)
        node.lhs.accept(self)
        return None  # type: ignore[return-value]

    def visit_augmented_assignment_statement(self, node: 'AugmentedAssignmentStatement') -> T:
        node.rhs.accept(self)
        node.lhs.accept(self)
        return None  # type: ignore[return-value]

    def visit_if_statement(self, node: 'IfStatement') -> T:
        node.condition.accept(self)
        self.visit_statements(node.then_block)
        if node.else_block is not None:
            self.visit_statements(node.else_block)
        return None  # type: ignore[return-value]

    def visit_for_statement(self, node: 'ForStatement') -> T:
        node.collection.accept(self)
        node.lhs.accept(self)
        self.visit_statements(node.block)
        return None  # type: ignore[return-value]

    def visit_parameter(self, node: 'Parameter') -> T:
        self.visit_optional(node.default)
        self.visit_optional(node.identifier)
        return None  # type: ignore[return-value]

    def visit_def_statement(self, node: 'DefStatement') -> T:
        node.identifier.accept(self)
        for param in node.parameters:
            param.accept(self)
        self.visit_statements(node.statements)
        return None  # type: ignore[return-value]

    def visit_return_statement(self, node: 'ReturnStatement') -> T:
        self.visit_optional(node.result)
        return None  # type: ignore[return-value]

    def visit_flow_statement(self, node: 'FlowStatement') -> T:
        return None  # type: ignore[return-value]

    def visit_load_binding(self, node: 'LoadBinding') -> T:
        node.local_name.accept(self)
        return None  # type: ignore[return-value]

    def visit_load_statement(self, node: 'LoadStatement') -> T:
        node.module.accept(self)
        for binding in node.bindings:
            binding.accept(self)
        return None  # type: ignore[return-value]
