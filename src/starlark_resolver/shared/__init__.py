"""
Shared components: AST, scopes, diagnostics.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, StarlarkError, StarlarkSyntaxError, StarlarkImplementationError,
)
from .types import ArgumentKind, BinaryOp, FlowKind, ParameterKind, UnaryOp
from .nodes import (
    ASTNode, Expression, Statement, NodeType,
    Identifier, IntegerLiteral, StringLiteral, ListExpression, DictExpression, DictEntry,
    BinaryOperatorExpression, UnaryOperatorExpression, ConditionalExpression,
    DotExpression, IndexExpression, SliceExpression, CallExpression, Argument,
    Comprehension, ComprehensionFor, ComprehensionIf,
    ExpressionStatement, AssignmentStatement, AugmentedAssignmentStatement,
    IfStatement, ForStatement, DefStatement, Parameter, ReturnStatement,
    FlowStatement, LoadStatement, LoadBinding,
)
from .ast_visitor import ASTVisitor
from .scope import Block, Scope, ScopeChain, ScopeTable
