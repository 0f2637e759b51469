"""
Starlark AST (Abstract Syntax Tree) Definitions

Statements and expressions form a closed set of node classes, each tagged
with a NodeType. Passes either dispatch through accept()/visit_* (see
ast_visitor.py) or switch on node_type where a full visitor is overkill.

Expression nodes print back as source text via __str__, which is what
diagnostics such as "cannot assign to 'f()'" quote.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, TypeVar

from .source_location import SourceLocation
from .types import ArgumentKind, BinaryOp, FlowKind, ParameterKind, UnaryOp

if TYPE_CHECKING:
    from .ast_visitor import ASTVisitor

T = TypeVar('T')

# Arena indices for identifiers; resolution results are keyed by these ids
_identifier_ids = itertools.count()


class NodeType(Enum):
    """AST node types"""
    # Expressions
    IDENTIFIER = "identifier"
    INTEGER_LITERAL = "integer_literal"
    STRING_LITERAL = "string_literal"
    LIST_EXPR = "list_expr"
    DICT_EXPR = "dict_expr"
    DICT_ENTRY = "dict_entry"
    BINARY_OP = "binary_op"
    UNARY_OP = "unary_op"
    CONDITIONAL_EXPR = "conditional_expr"
    DOT_EXPR = "dot_expr"
    INDEX_EXPR = "index_expr"
    SLICE_EXPR = "slice_expr"
    CALL_EXPR = "call_expr"
    ARGUMENT = "argument"
    COMPREHENSION = "comprehension"
    COMPREHENSION_FOR = "comprehension_for"
    COMPREHENSION_IF = "comprehension_if"
    # Statements
    EXPR_STMT = "expr_stmt"
    ASSIGNMENT = "assignment"
    AUGMENTED_ASSIGNMENT = "augmented_assignment"
    IF_STMT = "if_stmt"
    FOR_STMT = "for_stmt"
    DEF_STMT = "def_stmt"
    PARAMETER = "parameter"
    RETURN_STMT = "return_stmt"
    FLOW_STMT = "flow_stmt"
    LOAD_STMT = "load_stmt"
    LOAD_BINDING = "load_binding"


class ASTNode:
    """
    Base class for all AST nodes

    Visitor Pattern Support:
    - All nodes have accept() for polymorphic dispatch
    - Subclasses implement accept() to call the matching visit_* method
    """
    __slots__ = ('node_type', 'location')

    def __init__(self, node_type: NodeType, location: Optional[SourceLocation]):
        self.node_type = node_type
        self.location = location

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        raise NotImplementedError(f"accept() not implemented for {self.__class__.__name__}")


class Expression(ASTNode):
    """Base class for expressions"""
    __slots__ = ()


class Statement(ASTNode):
    """Base class for statements"""
    __slots__ = ()


def _join(items) -> str:
    return ", ".join(str(i) for i in items)


# =============================================================================
# EXPRESSIONS
# =============================================================================

@dataclass(eq=False)
class Identifier(Expression):
    """
    A name reference or binding occurrence.

    node_id is the identifier's arena index: resolution records its scope in
    a side table keyed by node_id, so the node itself is never mutated.
    """
    name: str

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.IDENTIFIER, location)
        self.name = name
        self.node_id: int = next(_identifier_ids)

    def __str__(self) -> str:
        return self.name

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_identifier(self)


@dataclass(eq=False)
class IntegerLiteral(Expression):
    """Integer literal (decimal, octal or hex in source)"""
    value: int

    def __init__(self, value: int, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.INTEGER_LITERAL, location)
        self.value = value

    def __str__(self) -> str:
        return str(self.value)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_integer_literal(self)


@dataclass(eq=False)
class StringLiteral(Expression):
    """String literal; value holds the decoded text"""
    value: str

    def __init__(self, value: str, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.STRING_LITERAL, location)
        self.value = value

    def __str__(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_string_literal(self)


@dataclass(eq=False)
class ListExpression(Expression):
    """List display [a, b] or tuple (a, b); both are assignable patterns"""
    elements: List[Expression]
    is_tuple: bool = False

    def __init__(self, elements: List[Expression], is_tuple: bool = False,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LIST_EXPR, location)
        self.elements = elements
        self.is_tuple = is_tuple

    def __str__(self) -> str:
        if not self.is_tuple:
            return f"[{_join(self.elements)}]"
        if len(self.elements) == 1:
            return f"({self.elements[0]},)"
        return f"({_join(self.elements)})"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_list_expression(self)


@dataclass(eq=False)
class DictEntry(ASTNode):
    """key: value inside a dict display"""
    key: Expression
    value: Expression

    def __init__(self, key: Expression, value: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.DICT_ENTRY, location)
        self.key = key
        self.value = value

    def __str__(self) -> str:
        return f"{self.key}: {self.value}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_dict_entry(self)


@dataclass(eq=False)
class DictExpression(Expression):
    """Dict display {k: v, ...}"""
    entries: List[DictEntry]

    def __init__(self, entries: List[DictEntry], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.DICT_EXPR, location)
        self.entries = entries

    def __str__(self) -> str:
        return "{" + _join(self.entries) + "}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_dict_expression(self)


@dataclass(eq=False)
class BinaryOperatorExpression(Expression):
    """x op y"""
    x: Expression
    op: BinaryOp
    y: Expression

    def __init__(self, x: Expression, op: BinaryOp, y: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.BINARY_OP, location)
        self.x = x
        self.op = op
        self.y = y

    def __str__(self) -> str:
        return f"{self.x} {self.op} {self.y}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_binary_operator_expression(self)


@dataclass(eq=False)
class UnaryOperatorExpression(Expression):
    """op x"""
    op: UnaryOp
    x: Expression

    def __init__(self, op: UnaryOp, x: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.UNARY_OP, location)
        self.op = op
        self.x = x

    def __str__(self) -> str:
        return f"not {self.x}" if self.op is UnaryOp.NOT else f"{self.op}{self.x}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_unary_operator_expression(self)


@dataclass(eq=False)
class ConditionalExpression(Expression):
    """then_case if condition else else_case"""
    then_case: Expression
    condition: Expression
    else_case: Expression

    def __init__(self, then_case: Expression, condition: Expression, else_case: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.CONDITIONAL_EXPR, location)
        self.then_case = then_case
        self.condition = condition
        self.else_case = else_case

    def __str__(self) -> str:
        return f"{self.then_case} if {self.condition} else {self.else_case}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_conditional_expression(self)


@dataclass(eq=False)
class DotExpression(Expression):
    """object.field; field is an attribute name, not a variable"""
    object: Expression
    field: Identifier

    def __init__(self, object: Expression, field: Identifier, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.DOT_EXPR, location)
        self.object = object
        self.field = field

    def __str__(self) -> str:
        return f"{self.object}.{self.field}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_dot_expression(self)


@dataclass(eq=False)
class IndexExpression(Expression):
    """object[key]"""
    object: Expression
    key: Expression

    def __init__(self, object: Expression, key: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.INDEX_EXPR, location)
        self.object = object
        self.key = key

    def __str__(self) -> str:
        return f"{self.object}[{self.key}]"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_index_expression(self)


@dataclass(eq=False)
class SliceExpression(Expression):
    """object[start:end:step]; any bound may be absent"""
    object: Expression
    start: Optional[Expression] = None
    end: Optional[Expression] = None
    step: Optional[Expression] = None

    def __init__(self, object: Expression, start: Optional[Expression] = None,
                 end: Optional[Expression] = None, step: Optional[Expression] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.SLICE_EXPR, location)
        self.object = object
        self.start = start
        self.end = end
        self.step = step

    def __str__(self) -> str:
        bounds = f"{self.start or ''}:{self.end or ''}"
        if self.step is not None:
            bounds += f":{self.step}"
        return f"{self.object}[{bounds}]"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_slice_expression(self)


@dataclass(eq=False)
class Argument(ASTNode):
    """One call-site argument; name is set for keyword arguments only"""
    kind: ArgumentKind
    value: Expression
    name: Optional[Identifier] = None

    def __init__(self, kind: ArgumentKind, value: Expression, name: Optional[Identifier] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.ARGUMENT, location)
        self.kind = kind
        self.value = value
        self.name = name

    def __str__(self) -> str:
        if self.kind is ArgumentKind.KEYWORD:
            return f"{self.name}={self.value}"
        if self.kind is ArgumentKind.STAR:
            return f"*{self.value}"
        if self.kind is ArgumentKind.STAR_STAR:
            return f"**{self.value}"
        return str(self.value)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_argument(self)


@dataclass(eq=False)
class CallExpression(Expression):
    """function(arguments...)"""
    function: Expression
    arguments: List[Argument]

    def __init__(self, function: Expression, arguments: List[Argument],
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.CALL_EXPR, location)
        self.function = function
        self.arguments = arguments

    def __str__(self) -> str:
        return f"{self.function}({_join(self.arguments)})"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_call_expression(self)


@dataclass(eq=False)
class ComprehensionFor(ASTNode):
    """for vars in iterable"""
    vars: Expression
    iterable: Expression

    def __init__(self, vars: Expression, iterable: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.COMPREHENSION_FOR, location)
        self.vars = vars
        self.iterable = iterable

    def __str__(self) -> str:
        return f"for {self.vars} in {self.iterable}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_comprehension_for(self)


@dataclass(eq=False)
class ComprehensionIf(ASTNode):
    """if condition"""
    condition: Expression

    def __init__(self, condition: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.COMPREHENSION_IF, location)
        self.condition = condition

    def __str__(self) -> str:
        return f"if {self.condition}"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_comprehension_if(self)


@dataclass(eq=False)
class Comprehension(Expression):
    """
    [body for ... if ...] or {key: value for ... if ...}

    For a dict comprehension body is a DictEntry. The first clause is
    always a ComprehensionFor.
    """
    body: ASTNode
    clauses: List[ASTNode]
    is_dict: bool = False

    def __init__(self, body: ASTNode, clauses: List[ASTNode], is_dict: bool = False,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.COMPREHENSION, location)
        self.body = body
        self.clauses = clauses
        self.is_dict = is_dict

    def __str__(self) -> str:
        inner = " ".join([str(self.body)] + [str(c) for c in self.clauses])
        return "{" + inner + "}" if self.is_dict else f"[{inner}]"

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_comprehension(self)


# =============================================================================
# STATEMENTS
# =============================================================================

@dataclass(eq=False)
class ExpressionStatement(Statement):
    """Expression used as a statement (calls, docstrings)"""
    expression: Expression

    def __init__(self, expression: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.EXPR_STMT, location or expression.location)
        self.expression = expression

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_expression_statement(self)


@dataclass(eq=False)
class AssignmentStatement(Statement):
    """lhs = rhs"""
    lhs: Expression
    rhs: Expression

    def __init__(self, lhs: Expression, rhs: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.ASSIGNMENT, location)
        self.lhs = lhs
        self.rhs = rhs

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_assignment_statement(self)


@dataclass(eq=False)
class AugmentedAssignmentStatement(Statement):
    """lhs op= rhs"""
    op: BinaryOp
    lhs: Expression
    rhs: Expression

    def __init__(self, op: BinaryOp, lhs: Expression, rhs: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.AUGMENTED_ASSIGNMENT, location)
        self.op = op
        self.lhs = lhs
        self.rhs = rhs

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_augmented_assignment_statement(self)


@dataclass(eq=False)
class IfStatement(Statement):
    """
    if condition: then_block else: else_block

    An elif chain is an IfStatement that is the only statement of else_block.
    """
    condition: Expression
    then_block: List[Statement]
    else_block: Optional[List[Statement]] = None

    def __init__(self, condition: Expression, then_block: List[Statement],
                 else_block: Optional[List[Statement]] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.IF_STMT, location)
        self.condition = condition
        self.then_block = then_block
        self.else_block = else_block

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_if_statement(self)


@dataclass(eq=False)
class ForStatement(Statement):
    """for lhs in collection: block"""
    lhs: Expression
    collection: Expression
    block: List[Statement]

    def __init__(self, lhs: Expression, collection: Expression, block: List[Statement],
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.FOR_STMT, location)
        self.lhs = lhs
        self.collection = collection
        self.block = block

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_for_statement(self)


@dataclass(eq=False)
class Parameter(ASTNode):
    """
    One parameter of a def. identifier is None only for the bare "*"
    separator; default is set only for OPTIONAL parameters.
    """
    kind: ParameterKind
    identifier: Optional[Identifier] = None
    default: Optional[Expression] = None

    def __init__(self, kind: ParameterKind, identifier: Optional[Identifier] = None,
                 default: Optional[Expression] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.PARAMETER, location)
        self.kind = kind
        self.identifier = identifier
        self.default = default

    @property
    def name(self) -> Optional[str]:
        return self.identifier.name if self.identifier is not None else None

    def is_optional(self) -> bool:
        return self.kind is ParameterKind.OPTIONAL

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_parameter(self)


@dataclass(eq=False)
class DefStatement(Statement):
    """def identifier(parameters): statements"""
    identifier: Identifier
    parameters: List[Parameter]
    statements: List[Statement]

    def __init__(self, identifier: Identifier, parameters: List[Parameter],
                 statements: List[Statement], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.DEF_STMT, location)
        self.identifier = identifier
        self.parameters = parameters
        self.statements = statements

    @property
    def name(self) -> str:
        return self.identifier.name

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_def_statement(self)


@dataclass(eq=False)
class ReturnStatement(Statement):
    """return [result]"""
    result: Optional[Expression] = None

    def __init__(self, result: Optional[Expression] = None, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.RETURN_STMT, location)
        self.result = result

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_return_statement(self)


@dataclass(eq=False)
class FlowStatement(Statement):
    """break, continue or pass"""
    kind: FlowKind

    def __init__(self, kind: FlowKind, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.FLOW_STMT, location)
        self.kind = kind

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_flow_statement(self)


@dataclass(eq=False)
class LoadBinding(ASTNode):
    """local_name = "original_name" inside a load(); both are the same for load("m", "x")"""
    local_name: Identifier
    original_name: Identifier

    def __init__(self, local_name: Identifier, original_name: Identifier,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LOAD_BINDING, location or local_name.location)
        self.local_name = local_name
        self.original_name = original_name

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_load_binding(self)


@dataclass(eq=False)
class LoadStatement(Statement):
    """load("module", "sym", alias="sym2")"""
    module: StringLiteral
    bindings: List[LoadBinding]

    def __init__(self, module: StringLiteral, bindings: List[LoadBinding],
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LOAD_STMT, location)
        self.module = module
        self.bindings = bindings

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_load_statement(self)
