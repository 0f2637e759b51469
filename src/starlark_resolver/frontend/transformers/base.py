"""
Starlark AST Transformer
Converts the Lark parse tree to Starlark AST nodes
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from lark import Transformer, v_args
from lark.lexer import Token
from typing_extensions import TypeAlias

from ...shared import *
from ...shared.types import ArgumentKind, BinaryOp, FlowKind, ParameterKind, UnaryOp
from ...utils.config import DEFAULT_SOURCE_FILE, ERROR_IDENTIFIER
from .literals import DecodedString, LiteralParser

# Lark Meta object contains location information
LarkMeta: TypeAlias = Union[None, object]
StatementList: TypeAlias = List[Statement]

logger: logging.Logger = logging.getLogger("starlark_resolver.frontend.transformers.base")

_UNARY_OPS = {"+": UnaryOp.POS, "-": UnaryOp.NEG, "~": UnaryOp.INVERT}


@dataclass
class ElifClause:
    """Internal result of elif_clause"""
    condition: Expression
    block: StatementList
    location: SourceLocation


@dataclass
class ElseClause:
    """Internal result of else_clause"""
    block: StatementList


@dataclass
class SliceBounds:
    """Internal result of subscript_slice"""
    start: Optional[Expression]
    end: Optional[Expression]
    step: Optional[Expression]


@v_args(inline=True, meta=True)
class StarlarkTransformer(Transformer):
    """
    Starlark AST Transformer

    One instance serves many parses; reset() is called by the parser before
    each one. String escape events and syntax errors that do not stop the parse
    are collected on the instance for the parser to hand to the file.
    """

    def __init__(self) -> None:
        super().__init__()
        self.current_file: str = DEFAULT_SOURCE_FILE
        self.literal_parser = LiteralParser(self.current_file)
        self.string_escape_events: List[Error] = []
        self.syntax_errors: List[Error] = []

    def reset(self, source_file: str) -> None:
        self.current_file = source_file
        self.literal_parser = LiteralParser(source_file)
        self.string_escape_events = []
        self.syntax_errors = []

    # =========================================================================
    # Locations
    # =========================================================================

    def _extract_location(self, meta) -> Optional[SourceLocation]:
        """Extract location from Lark meta object"""
        if meta is None or getattr(meta, "empty", True):
            return None
        return SourceLocation(
            file=self.current_file,
            line=meta.line,
            column=meta.column,
            end_line=getattr(meta, "end_line", 0) or 0,
            end_column=getattr(meta, "end_column", 0) or 0,
        )

    def _token_location(self, token: Token) -> SourceLocation:
        return SourceLocation(
            file=self.current_file,
            line=token.line,
            column=token.column,
            end_line=token.end_line or token.line,
            end_column=token.end_column or token.column,
        )

    def _identifier(self, token: Token) -> Identifier:
        return Identifier(str(token), self._token_location(token))

    def _syntax_error(self, message: str, location: Optional[SourceLocation]) -> None:
        self.syntax_errors.append(Error(message=message, location=location))

    # =========================================================================
    # Statements
    # =========================================================================

    def start(self, meta: LarkMeta, *items: Union[Statement, StatementList]) -> StatementList:
        return self._flatten(items)

    def simple_stmt(self, meta: LarkMeta, *statements: Statement) -> StatementList:
        return list(statements)

    def suite(self, meta: LarkMeta, *items: Union[Statement, StatementList]) -> StatementList:
        return self._flatten(items)

    @staticmethod
    def _flatten(items) -> StatementList:
        statements: StatementList = []
        for item in items:
            if isinstance(item, list):
                statements.extend(item)
            else:
                statements.append(item)
        return statements

    def expr_stmt(self, meta: LarkMeta, expression: Expression) -> ExpressionStatement:
        return ExpressionStatement(expression, self._extract_location(meta))

    def assign_stmt(self, meta: LarkMeta, lhs: Expression, rhs: Expression) -> AssignmentStatement:
        return AssignmentStatement(lhs, rhs, self._extract_location(meta))

    def aug_assign_stmt(self, meta: LarkMeta, lhs: Expression, op: Token,
                        rhs: Expression) -> AugmentedAssignmentStatement:
        return AugmentedAssignmentStatement(
            BinaryOp(str(op)[:-1]), lhs, rhs, self._extract_location(meta)
        )

    def return_stmt(self, meta: LarkMeta, result: Optional[Expression] = None) -> ReturnStatement:
        return ReturnStatement(result, self._extract_location(meta))

    def pass_stmt(self, meta: LarkMeta) -> FlowStatement:
        return FlowStatement(FlowKind.PASS, self._extract_location(meta))

    def break_stmt(self, meta: LarkMeta) -> FlowStatement:
        return FlowStatement(FlowKind.BREAK, self._extract_location(meta))

    def continue_stmt(self, meta: LarkMeta) -> FlowStatement:
        return FlowStatement(FlowKind.CONTINUE, self._extract_location(meta))

    def load_stmt(self, meta: LarkMeta, module: Token, *bindings: LoadBinding) -> LoadStatement:
        location = self._extract_location(meta)
        if not bindings:
            self._syntax_error("expected at least one symbol to load", location)
        return LoadStatement(self._string(module).literal, list(bindings), location)

    def load_plain(self, meta: LarkMeta, symbol: Token) -> LoadBinding:
        name = self._string(symbol).literal
        return self._load_binding(Identifier(name.value, name.location), name)

    def load_alias(self, meta: LarkMeta, alias: Token, symbol: Token) -> LoadBinding:
        name = self._string(symbol).literal
        return self._load_binding(self._identifier(alias), name)

    def _load_binding(self, local: Identifier, original: StringLiteral) -> LoadBinding:
        if original.value.startswith("_"):
            self._syntax_error(
                f"symbol '{original.value}' is private and cannot be imported", original.location
            )
        return LoadBinding(local, Identifier(original.value, original.location))

    def if_stmt(self, meta: LarkMeta, condition: Expression, then_block: StatementList,
                *clauses: Union[ElifClause, ElseClause]) -> IfStatement:
        else_block: Optional[StatementList] = None
        # Fold elif chains from the innermost outwards
        for clause in reversed(clauses):
            if isinstance(clause, ElseClause):
                else_block = clause.block
            else:
                else_block = [IfStatement(clause.condition, clause.block, else_block, clause.location)]
        return IfStatement(condition, then_block, else_block, self._extract_location(meta))

    def elif_clause(self, meta: LarkMeta, condition: Expression, block: StatementList) -> ElifClause:
        return ElifClause(condition, block, self._extract_location(meta))

    def else_clause(self, meta: LarkMeta, block: StatementList) -> ElseClause:
        return ElseClause(block)

    def for_stmt(self, meta: LarkMeta, lhs: Expression, collection: Expression,
                 block: StatementList) -> ForStatement:
        return ForStatement(lhs, collection, block, self._extract_location(meta))

    def funcdef(self, meta: LarkMeta, name: Token, parameters: List[Parameter],
                body: StatementList) -> DefStatement:
        return DefStatement(self._identifier(name), parameters, body, self._extract_location(meta))

    def parameters(self, meta: LarkMeta, *params: Parameter) -> List[Parameter]:
        return list(params)

    def mandatory_param(self, meta: LarkMeta, name: Token) -> Parameter:
        return Parameter(ParameterKind.MANDATORY, self._identifier(name),
                         location=self._extract_location(meta))

    def optional_param(self, meta: LarkMeta, name: Token, default: Expression) -> Parameter:
        return Parameter(ParameterKind.OPTIONAL, self._identifier(name), default,
                         location=self._extract_location(meta))

    def star_param(self, meta: LarkMeta, name: Optional[Token] = None) -> Parameter:
        identifier = self._identifier(name) if name is not None else None
        return Parameter(ParameterKind.STAR, identifier, location=self._extract_location(meta))

    def star_star_param(self, meta: LarkMeta, name: Token) -> Parameter:
        return Parameter(ParameterKind.STAR_STAR, self._identifier(name),
                         location=self._extract_location(meta))

    # =========================================================================
    # Expressions
    # =========================================================================

    def test_tuple(self, meta: LarkMeta, *elements: Expression) -> ListExpression:
        return ListExpression(list(elements), is_tuple=True, location=self._extract_location(meta))

    def expr_tuple(self, meta: LarkMeta, *elements: Expression) -> ListExpression:
        return ListExpression(list(elements), is_tuple=True, location=self._extract_location(meta))

    def conditional_expr(self, meta: LarkMeta, then_case: Expression, condition: Expression,
                         else_case: Expression) -> ConditionalExpression:
        return ConditionalExpression(then_case, condition, else_case, self._extract_location(meta))

    def or_test(self, meta: LarkMeta, *operands: Expression) -> Expression:
        return self._fold_same(meta, BinaryOp.OR, operands)

    def and_test(self, meta: LarkMeta, *operands: Expression) -> Expression:
        return self._fold_same(meta, BinaryOp.AND, operands)

    def _fold_same(self, meta: LarkMeta, op: BinaryOp, operands) -> Expression:
        location = self._extract_location(meta)
        result = operands[0]
        for operand in operands[1:]:
            result = BinaryOperatorExpression(result, op, operand, location)
        return result

    def not_expr(self, meta: LarkMeta, operand: Expression) -> UnaryOperatorExpression:
        return UnaryOperatorExpression(UnaryOp.NOT, operand, self._extract_location(meta))

    def _fold_binary(self, meta: LarkMeta, *children: Union[Expression, Token]) -> Expression:
        """Left-fold `x op y op z`; operators arrive as tokens ("not" "in" as two)."""
        location = self._extract_location(meta)
        result = children[0]
        pending: List[str] = []
        for child in children[1:]:
            if isinstance(child, Token):
                pending.append(str(child))
                continue
            op = BinaryOp(" ".join(pending))
            pending = []
            result = BinaryOperatorExpression(result, op, child, location)
        return result

    comparison = _fold_binary
    expr = _fold_binary
    xor_expr = _fold_binary
    and_expr = _fold_binary
    shift_expr = _fold_binary
    arith_expr = _fold_binary
    term = _fold_binary

    def factor(self, meta: LarkMeta, op: Token, operand: Expression) -> UnaryOperatorExpression:
        return UnaryOperatorExpression(_UNARY_OPS[str(op)], operand, self._extract_location(meta))

    def funccall(self, meta: LarkMeta, function: Expression, arguments: List[Argument]) -> CallExpression:
        self._check_argument_order(arguments)
        return CallExpression(function, arguments, self._extract_location(meta))

    def _check_argument_order(self, arguments: List[Argument]) -> None:
        """f(positional..., keyword..., *args, **kwargs)"""
        seen_keyword = seen_star = seen_star_star = False
        for arg in arguments:
            if seen_star_star:
                self._syntax_error("**kwarg argument is misplaced (**kwarg must be last)", arg.location)
                return
            if arg.kind is ArgumentKind.POSITIONAL and (seen_keyword or seen_star):
                self._syntax_error(
                    "positional argument is misplaced (positional arguments come first)", arg.location
                )
                return
            if arg.kind is ArgumentKind.KEYWORD and seen_star:
                self._syntax_error(
                    "keyword argument is misplaced (keyword arguments must be before any *arg or **kwarg)",
                    arg.location,
                )
                return
            if arg.kind is ArgumentKind.STAR and seen_star:
                self._syntax_error("*arg argument is misplaced", arg.location)
                return
            seen_keyword |= arg.kind is ArgumentKind.KEYWORD
            seen_star |= arg.kind is ArgumentKind.STAR
            seen_star_star |= arg.kind is ArgumentKind.STAR_STAR

    def arguments(self, meta: LarkMeta, *args: Argument) -> List[Argument]:
        return list(args)

    def positional_arg(self, meta: LarkMeta, value: Expression) -> Argument:
        return Argument(ArgumentKind.POSITIONAL, value, location=self._extract_location(meta))

    def keyword_arg(self, meta: LarkMeta, name: Expression, value: Expression) -> Argument:
        location = self._extract_location(meta)
        if not isinstance(name, Identifier):
            self._syntax_error(f"keyword argument must be an identifier, not '{name}'", location)
            name = Identifier(ERROR_IDENTIFIER, name.location)
        return Argument(ArgumentKind.KEYWORD, value, name, location)

    def star_arg(self, meta: LarkMeta, value: Expression) -> Argument:
        return Argument(ArgumentKind.STAR, value, location=self._extract_location(meta))

    def star_star_arg(self, meta: LarkMeta, value: Expression) -> Argument:
        return Argument(ArgumentKind.STAR_STAR, value, location=self._extract_location(meta))

    def getitem(self, meta: LarkMeta, obj: Expression,
                subscript: Union[Expression, SliceBounds]) -> Expression:
        location = self._extract_location(meta)
        if isinstance(subscript, SliceBounds):
            return SliceExpression(obj, subscript.start, subscript.end, subscript.step, location)
        return IndexExpression(obj, subscript, location)

    def subscript_slice(self, meta: LarkMeta, *parts: Union[Expression, Token]) -> SliceBounds:
        bounds: List[Optional[Expression]] = [None]
        for part in parts:
            if isinstance(part, Token):
                bounds.append(None)
            else:
                bounds[-1] = part
        bounds.extend([None] * (3 - len(bounds)))
        return SliceBounds(*bounds[:3])

    def getattr(self, meta: LarkMeta, obj: Expression, name: Token) -> DotExpression:
        return DotExpression(obj, self._identifier(name), self._extract_location(meta))

    # =========================================================================
    # Atoms
    # =========================================================================

    def identifier(self, meta: LarkMeta, name: Token) -> Identifier:
        return self._identifier(name)

    def number(self, meta: LarkMeta, token: Token) -> IntegerLiteral:
        return self.literal_parser.parse_integer(token)

    def string(self, meta: LarkMeta, token: Token) -> StringLiteral:
        return self._string(token).literal

    def _string(self, token: Token) -> DecodedString:
        decoded = self.literal_parser.parse_string(token)
        self.string_escape_events.extend(decoded.escape_events)
        self.syntax_errors.extend(decoded.errors)
        return decoded

    def empty_tuple(self, meta: LarkMeta) -> ListExpression:
        return ListExpression([], is_tuple=True, location=self._extract_location(meta))

    def paren(self, meta: LarkMeta, inner: Expression) -> Expression:
        if isinstance(inner, ListExpression) and inner.is_tuple:
            inner.location = self._extract_location(meta)
        return inner

    def list_expr(self, meta: LarkMeta, *elements: Expression) -> ListExpression:
        return ListExpression(list(elements), location=self._extract_location(meta))

    def list_comp(self, meta: LarkMeta, body: Expression, *clauses: ASTNode) -> Comprehension:
        return Comprehension(body, list(clauses), is_dict=False, location=self._extract_location(meta))

    def dict_expr(self, meta: LarkMeta, *entries: DictEntry) -> DictExpression:
        return DictExpression(list(entries), self._extract_location(meta))

    def dict_comp(self, meta: LarkMeta, entry: DictEntry, *clauses: ASTNode) -> Comprehension:
        return Comprehension(entry, list(clauses), is_dict=True, location=self._extract_location(meta))

    def dict_entry(self, meta: LarkMeta, key: Expression, value: Expression) -> DictEntry:
        return DictEntry(key, value, self._extract_location(meta))

    def comp_for(self, meta: LarkMeta, vars: Expression, iterable: Expression) -> ComprehensionFor:
        return ComprehensionFor(vars, iterable, self._extract_location(meta))

    def comp_if(self, meta: LarkMeta, condition: Expression) -> ComprehensionIf:
        return ComprehensionIf(condition, self._extract_location(meta))
