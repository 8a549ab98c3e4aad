"""
Parser for the expression language.

Parses a stream of tokens into an Abstract Syntax Tree (AST).
Uses recursive descent parsing with operator precedence.

Precedence (lowest to highest):
1. Logical OR: or
2. Logical AND: and
3. Comparison: ==, !=, >, <, >=, <= (at most one per operand pair)
4. Unary: not
5. Primary: literals, field references, one-level dot access,
   function calls, parentheses
"""

from typing import Dict, List, Optional

from .ast import (
    AstNode,
    BinaryOpNode,
    BooleanLiteralNode,
    ComparisonOperator,
    DotAccessNode,
    FieldRefNode,
    FunctionCallNode,
    NullLiteralNode,
    NumberLiteralNode,
    StringLiteralNode,
    UnaryOpNode,
)
from .errors import ParseError
from .functions import FunctionRegistry
from .limits import DEFAULT_TEMPLATE_LIMITS, TemplateLimits, check_expression_depth
from .tokenizer import Token, TokenType, tokenize

COMPARISON_OPERATORS: Dict[TokenType, ComparisonOperator] = {
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.GT: ">",
    TokenType.LT: "<",
    TokenType.GE: ">=",
    TokenType.LE: "<=",
}


class Parser:
    """Parser for expression strings."""

    def __init__(
        self,
        tokens: List[Token],
        source: str,
        functions: Optional[FunctionRegistry] = None,
        limits: TemplateLimits = DEFAULT_TEMPLATE_LIMITS,
    ):
        self._tokens = tokens
        self._source = source
        self._functions = functions if functions is not None else FunctionRegistry()
        self._limits = limits
        self._current = 0
        self._depth = 0

    def parse(self) -> AstNode:
        """Parses the token stream into an AST."""
        if self._is_at_end():
            raise ParseError("Empty expression", 0, self._source)

        ast = self._parse_or()

        if not self._is_at_end():
            token = self._peek()
            raise ParseError(
                f"Unexpected token: {token.value}",
                token.position,
                self._source,
            )

        return ast

    # ============================================================
    # Token Helpers
    # ============================================================

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self._tokens[self._current]

    def _previous(self) -> Token:
        return self._tokens[self._current - 1]

    def _advance(self) -> Token:
        if not self._is_at_end():
            self._current += 1
        return self._previous()

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == token_type

    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        token = self._peek()
        found = token.value if token.type != TokenType.EOF else "end of expression"
        raise ParseError(f"{message}, got '{found}'", token.position, self._source)

    def _enter(self, position: int) -> None:
        self._depth += 1
        check_expression_depth(self._depth, self._limits, position, self._source)

    def _leave(self) -> None:
        self._depth -= 1

    # ============================================================
    # Expression Parsing (by precedence, lowest to highest)
    # ============================================================

    def _parse_or(self) -> AstNode:
        """Parses logical OR: or"""
        node = self._parse_and()

        while self._match(TokenType.OR):
            position = self._previous().position
            right = self._parse_and()
            node = BinaryOpNode(
                position=position,
                operator="or",
                left=node,
                right=right,
            )

        return node

    def _parse_and(self) -> AstNode:
        """Parses logical AND: and"""
        node = self._parse_comparison()

        while self._match(TokenType.AND):
            position = self._previous().position
            right = self._parse_comparison()
            node = BinaryOpNode(
                position=position,
                operator="and",
                left=node,
                right=right,
            )

        return node

    def _parse_comparison(self) -> AstNode:
        """Parses a single, non-chaining comparison."""
        node = self._parse_unary()

        if self._match(*COMPARISON_OPERATORS):
            token = self._previous()
            right = self._parse_unary()
            node = BinaryOpNode(
                position=token.position,
                operator=COMPARISON_OPERATORS[token.type],
                left=node,
                right=right,
            )

        return node

    def _parse_unary(self) -> AstNode:
        """Parses unary: not"""
        if self._match(TokenType.NOT):
            position = self._previous().position
            self._enter(position)
            operand = self._parse_unary()
            self._leave()
            return UnaryOpNode(position=position, operator="not", operand=operand)

        return self._parse_primary()

    def _parse_primary(self) -> AstNode:
        """Parses primary expressions: literals, field refs, calls, parentheses."""
        token = self._peek()
        position = token.position

        if self._is_at_end():
            raise ParseError("Unexpected end of expression", position, self._source)

        # Parenthesized expression
        if self._match(TokenType.LPAREN):
            self._enter(position)
            expr = self._parse_or()
            self._consume(TokenType.RPAREN, "Expected ')' after expression")
            self._leave()
            return expr

        # String literal
        if self._match(TokenType.STRING):
            return StringLiteralNode(position=position, value=self._previous().value)

        # Number literal
        if self._match(TokenType.NUMBER):
            return NumberLiteralNode(position=position, value=float(self._previous().value))

        # Boolean literals
        if self._match(TokenType.TRUE):
            return BooleanLiteralNode(position=position, value=True)
        if self._match(TokenType.FALSE):
            return BooleanLiteralNode(position=position, value=False)

        # Null literal
        if self._match(TokenType.NULL):
            return NullLiteralNode(position=position)

        # Identifier: function call, dot access or field reference
        if self._match(TokenType.IDENTIFIER):
            name = self._previous().value

            if self._check(TokenType.LPAREN):
                return self._parse_function_call(name, position)

            if self._match(TokenType.DOT):
                prop_token = self._consume(
                    TokenType.IDENTIFIER, "Expected property name after '.'"
                )
                return DotAccessNode(
                    position=position,
                    object=FieldRefNode(position=position, name=name),
                    property=prop_token.value,
                )

            return FieldRefNode(position=position, name=name)

        raise ParseError(
            f"Unexpected token: {token.value}",
            position,
            self._source,
        )

    def _parse_function_call(self, name: str, position: int) -> FunctionCallNode:
        """Parses a call; the name must already be registered."""
        if not self._functions.has(name):
            raise ParseError(f"Unknown function: {name}", position, self._source)

        self._advance()  # consume '('
        self._enter(position)
        args = self._parse_argument_list()
        self._leave()

        return FunctionCallNode(position=position, name=name, args=tuple(args))

    def _parse_argument_list(self) -> List[AstNode]:
        """Parses function argument list (already consumed opening paren)."""
        args: List[AstNode] = []

        if not self._check(TokenType.RPAREN):
            args.append(self._parse_or())
            while self._match(TokenType.COMMA):
                args.append(self._parse_or())

        self._consume(TokenType.RPAREN, "Expected ')' after function arguments")
        return args


def parse_expression(
    source: str,
    functions: Optional[FunctionRegistry] = None,
    limits: TemplateLimits = DEFAULT_TEMPLATE_LIMITS,
) -> AstNode:
    """
    Parses an expression string into an AST.

    Args:
        source: The expression string to parse
        functions: Registry used to validate function names
        limits: Optional template limits

    Returns:
        The parsed AST

    Raises:
        TokenizerError: If tokenization fails
        ParseError: If parsing fails
    """
    tokens = tokenize(source, limits)
    parser = Parser(tokens, source, functions, limits)
    return parser.parse()
