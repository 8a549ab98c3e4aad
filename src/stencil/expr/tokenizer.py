"""
Tokenizer (lexer) for the expression language.

Converts a single tag expression into a stream of tokens for the parser.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .errors import TokenizerError
from .limits import TemplateLimits, check_expression_length


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    # Literals
    STRING = "STRING"
    NUMBER = "NUMBER"
    TRUE = "TRUE"
    FALSE = "FALSE"
    NULL = "NULL"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # Logical keywords
    AND = "AND"
    OR = "OR"
    NOT = "NOT"

    # Comparison operators
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    LT = "LT"
    GE = "GE"
    LE = "LE"

    # Delimiters
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"
    DOT = "DOT"

    # Special
    EOF = "EOF"


# Coarse token kinds
_TOKEN_KINDS: Dict[TokenType, str] = {
    TokenType.STRING: "string",
    TokenType.NUMBER: "number",
    TokenType.TRUE: "keyword",
    TokenType.FALSE: "keyword",
    TokenType.NULL: "keyword",
    TokenType.AND: "keyword",
    TokenType.OR: "keyword",
    TokenType.NOT: "keyword",
    TokenType.IDENTIFIER: "identifier",
    TokenType.EQ: "operator",
    TokenType.NE: "operator",
    TokenType.GT: "operator",
    TokenType.LT: "operator",
    TokenType.GE: "operator",
    TokenType.LE: "operator",
    TokenType.LPAREN: "paren",
    TokenType.RPAREN: "paren",
    TokenType.COMMA: "comma",
    TokenType.DOT: "dot",
    TokenType.EOF: "eof",
}


@dataclass
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int

    @property
    def kind(self) -> str:
        """Coarse kind: string, number, keyword, identifier, operator, paren, comma, dot."""
        return _TOKEN_KINDS[self.type]


# Keywords recognized by the tokenizer (case-sensitive)
KEYWORDS: Dict[str, TokenType] = {
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
}

# Two-character operators, checked before the single-character ones
TWO_CHAR_OPERATORS: Dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    ">=": TokenType.GE,
    "<=": TokenType.LE,
}

SINGLE_CHAR_TOKENS: Dict[str, TokenType] = {
    ">": TokenType.GT,
    "<": TokenType.LT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
}


def _is_digit(ch: str) -> bool:
    """Checks if a character is an ASCII digit."""
    return "0" <= ch <= "9"


def _is_identifier_start(ch: str) -> bool:
    """Checks if a character can start an identifier."""
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


def _is_identifier_part(ch: str) -> bool:
    """Checks if a character can continue an identifier."""
    return _is_identifier_start(ch) or _is_digit(ch)


def _is_whitespace(ch: str) -> bool:
    """Checks if a character is whitespace."""
    return ch in (" ", "\t", "\n", "\r", "\x0b", "\x0c")


class Tokenizer:
    """Tokenizer for expression strings."""

    def __init__(self, source: str, limits: Optional[TemplateLimits] = None):
        self._source = source
        self._limits = limits
        self._position = 0
        self._tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Tokenizes the source expression and returns all tokens."""
        check_expression_length(self._source, self._limits, 0, self._source)
        self._position = 0
        self._tokens = []

        while not self._is_at_end():
            self._scan_token()

        self._tokens.append(Token(TokenType.EOF, "", self._position))
        return self._tokens

    def _is_at_end(self) -> bool:
        return self._position >= len(self._source)

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self._source[self._position]

    def _peek_next(self) -> str:
        if self._position + 1 >= len(self._source):
            return "\0"
        return self._source[self._position + 1]

    def _advance(self) -> str:
        ch = self._source[self._position]
        self._position += 1
        return ch

    def _add_token(self, token_type: TokenType, value: str, position: int) -> None:
        self._tokens.append(Token(token_type, value, position))

    def _scan_token(self) -> None:
        start_position = self._position
        ch = self._advance()

        if _is_whitespace(ch):
            return

        if ch == '"':
            self._scan_string(start_position)
            return

        two_chars = ch + self._peek()
        if two_chars in TWO_CHAR_OPERATORS:
            self._advance()
            self._add_token(TWO_CHAR_OPERATORS[two_chars], two_chars, start_position)
            return

        if ch in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[ch], ch, start_position)
            return

        if _is_digit(ch):
            self._scan_number(start_position)
            return

        if _is_identifier_start(ch):
            self._scan_identifier(start_position)
            return

        raise TokenizerError(
            f"Unexpected character: '{ch}'", start_position, self._source
        )

    def _scan_string(self, start_position: int) -> None:
        chars: List[str] = []

        while not self._is_at_end() and self._peek() != '"':
            ch = self._advance()

            # A backslash makes the next character literal
            if ch == "\\" and not self._is_at_end():
                chars.append(self._advance())
            else:
                chars.append(ch)

        if self._is_at_end():
            raise TokenizerError(
                "Unterminated string literal", start_position, self._source
            )

        # Consume closing quote
        self._advance()

        self._add_token(TokenType.STRING, "".join(chars), start_position)

    def _scan_number(self, start_position: int) -> None:
        while _is_digit(self._peek()):
            self._advance()

        # Fractional part; a dot without a digit after it is a DOT token
        if self._peek() == "." and _is_digit(self._peek_next()):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        value = self._source[start_position : self._position]
        self._add_token(TokenType.NUMBER, value, start_position)

    def _scan_identifier(self, start_position: int) -> None:
        while _is_identifier_part(self._peek()):
            self._advance()

        value = self._source[start_position : self._position]
        keyword_type = KEYWORDS.get(value)
        if keyword_type:
            self._add_token(keyword_type, value, start_position)
        else:
            self._add_token(TokenType.IDENTIFIER, value, start_position)


def tokenize(source: str, limits: Optional[TemplateLimits] = None) -> List[Token]:
    """
    Tokenizes an expression string into tokens.

    Args:
        source: The expression string to tokenize
        limits: Optional template limits

    Returns:
        List of tokens, terminated by an EOF token

    Raises:
        TokenizerError: If the expression contains invalid tokens
        ParseError: If the expression is too long
    """
    tokenizer = Tokenizer(source, limits)
    return tokenizer.tokenize()
