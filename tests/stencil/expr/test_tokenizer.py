"""
Tests for the expression tokenizer.
"""

import pytest

from stencil.expr import ParseError, TemplateLimits, TokenizerError, tokenize
from stencil.expr.tokenizer import Tokenizer, TokenType


def token_types(source: str) -> list[TokenType]:
    """Helper returning only the token types."""
    return [token.type for token in tokenize(source)]


class TestLiterals:
    """Tests for literal tokenization."""

    def test_tokenizes_string_literals_with_double_quotes(self):
        tokens = tokenize('"hello"')
        assert len(tokens) == 2
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "hello"
        assert tokens[0].position == 0
        assert tokens[1].type == TokenType.EOF

    def test_backslash_makes_next_character_literal(self):
        tokens = tokenize('"say \\"hi\\""')
        assert tokens[0].value == 'say "hi"'

    def test_backslash_before_letter_keeps_the_letter(self):
        tokens = tokenize('"a\\nb"')
        assert tokens[0].value == "anb"

    def test_single_quotes_are_not_strings(self):
        with pytest.raises(TokenizerError, match="Unexpected character"):
            tokenize("'world'")

    def test_throws_on_unterminated_string(self):
        with pytest.raises(TokenizerError, match="Unterminated string"):
            tokenize('"unterminated')

    def test_tokenizer_error_is_a_parse_error(self):
        with pytest.raises(ParseError):
            tokenize('"unterminated')

    def test_tokenizes_integer_literals(self):
        tokens = tokenize("42")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == "42"

    def test_tokenizes_decimal_literals(self):
        tokens = tokenize("3.14159")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == "3.14159"

    def test_dot_without_digit_is_punctuation(self):
        tokens = tokenize("1.")
        assert [t.type for t in tokens] == [TokenType.NUMBER, TokenType.DOT, TokenType.EOF]
        assert tokens[0].value == "1"

    def test_leading_dot_is_not_part_of_a_number(self):
        assert token_types(".5") == [TokenType.DOT, TokenType.NUMBER, TokenType.EOF]


class TestKeywordsAndIdentifiers:
    """Tests for keywords and identifiers."""

    def test_tokenizes_keywords(self):
        assert token_types("and or not true false null") == [
            TokenType.AND,
            TokenType.OR,
            TokenType.NOT,
            TokenType.TRUE,
            TokenType.FALSE,
            TokenType.NULL,
            TokenType.EOF,
        ]

    def test_keywords_are_case_sensitive(self):
        tokens = tokenize("True")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "True"

    def test_keyword_prefix_is_identifier(self):
        tokens = tokenize("android")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "android"

    def test_identifiers_with_underscores_and_digits(self):
        tokens = tokenize("_item2")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "_item2"


class TestOperators:
    """Tests for operators and punctuation."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("==", TokenType.EQ),
            ("!=", TokenType.NE),
            (">=", TokenType.GE),
            ("<=", TokenType.LE),
            (">", TokenType.GT),
            ("<", TokenType.LT),
        ],
    )
    def test_tokenizes_comparison_operators(self, source, expected):
        tokens = tokenize(source)
        assert tokens[0].type == expected
        assert tokens[0].value == source

    def test_operators_without_spaces(self):
        assert token_types("a>=b") == [
            TokenType.IDENTIFIER,
            TokenType.GE,
            TokenType.IDENTIFIER,
            TokenType.EOF,
        ]

    @pytest.mark.parametrize("source", ["=", "!", "&", "+", "@", "[", "'"])
    def test_rejects_unknown_characters(self, source):
        with pytest.raises(TokenizerError, match="Unexpected character"):
            tokenize(source)

    def test_coarse_token_kinds(self):
        tokens = tokenize('f(a, b.c) == "x"')
        assert [t.kind for t in tokens] == [
            "identifier",
            "paren",
            "identifier",
            "comma",
            "identifier",
            "dot",
            "identifier",
            "paren",
            "operator",
            "string",
            "eof",
        ]


class TestWhitespaceAndPositions:
    """Tests for whitespace handling and token positions."""

    def test_skips_whitespace(self):
        assert token_types(" \ta\n==\r\nb ") == [
            TokenType.IDENTIFIER,
            TokenType.EQ,
            TokenType.IDENTIFIER,
            TokenType.EOF,
        ]

    def test_tracks_positions(self):
        tokens = tokenize("a == b")
        assert [t.position for t in tokens] == [0, 2, 5, 6]

    def test_error_carries_position(self):
        with pytest.raises(TokenizerError) as exc_info:
            tokenize("a @ b")
        assert exc_info.value.position == 2
        assert "^" in exc_info.value.format_with_context()


class TestLength:
    """Tests for expression length limits."""

    def test_accepts_expression_at_limit(self):
        tokens = tokenize("x" * 2000)
        assert tokens[0].type == TokenType.IDENTIFIER

    def test_rejects_expression_over_limit(self):
        with pytest.raises(ParseError, match="maximum length of 2000"):
            tokenize("x" * 2001)

    def test_custom_limit(self):
        with pytest.raises(ParseError, match="maximum length of 5"):
            tokenize("abcdef", TemplateLimits(max_expression_length=5))

    def test_over_length_error_carries_source(self):
        source = "x" * 2001
        with pytest.raises(ParseError) as exc_info:
            tokenize(source)
        assert exc_info.value.position == 0
        assert exc_info.value.expression == source

    def test_tokenize_twice_returns_same_tokens(self):
        tokenizer = Tokenizer("a == 1")
        first = tokenizer.tokenize()
        second = tokenizer.tokenize()
        assert [t.type for t in second] == [
            TokenType.IDENTIFIER,
            TokenType.EQ,
            TokenType.NUMBER,
            TokenType.EOF,
        ]
        assert second == first
