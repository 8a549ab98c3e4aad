"""
Template expression engine.

This module provides a deterministic, side-effect-free template
interpreter: `{{ expr }}` output tags and `{{if}}`/`{{each}}` blocks
rendered against a data context, with injectable functions and hard
resource limits.
"""

# Core types and utilities
from .ast import (
    AstNode,
    AstNodeBase,
    BinaryOperator,
    BinaryOpNode,
    BooleanLiteralNode,
    DotAccessNode,
    EachNode,
    ElifClause,
    FieldRefNode,
    FunctionCallNode,
    IfNode,
    NullLiteralNode,
    NumberLiteralNode,
    OutputNode,
    RawOutputNode,
    StringLiteralNode,
    TemplateChild,
    TemplateNode,
    TextNode,
    UnaryOperator,
    UnaryOpNode,
    ast_to_string,
    calculate_ast_depth,
    calculate_block_depth,
    count_ast_nodes,
    count_template_nodes,
    iter_template_expressions,
)

# Block parser
from .block_parser import TemplateParser, parse_template
from .config import TemplateEngineConfig, normalize_config, resolve_limits

# Engine
from .engine import RenderResult, TemplateEngine, has_expressions, render_template
from .errors import (
    EvaluationError,
    ExpressionError,
    FunctionError,
    LimitExceededError,
    ParseError,
    TokenizerError,
)

# Evaluator
from .evaluator import Evaluator, RenderBudget, RenderContext, render

# Functions
from .functions import (
    ExprValue,
    FunctionContext,
    FunctionRegistry,
    TemplateFunction,
    get_type_name,
)

# Lexer
from .lexer import Lexer, Segment, SegmentType, lex
from .limits import (
    DEFAULT_TEMPLATE_LIMITS,
    TemplateLimits,
    check_expression_depth,
    check_expression_length,
    check_nesting_depth,
)

# Expression parser
from .parser import Parser, parse_expression

# Tokenizer
from .tokenizer import (
    Token,
    Tokenizer,
    TokenType,
    tokenize,
)
from .values import (
    compare_values,
    escape_html,
    format_number,
    is_numeric,
    is_truthy,
    to_display_string,
    values_equal,
)

__all__ = [
    # AST types
    "AstNode",
    "AstNodeBase",
    "StringLiteralNode",
    "NumberLiteralNode",
    "BooleanLiteralNode",
    "NullLiteralNode",
    "FieldRefNode",
    "DotAccessNode",
    "FunctionCallNode",
    "UnaryOpNode",
    "BinaryOpNode",
    "UnaryOperator",
    "BinaryOperator",
    "TemplateNode",
    "TemplateChild",
    "TextNode",
    "OutputNode",
    "RawOutputNode",
    "IfNode",
    "ElifClause",
    "EachNode",
    "count_ast_nodes",
    "calculate_ast_depth",
    "calculate_block_depth",
    "count_template_nodes",
    "iter_template_expressions",
    "ast_to_string",
    # Errors
    "ExpressionError",
    "TokenizerError",
    "ParseError",
    "EvaluationError",
    "LimitExceededError",
    "FunctionError",
    # Limits and config
    "TemplateLimits",
    "DEFAULT_TEMPLATE_LIMITS",
    "check_expression_length",
    "check_expression_depth",
    "check_nesting_depth",
    "TemplateEngineConfig",
    "normalize_config",
    "resolve_limits",
    # Lexer
    "Segment",
    "SegmentType",
    "Lexer",
    "lex",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Parsers
    "Parser",
    "parse_expression",
    "TemplateParser",
    "parse_template",
    # Functions
    "ExprValue",
    "TemplateFunction",
    "FunctionContext",
    "FunctionRegistry",
    "get_type_name",
    # Values
    "is_truthy",
    "is_numeric",
    "format_number",
    "to_display_string",
    "values_equal",
    "compare_values",
    "escape_html",
    # Evaluator
    "RenderContext",
    "RenderBudget",
    "Evaluator",
    "render",
    # Engine
    "TemplateEngine",
    "RenderResult",
    "has_expressions",
    "render_template",
]
